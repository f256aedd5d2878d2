"""
Infrastructure layer: storage contracts for crops and interests.

The crop store holds listings together with their embedded interest
summaries; the interest store holds the canonical interest records. Neither
store checks ownership: authorization belongs to the services.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from tenacity import (
    retry,
    stop_after_attempt,
    wait_fixed,
    retry_if_exception_type,
)

from cropmarket.config import settings
from cropmarket.domain.models import Crop, Interest, InterestStatus, InterestSummary

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Backend failure while reading or writing a store."""

    status_code = 503
    error = "Storage unavailable"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class DuplicatePendingInterest(Exception):
    """The buyer already holds a pending interest on the crop."""
    pass


class QuantityChanged(Exception):
    """A conditional quantity update found a different value than it read."""
    pass


class CropStore(ABC):
    """Storage for crop listings and their embedded interest summaries."""

    @abstractmethod
    def get(self, crop_id: str) -> Optional[Crop]:
        """Return the crop, or None if it does not exist."""

    @abstractmethod
    def insert(self, crop: Crop) -> None:
        """Store a new crop listing."""

    @abstractmethod
    def update_fields(self, crop_id: str, fields: Dict[str, Any]) -> bool:
        """Set descriptive fields (snake_case names). False if the crop is missing."""

    @abstractmethod
    def list_all(self) -> List[Crop]:
        """All crops, newest first."""

    @abstractmethod
    def list_by_owner(self, owner_email: str) -> List[Crop]:
        """Crops listed by one seller, newest first."""

    @abstractmethod
    def insert_summary(
        self,
        crop_id: str,
        summary: InterestSummary,
        min_quantity: Optional[float] = None,
    ) -> bool:
        """
        Append a summary to the crop's interest sequence.

        When min_quantity is given, the append only happens if the crop still
        has at least that much quantity available and holds no pending summary
        from the same buyer.

        Returns:
            False if the crop is missing or the condition no longer holds
        """

    @abstractmethod
    def update_summary_status(
        self,
        crop_id: str,
        interest_id: str,
        status: InterestStatus,
        updated_at: datetime,
    ) -> bool:
        """Set status/updated_at of one summary. False if crop or summary is missing."""

    @abstractmethod
    def remove_summary(self, crop_id: str, interest_id: str) -> None:
        """Remove one summary from the crop, if present."""

    @abstractmethod
    def replace_summaries(self, crop_id: str, summaries: List[InterestSummary]) -> bool:
        """Overwrite the crop's whole summary sequence. False if the crop is missing."""

    @abstractmethod
    def compare_and_set_quantity(self, crop_id: str, expected: float, new: float) -> bool:
        """Write new quantity only if the stored value still equals expected."""

    @abstractmethod
    def delete(self, crop_id: str) -> bool:
        """Delete the crop. False if it did not exist."""

    def decrement_quantity(self, crop_id: str, amount: float) -> Optional[float]:
        """
        Decrease the crop's available quantity, clamping at zero.

        Implemented as read then compare-and-set, retried while concurrent
        writers keep changing the value.

        Args:
            crop_id: Crop to update
            amount: Quantity to remove

        Returns:
            The new available quantity, or None if the crop no longer exists

        Raises:
            QuantityChanged: If every attempt lost the race
        """
        return self._decrement_attempt(crop_id, amount)

    @retry(
        stop=stop_after_attempt(settings.max_quantity_update_attempts),
        wait=wait_fixed(settings.quantity_retry_wait_seconds),
        retry=retry_if_exception_type(QuantityChanged),
        reraise=True,
    )
    def _decrement_attempt(self, crop_id: str, amount: float) -> Optional[float]:
        crop = self.get(crop_id)
        if crop is None:
            return None

        current = crop.quantity_available
        new = max(0, current - amount)
        if not self.compare_and_set_quantity(crop_id, current, new):
            logger.debug(f"Quantity of crop {crop_id} changed during update, retrying")
            raise QuantityChanged(f"Quantity of crop {crop_id} changed concurrently")
        return new


class InterestStore(ABC):
    """Storage for canonical interest records."""

    @abstractmethod
    def get(self, interest_id: str) -> Optional[Interest]:
        """Return the interest, or None if it does not exist."""

    @abstractmethod
    def find_by_crop(self, crop_id: str) -> List[Interest]:
        """Interests targeting a crop, in creation order."""

    @abstractmethod
    def find_by_buyer(self, buyer_email: str) -> List[Interest]:
        """Interests raised by a buyer, newest first."""

    @abstractmethod
    def find_by_seller(self, seller_email: str) -> List[Interest]:
        """Interests received by a seller, newest first."""

    @abstractmethod
    def insert(self, interest: Interest) -> None:
        """
        Store a new interest.

        Raises:
            DuplicatePendingInterest: If the buyer already has a pending
                interest on the same crop
        """

    @abstractmethod
    def update_status(
        self,
        interest_id: str,
        status: InterestStatus,
        updated_at: datetime,
        expected_status: Optional[InterestStatus] = None,
    ) -> bool:
        """
        Set status/updated_at of an interest.

        When expected_status is given, the write only happens if the stored
        status still equals it.

        Returns:
            False if the interest is missing or its status differs
        """

    @abstractmethod
    def delete(self, interest_id: str) -> bool:
        """Delete one interest. False if it did not exist."""

    @abstractmethod
    def delete_all_for_crop(self, crop_id: str) -> int:
        """Delete every interest targeting a crop; returns how many were removed."""
