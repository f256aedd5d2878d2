"""
Application service: keeps interests and their crop mirrors consistent.

Every write goes to the canonical interest store first and to the summary
embedded in the crop second. If the second write fails the operation still
succeeds, and the crop is handed to the reconciler to rebuild its mirror.
"""
import logging
from typing import Any, Optional

from cropmarket.domain.errors import Conflict, InvalidTransition, NotFound
from cropmarket.domain.models import Crop, Interest, InterestStatus
from cropmarket.infrastructure.stores import (
    CropStore,
    DuplicatePendingInterest,
    InterestStore,
    QuantityChanged,
    StoreError,
)
from cropmarket.services.application.reconciler import Reconciler
from cropmarket.services.domain import interest_rules
from cropmarket.utils.identifiers import utc_now

logger = logging.getLogger(__name__)


class InterestEngine:
    """
    Orchestrates the interest lifecycle across the crop and interest stores.

    Exposes four operations: create_interest, update_interest_status,
    delete_interest and delete_crop. Identity arguments are already
    authenticated emails; rights are checked here.
    """

    def __init__(
        self,
        crops: CropStore,
        interests: InterestStore,
        reconciler: Reconciler,
    ):
        """
        Initialize the engine with its stores.

        Args:
            crops: Crop store holding listings and interest summaries
            interests: Canonical interest store
            reconciler: Receives crops whose mirror could not be written
        """
        self.crops = crops
        self.interests = interests
        self.reconciler = reconciler

    def _load_crop(self, crop_id: str) -> Crop:
        crop = self.crops.get(crop_id)
        if crop is None:
            raise NotFound(f"Crop {crop_id} not found")
        return crop

    def _load_interest(self, interest_id: str) -> Interest:
        interest = self.interests.get(interest_id)
        if interest is None:
            raise NotFound(f"Interest {interest_id} not found")
        return interest

    def _mirror_failed(self, crop_id: str, interest_id: str, error: Exception) -> None:
        logger.error(
            f"Mirror write for interest {interest_id} on crop {crop_id} failed "
            f"after canonical write: {error}"
        )
        self.reconciler.mark_stale(crop_id)

    def _sync_summary(self, interest: Interest) -> None:
        """Copy the interest's status/updated_at onto its crop summary."""
        try:
            found = self.crops.update_summary_status(
                interest.crop_id, interest.id, interest.status, interest.updated_at
            )
        except StoreError as e:
            self._mirror_failed(interest.crop_id, interest.id, e)
            return

        if not found:
            logger.warning(f"Crop {interest.crop_id} has no summary for interest {interest.id}")
            self.reconciler.mark_stale(interest.crop_id)

    def create_interest(
        self,
        crop_id: str,
        buyer_email: str,
        buyer_name: str,
        quantity_requested: Any,
        message: Optional[str] = None,
    ) -> Interest:
        """
        Register a buyer's interest in a crop.

        The crop's available quantity is not reduced until the seller accepts.

        Args:
            crop_id: Crop the buyer wants to purchase from
            buyer_email: Authenticated buyer identity
            buyer_name: Buyer display name
            quantity_requested: Whole number of units, 1..available
            message: Optional note to the seller

        Returns:
            The created pending Interest

        Raises:
            NotFound: If the crop does not exist
            Forbidden: If the buyer owns the crop
            InvalidArgument: If the quantity is out of range
            Conflict: If the buyer already has a pending interest on the crop,
                or availability changed before the interest was recorded
        """
        crop = self._load_crop(crop_id)
        interest_rules.ensure_not_owner(crop, buyer_email)
        quantity = interest_rules.validate_requested_quantity(
            quantity_requested, crop.quantity_available
        )
        if crop.pending_summary_for(buyer_email) is not None:
            raise Conflict(f"{buyer_email} already has a pending interest on crop {crop_id}")

        interest = interest_rules.build_interest(crop, buyer_email, buyer_name, quantity, message)

        try:
            self.interests.insert(interest)
        except DuplicatePendingInterest as e:
            raise Conflict(str(e)) from e

        # Re-check availability and duplicates against the crop as it is now.
        try:
            appended = self.crops.insert_summary(
                crop_id, interest.to_summary(), min_quantity=quantity
            )
        except StoreError as e:
            self._mirror_failed(crop_id, interest.id, e)
            return interest

        if not appended:
            current = self.crops.get(crop_id)
            if current is not None and current.find_summary(interest.id) is not None:
                # A concurrent reconciliation already mirrored this interest.
                logger.info(f"Interest {interest.id} was mirrored by reconciliation")
                return interest
            self._withdraw(interest)
            if current is None:
                raise NotFound(f"Crop {crop_id} was deleted")
            raise Conflict(f"Crop {crop_id} changed while the interest was being recorded")

        logger.info(
            f"Interest {interest.id} created: {buyer_email} requests {quantity} "
            f"of crop {crop_id}"
        )
        return interest

    def _withdraw(self, interest: Interest) -> None:
        """Remove a canonical record whose mirror append was refused."""
        try:
            self.interests.delete(interest.id)
        except StoreError:
            # Orphan cleanup falls to the reconciler.
            self.reconciler.mark_stale(interest.crop_id)
            raise

    def update_interest_status(
        self,
        interest_id: str,
        new_status: Any,
        acting_email: str,
    ) -> Interest:
        """
        Accept or reject a pending interest.

        Accepting reduces the crop's available quantity by the requested
        amount, floored at zero. Other pending interests on the crop are left
        untouched even if they now exceed what is available.

        Args:
            interest_id: Interest to decide
            new_status: accepted or rejected
            acting_email: Authenticated identity, must be the seller

        Returns:
            The updated Interest

        Raises:
            NotFound: If the interest or its crop does not exist
            Forbidden: If the actor is not the seller
            InvalidTransition: If the interest is already decided or the
                status is not accepted/rejected
            Conflict: If the quantity update kept losing to concurrent writers
            StoreError: If the quantity update failed; the interest is left pending
        """
        interest = self._load_interest(interest_id)
        interest_rules.ensure_seller(interest, acting_email)
        target = interest_rules.validate_transition(interest.status, new_status)
        self._load_crop(interest.crop_id)

        now = utc_now()
        claimed = self.interests.update_status(
            interest.id, target, now, expected_status=InterestStatus.PENDING
        )
        if not claimed:
            self._load_interest(interest_id)
            raise InvalidTransition(f"Interest {interest_id} was decided concurrently")

        updated = interest.model_copy(update={"status": target, "updated_at": now})
        self._sync_summary(updated)

        if target == InterestStatus.ACCEPTED:
            try:
                remaining = self.crops.decrement_quantity(
                    interest.crop_id, interest.quantity_requested
                )
            except QuantityChanged as e:
                self._revert_decision(interest, target)
                raise Conflict(
                    f"Quantity of crop {interest.crop_id} kept changing; interest left pending"
                ) from e
            except StoreError as e:
                logger.error(
                    f"Quantity update for interest {interest.id} on crop {interest.crop_id} "
                    f"failed, returning it to pending: {e}"
                )
                self._revert_decision(interest, target)
                raise

            if remaining is None:
                logger.warning(
                    f"Crop {interest.crop_id} was deleted while accepting interest {interest.id}"
                )
            else:
                logger.info(
                    f"Crop {interest.crop_id} quantity now {remaining:g} after accepting "
                    f"interest {interest.id}"
                )

        logger.info(f"Interest {interest.id} {target.value} by {acting_email}")
        return updated

    def _revert_decision(self, original: Interest, decided: InterestStatus) -> None:
        """Return a decided interest and its summary to their previous state."""
        self.interests.update_status(
            original.id, original.status, original.updated_at, expected_status=decided
        )
        self._sync_summary(original)

    def delete_interest(self, interest_id: str, acting_email: str) -> None:
        """
        Withdraw an interest, whatever its status.

        Quantity removed by an earlier acceptance is not restored.

        Raises:
            NotFound: If the interest does not exist
            Forbidden: If the actor is not the buyer who raised it
        """
        interest = self._load_interest(interest_id)
        interest_rules.ensure_buyer(interest, acting_email)

        if not self.interests.delete(interest.id):
            raise NotFound(f"Interest {interest_id} not found")

        try:
            self.crops.remove_summary(interest.crop_id, interest.id)
        except StoreError as e:
            self._mirror_failed(interest.crop_id, interest.id, e)

        logger.info(f"Interest {interest.id} withdrawn by {acting_email}")

    def delete_crop(self, crop_id: str, acting_email: str) -> int:
        """
        Delete a crop listing and every interest that references it.

        Returns:
            Number of canonical interests removed

        Raises:
            NotFound: If the crop does not exist
            Forbidden: If the actor does not own the crop
        """
        crop = self._load_crop(crop_id)
        interest_rules.ensure_crop_owner(crop, acting_email)

        if not self.crops.delete(crop_id):
            raise NotFound(f"Crop {crop_id} not found")

        try:
            removed = self.interests.delete_all_for_crop(crop_id)
        except StoreError:
            self.reconciler.mark_stale(crop_id)
            raise

        logger.info(f"Crop {crop_id} deleted by {acting_email} with {removed} interests")
        return removed
