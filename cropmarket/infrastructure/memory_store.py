"""
Infrastructure layer: in-process store adapters.

Every operation runs under a lock so the conditional writes are atomic with
respect to concurrent request threads. Records are copied on the way in and
out; callers never hold a reference into the store.
"""
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from cropmarket.domain.models import Crop, Interest, InterestStatus, InterestSummary
from cropmarket.infrastructure.stores import (
    CropStore,
    DuplicatePendingInterest,
    InterestStore,
    StoreError,
)


class InMemoryCropStore(CropStore):
    """Crop store kept in a dictionary keyed by crop id."""

    def __init__(self):
        self._crops: Dict[str, Crop] = {}
        self._lock = threading.RLock()

    def get(self, crop_id: str) -> Optional[Crop]:
        with self._lock:
            crop = self._crops.get(crop_id)
            return crop.model_copy(deep=True) if crop else None

    def insert(self, crop: Crop) -> None:
        with self._lock:
            if crop.id in self._crops:
                raise StoreError(f"Crop {crop.id} already exists")
            self._crops[crop.id] = crop.model_copy(deep=True)

    def update_fields(self, crop_id: str, fields: Dict[str, Any]) -> bool:
        with self._lock:
            crop = self._crops.get(crop_id)
            if crop is None:
                return False
            self._crops[crop_id] = crop.model_copy(update=fields, deep=True)
            return True

    def list_all(self) -> List[Crop]:
        with self._lock:
            crops = [c.model_copy(deep=True) for c in self._crops.values()]
        return sorted(crops, key=lambda c: c.created_at, reverse=True)

    def list_by_owner(self, owner_email: str) -> List[Crop]:
        return [c for c in self.list_all() if c.owner_email == owner_email]

    def insert_summary(
        self,
        crop_id: str,
        summary: InterestSummary,
        min_quantity: Optional[float] = None,
    ) -> bool:
        with self._lock:
            crop = self._crops.get(crop_id)
            if crop is None:
                return False
            if min_quantity is not None:
                if crop.quantity_available < min_quantity:
                    return False
                if crop.pending_summary_for(summary.buyer_email) is not None:
                    return False
            crop.interests.append(summary.model_copy(deep=True))
            return True

    def update_summary_status(
        self,
        crop_id: str,
        interest_id: str,
        status: InterestStatus,
        updated_at: datetime,
    ) -> bool:
        with self._lock:
            crop = self._crops.get(crop_id)
            if crop is None:
                return False
            for index, summary in enumerate(crop.interests):
                if summary.id == interest_id:
                    crop.interests[index] = summary.model_copy(
                        update={"status": status, "updated_at": updated_at}
                    )
                    return True
            return False

    def remove_summary(self, crop_id: str, interest_id: str) -> None:
        with self._lock:
            crop = self._crops.get(crop_id)
            if crop is not None:
                crop.interests = [s for s in crop.interests if s.id != interest_id]

    def replace_summaries(self, crop_id: str, summaries: List[InterestSummary]) -> bool:
        with self._lock:
            crop = self._crops.get(crop_id)
            if crop is None:
                return False
            crop.interests = [s.model_copy(deep=True) for s in summaries]
            return True

    def compare_and_set_quantity(self, crop_id: str, expected: float, new: float) -> bool:
        with self._lock:
            crop = self._crops.get(crop_id)
            if crop is None or crop.quantity_available != expected:
                return False
            crop.quantity_available = new
            return True

    def delete(self, crop_id: str) -> bool:
        with self._lock:
            return self._crops.pop(crop_id, None) is not None


class InMemoryInterestStore(InterestStore):
    """Interest store kept in an insertion-ordered dictionary."""

    def __init__(self):
        self._interests: Dict[str, Interest] = {}
        self._lock = threading.RLock()

    def get(self, interest_id: str) -> Optional[Interest]:
        with self._lock:
            interest = self._interests.get(interest_id)
            return interest.model_copy(deep=True) if interest else None

    def _select(self, predicate) -> List[Interest]:
        with self._lock:
            return [i.model_copy(deep=True) for i in self._interests.values() if predicate(i)]

    def find_by_crop(self, crop_id: str) -> List[Interest]:
        return self._select(lambda i: i.crop_id == crop_id)

    def find_by_buyer(self, buyer_email: str) -> List[Interest]:
        found = self._select(lambda i: i.buyer_email == buyer_email)
        return sorted(found, key=lambda i: i.created_at, reverse=True)

    def find_by_seller(self, seller_email: str) -> List[Interest]:
        found = self._select(lambda i: i.seller_email == seller_email)
        return sorted(found, key=lambda i: i.created_at, reverse=True)

    def insert(self, interest: Interest) -> None:
        with self._lock:
            if interest.id in self._interests:
                raise StoreError(f"Interest {interest.id} already exists")
            for existing in self._interests.values():
                if (
                    existing.crop_id == interest.crop_id
                    and existing.buyer_email == interest.buyer_email
                    and existing.is_pending
                    and interest.is_pending
                ):
                    raise DuplicatePendingInterest(
                        f"{interest.buyer_email} already has pending interest {existing.id}"
                    )
            self._interests[interest.id] = interest.model_copy(deep=True)

    def update_status(
        self,
        interest_id: str,
        status: InterestStatus,
        updated_at: datetime,
        expected_status: Optional[InterestStatus] = None,
    ) -> bool:
        with self._lock:
            interest = self._interests.get(interest_id)
            if interest is None:
                return False
            if expected_status is not None and interest.status != expected_status:
                return False
            self._interests[interest_id] = interest.model_copy(
                update={"status": status, "updated_at": updated_at}
            )
            return True

    def delete(self, interest_id: str) -> bool:
        with self._lock:
            return self._interests.pop(interest_id, None) is not None

    def delete_all_for_crop(self, crop_id: str) -> int:
        with self._lock:
            doomed = [k for k, i in self._interests.items() if i.crop_id == crop_id]
            for key in doomed:
                del self._interests[key]
            return len(doomed)
