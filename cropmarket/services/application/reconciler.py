"""
Application service: repairs the interest mirror embedded in crops.

The canonical interest store is the source of truth. A crop's embedded
summary list can always be rebuilt from the interests that reference it,
so repairing a crop is idempotent and safe to repeat.
"""
import logging
import threading
from typing import List, Optional

from cropmarket.config import settings
from cropmarket.domain.models import Crop
from cropmarket.infrastructure.stores import CropStore, InterestStore

logger = logging.getLogger(__name__)


class Reconciler:
    """
    Tracks crops whose mirror may be stale and rebuilds them on demand.

    Crops are marked stale when a mirror write fails after its canonical
    write succeeded. They are repaired lazily when read through the crop
    service, explicitly through the API, or in bulk with run_pending().
    """

    def __init__(
        self,
        crops: CropStore,
        interests: InterestStore,
        max_passes: Optional[int] = None,
    ):
        self.crops = crops
        self.interests = interests
        self.max_passes = max_passes or settings.max_reconcile_passes
        self._stale: set[str] = set()
        self._lock = threading.Lock()

    def mark_stale(self, crop_id: str) -> None:
        with self._lock:
            self._stale.add(crop_id)
        logger.warning(f"Interest mirror of crop {crop_id} marked for reconciliation")

    def is_stale(self, crop_id: str) -> bool:
        with self._lock:
            return crop_id in self._stale

    def stale_crops(self) -> List[str]:
        with self._lock:
            return sorted(self._stale)

    def is_consistent(self, crop: Crop) -> bool:
        """Whether the crop's summaries match its canonical interests one to one."""
        canonical = self.interests.find_by_crop(crop.id)
        if len(canonical) != len(crop.interests):
            return False
        return all(i.matches(s) for i, s in zip(canonical, crop.interests))

    def reconcile_crop(self, crop_id: str) -> bool:
        """
        Rebuild a crop's summary list from its canonical interests.

        The rebuilt crop is read back and compared with the canonical records.
        A write that landed between the read and the rewrite shows up as a
        mismatch and triggers another pass. If the crop is still inconsistent
        after max_passes, it stays marked stale.

        If the crop no longer exists, any canonical interests still pointing
        at it are deleted instead.

        Args:
            crop_id: Crop to repair

        Returns:
            True if the crop exists and its mirror was rewritten
        """
        for attempt in range(1, self.max_passes + 1):
            canonical = self.interests.find_by_crop(crop_id)
            rewritten = self.crops.replace_summaries(
                crop_id, [interest.to_summary() for interest in canonical]
            )
            crop = self.crops.get(crop_id) if rewritten else None

            if crop is None:
                removed = self.interests.delete_all_for_crop(crop_id)
                if removed:
                    logger.warning(f"Removed {removed} orphaned interests of deleted crop {crop_id}")
                self._clear(crop_id)
                return False

            if self.is_consistent(crop):
                self._clear(crop_id)
                logger.info(f"Reconciled crop {crop_id}: {len(crop.interests)} interests")
                return True

            logger.warning(f"Crop {crop_id} changed during reconciliation pass {attempt}")

        self.mark_stale(crop_id)
        return True

    def _clear(self, crop_id: str) -> None:
        with self._lock:
            self._stale.discard(crop_id)

    def run_pending(self) -> int:
        """
        Reconcile every crop marked stale.

        Returns:
            Number of crops processed
        """
        pending = self.stale_crops()
        for crop_id in pending:
            self.reconcile_crop(crop_id)
        if pending:
            logger.info(f"Reconciliation pass finished for {len(pending)} crops")
        return len(pending)
