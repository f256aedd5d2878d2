"""
Application service: crop listings and read views over interests.
"""
import logging
from typing import List

from cropmarket.domain.errors import InvalidArgument, NotFound
from cropmarket.domain.models import Crop, CropDraft, CropUpdate, Interest, SellerInterest
from cropmarket.infrastructure.stores import CropStore, InterestStore
from cropmarket.services.application.reconciler import Reconciler
from cropmarket.services.domain import interest_rules
from cropmarket.utils.identifiers import new_id, utc_now

logger = logging.getLogger(__name__)


class CropService:
    """Create, edit and read crop listings."""

    def __init__(
        self,
        crops: CropStore,
        interests: InterestStore,
        reconciler: Reconciler,
    ):
        self.crops = crops
        self.interests = interests
        self.reconciler = reconciler

    def create_crop(self, draft: CropDraft) -> Crop:
        """
        List a new crop for sale.

        Raises:
            InvalidArgument: If the image or owner email is missing
        """
        if not draft.image:
            raise InvalidArgument("Image required")
        if not draft.owner_email:
            raise InvalidArgument("User email required")

        crop = Crop(
            id=new_id(),
            owner_email=draft.owner_email,
            owner_name=draft.owner_name,
            owner_photo=draft.owner_photo,
            name=draft.name,
            type=draft.type,
            description=draft.description,
            location=draft.location,
            unit=draft.unit,
            price_per_unit=max(0, draft.price_per_unit),
            quantity_available=max(0, draft.quantity),
            image=draft.image,
            interests=[],
            created_at=utc_now(),
        )
        self.crops.insert(crop)
        logger.info(f"Crop {crop.id} listed by {crop.owner_email}")
        return crop

    def update_crop(self, crop_id: str, acting_email: str, changes: CropUpdate) -> Crop:
        """
        Apply an owner's edit to a crop listing.

        Omitted fields, including the image, keep their current values.

        Raises:
            NotFound: If the crop does not exist
            Forbidden: If the actor does not own the crop
            InvalidArgument: If price or quantity is negative
        """
        crop = self.crops.get(crop_id)
        if crop is None:
            raise NotFound(f"Crop {crop_id} not found")
        interest_rules.ensure_crop_owner(crop, acting_email)

        fields = changes.model_dump(exclude_none=True)
        if "quantity" in fields:
            fields["quantity_available"] = fields.pop("quantity")
        for name in ("price_per_unit", "quantity_available"):
            if name in fields and fields[name] < 0:
                raise InvalidArgument(f"{name} must not be negative")
        if not fields.get("image"):
            fields.pop("image", None)
        fields["updated_at"] = utc_now()

        if not self.crops.update_fields(crop_id, fields):
            raise NotFound(f"Crop {crop_id} not found")

        logger.info(f"Crop {crop_id} updated by {acting_email}: {sorted(fields)}")
        return self.get_crop(crop_id)

    def get_crop(self, crop_id: str) -> Crop:
        """
        Load a crop, rebuilding its interest mirror first if it is marked stale.

        Raises:
            NotFound: If the crop does not exist
        """
        if self.reconciler.is_stale(crop_id):
            self.reconciler.reconcile_crop(crop_id)

        crop = self.crops.get(crop_id)
        if crop is None:
            raise NotFound(f"Crop {crop_id} not found")
        return crop

    def list_crops(self) -> List[Crop]:
        return self.crops.list_all()

    def list_crops_by_owner(self, owner_email: str) -> List[Crop]:
        return self.crops.list_by_owner(owner_email)

    def list_interests_for_seller(self, seller_email: str) -> List[SellerInterest]:
        """Interests received on the seller's crops, newest first, with each crop's image."""
        images = {crop.id: crop.image for crop in self.crops.list_by_owner(seller_email)}
        return [
            SellerInterest(**interest.model_dump(), crop_image=images.get(interest.crop_id, ""))
            for interest in self.interests.find_by_seller(seller_email)
        ]

    def list_interests_for_buyer(self, buyer_email: str) -> List[Interest]:
        """Interests raised by the buyer, newest first."""
        return self.interests.find_by_buyer(buyer_email)

    def reconcile_crop(self, crop_id: str) -> Crop:
        """
        Rebuild a crop's interest mirror from canonical records.

        Raises:
            NotFound: If the crop does not exist
        """
        if not self.reconciler.reconcile_crop(crop_id):
            raise NotFound(f"Crop {crop_id} not found")
        return self.get_crop(crop_id)
