"""
Unit tests for the crop catalog service.
"""
import pytest

from cropmarket.domain.errors import Forbidden, InvalidArgument, NotFound
from cropmarket.domain.models import CropDraft, CropUpdate, InterestStatus


SELLER = "seller@farm.test"
BUYER_A = "alice@buyers.test"
BUYER_B = "bob@buyers.test"


class TestCreateCrop:
    """Tests for listing crops."""

    def test_new_crop_has_no_interests(self, crop):
        assert crop.owner_email == SELLER
        assert crop.quantity_available == 10
        assert crop.interests == []
        assert crop.updated_at is None

    def test_image_required(self, crop_service):
        with pytest.raises(InvalidArgument):
            crop_service.create_crop(CropDraft(owner_email=SELLER, name="Tea"))

    def test_owner_required(self, crop_service):
        with pytest.raises(InvalidArgument):
            crop_service.create_crop(CropDraft(owner_email="", name="Tea", image="tea.jpg"))

    def test_negative_numbers_clamped(self, crop_service):
        crop = crop_service.create_crop(CropDraft(
            owner_email=SELLER, name="Tea", image="tea.jpg", price_per_unit=-4, quantity=-1,
        ))

        assert crop.price_per_unit == 0
        assert crop.quantity_available == 0


class TestUpdateCrop:
    """Tests for owner edits."""

    def test_owner_edits_fields(self, crop_service, crop):
        updated = crop_service.update_crop(
            crop.id, SELLER, CropUpdate(name="Brown rice", price_per_unit=50, quantity=25)
        )

        assert updated.name == "Brown rice"
        assert updated.price_per_unit == 50
        assert updated.quantity_available == 25
        assert updated.updated_at is not None

    def test_image_kept_when_omitted(self, crop_service, crop):
        updated = crop_service.update_crop(crop.id, SELLER, CropUpdate(image=""))

        assert updated.image == crop.image

    def test_non_owner_forbidden(self, crop_service, crop):
        with pytest.raises(Forbidden):
            crop_service.update_crop(crop.id, BUYER_A, CropUpdate(name="Mine now"))

    def test_missing_crop(self, crop_service):
        with pytest.raises(NotFound):
            crop_service.update_crop("missing", SELLER, CropUpdate(name="x"))

    def test_negative_quantity_rejected(self, crop_service, crop):
        with pytest.raises(InvalidArgument):
            crop_service.update_crop(crop.id, SELLER, CropUpdate(quantity=-2))

    def test_edit_keeps_interest_summaries(self, crop_service, engine, crop):
        interest = engine.create_interest(crop.id, BUYER_A, "Alice", 2)

        updated = crop_service.update_crop(crop.id, SELLER, CropUpdate(location="Dhaka"))

        assert updated.find_summary(interest.id) is not None


class TestReads:
    """Tests for read views."""

    def test_get_crop_reconciles_stale_mirror(self, crop_service, engine, crop, crop_store, reconciler):
        interest = engine.create_interest(crop.id, BUYER_A, "Alice", 2)
        crop_store.remove_summary(crop.id, interest.id)
        reconciler.mark_stale(crop.id)

        loaded = crop_service.get_crop(crop.id)

        assert loaded.find_summary(interest.id) is not None
        assert not reconciler.is_stale(crop.id)

    def test_get_missing_crop(self, crop_service):
        with pytest.raises(NotFound):
            crop_service.get_crop("missing")

    def test_list_by_owner(self, crop_service, make_crop):
        make_crop(name="Rice")
        make_crop(name="Sugarcane", owner="other@farm.test")

        assert [c.name for c in crop_service.list_crops_by_owner(SELLER)] == ["Rice"]
        assert len(crop_service.list_crops()) == 2

    def test_interest_inboxes(self, crop_service, engine, crop):
        first = engine.create_interest(crop.id, BUYER_A, "Alice", 1)
        engine.create_interest(crop.id, BUYER_B, "Bob", 1)
        engine.update_interest_status(first.id, "rejected", SELLER)

        seller_view = crop_service.list_interests_for_seller(SELLER)
        buyer_view = crop_service.list_interests_for_buyer(BUYER_A)

        assert len(seller_view) == 2
        assert [i.id for i in buyer_view] == [first.id]
        assert buyer_view[0].status == InterestStatus.REJECTED

    def test_seller_inbox_carries_crop_image(self, crop_service, engine, crop):
        engine.create_interest(crop.id, BUYER_A, "Alice", 1)

        seller_view = crop_service.list_interests_for_seller(SELLER)

        assert [i.crop_image for i in seller_view] == [crop.image]

    def test_reconcile_missing_crop(self, crop_service):
        with pytest.raises(NotFound):
            crop_service.reconcile_crop("missing")
