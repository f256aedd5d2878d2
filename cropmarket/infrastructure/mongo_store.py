"""
Infrastructure layer: MongoDB store adapters.

Crops live in one collection with their interest summaries embedded in an
``interests`` array; canonical interests live in a second collection. Every
conditional write is a single filtered update so MongoDB applies it
atomically on the document.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic.alias_generators import to_camel
from pymongo import ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from cropmarket.domain.models import (
    Crop,
    Interest,
    InterestStatus,
    InterestSummary,
    MarketModel,
)
from cropmarket.infrastructure.stores import (
    CropStore,
    DuplicatePendingInterest,
    InterestStore,
    StoreError,
)

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(action: str):
    """Re-raise driver failures as StoreError."""
    try:
        yield
    except PyMongoError as e:
        logger.error(f"MongoDB failure while trying to {action}: {e}")
        raise StoreError(f"Failed to {action}: {e}") from e


def _plain(value: Any) -> Any:
    if isinstance(value, InterestStatus):
        return value.value
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


def to_document(model: MarketModel, embedded: bool = False) -> Dict[str, Any]:
    """
    Convert a model to a BSON-ready document.

    Top-level documents use ``_id``; embedded summaries keep ``id``.
    """
    doc = _plain(model.model_dump(by_alias=True))
    if not embedded:
        doc["_id"] = doc.pop("id")
    return doc


def _from_document(doc: Dict[str, Any]) -> Dict[str, Any]:
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    return doc


class MongoCropStore(CropStore):
    """Crop store backed by a MongoDB collection."""

    def __init__(self, collection: Collection):
        self.collection = collection

    def get(self, crop_id: str) -> Optional[Crop]:
        with _store_errors(f"load crop {crop_id}"):
            doc = self.collection.find_one({"_id": crop_id})
        return Crop(**_from_document(doc)) if doc else None

    def insert(self, crop: Crop) -> None:
        with _store_errors(f"insert crop {crop.id}"):
            self.collection.insert_one(to_document(crop))

    def update_fields(self, crop_id: str, fields: Dict[str, Any]) -> bool:
        update = {to_camel(name): _plain(value) for name, value in fields.items()}
        with _store_errors(f"update crop {crop_id}"):
            result = self.collection.update_one({"_id": crop_id}, {"$set": update})
        return result.matched_count == 1

    def _find(self, query: Dict[str, Any]) -> List[Crop]:
        with _store_errors("list crops"):
            docs = list(self.collection.find(query).sort("createdAt", DESCENDING))
        return [Crop(**_from_document(d)) for d in docs]

    def list_all(self) -> List[Crop]:
        return self._find({})

    def list_by_owner(self, owner_email: str) -> List[Crop]:
        return self._find({"ownerEmail": owner_email})

    def insert_summary(
        self,
        crop_id: str,
        summary: InterestSummary,
        min_quantity: Optional[float] = None,
    ) -> bool:
        query: Dict[str, Any] = {"_id": crop_id}
        if min_quantity is not None:
            query["quantityAvailable"] = {"$gte": min_quantity}
            query["interests"] = {
                "$not": {
                    "$elemMatch": {
                        "buyerEmail": summary.buyer_email,
                        "status": InterestStatus.PENDING.value,
                    }
                }
            }
        with _store_errors(f"append interest {summary.id} to crop {crop_id}"):
            result = self.collection.update_one(
                query,
                {"$push": {"interests": to_document(summary, embedded=True)}},
            )
        return result.matched_count == 1

    def update_summary_status(
        self,
        crop_id: str,
        interest_id: str,
        status: InterestStatus,
        updated_at: datetime,
    ) -> bool:
        with _store_errors(f"update interest {interest_id} on crop {crop_id}"):
            result = self.collection.update_one(
                {"_id": crop_id, "interests.id": interest_id},
                {
                    "$set": {
                        "interests.$.status": InterestStatus(status).value,
                        "interests.$.updatedAt": updated_at,
                    }
                },
            )
        return result.matched_count == 1

    def remove_summary(self, crop_id: str, interest_id: str) -> None:
        with _store_errors(f"remove interest {interest_id} from crop {crop_id}"):
            self.collection.update_one(
                {"_id": crop_id},
                {"$pull": {"interests": {"id": interest_id}}},
            )

    def replace_summaries(self, crop_id: str, summaries: List[InterestSummary]) -> bool:
        docs = [to_document(s, embedded=True) for s in summaries]
        with _store_errors(f"rewrite interests of crop {crop_id}"):
            result = self.collection.update_one(
                {"_id": crop_id},
                {"$set": {"interests": docs}},
            )
        return result.matched_count == 1

    def compare_and_set_quantity(self, crop_id: str, expected: float, new: float) -> bool:
        with _store_errors(f"update quantity of crop {crop_id}"):
            result = self.collection.update_one(
                {"_id": crop_id, "quantityAvailable": expected},
                {"$set": {"quantityAvailable": new}},
            )
        return result.matched_count == 1

    def delete(self, crop_id: str) -> bool:
        with _store_errors(f"delete crop {crop_id}"):
            result = self.collection.delete_one({"_id": crop_id})
        return result.deleted_count == 1


class MongoInterestStore(InterestStore):
    """Interest store backed by a MongoDB collection."""

    PENDING_INDEX = "one_pending_interest_per_buyer"

    def __init__(self, collection: Collection):
        self.collection = collection

    def ensure_indexes(self) -> None:
        """
        Create lookup indexes and the partial unique index that allows a
        buyer only one pending interest per crop.
        """
        with _store_errors("create interest indexes"):
            self.collection.create_index([("cropId", ASCENDING)])
            self.collection.create_index([("buyerEmail", ASCENDING)])
            self.collection.create_index([("sellerEmail", ASCENDING)])
            self.collection.create_index(
                [("cropId", ASCENDING), ("buyerEmail", ASCENDING)],
                name=self.PENDING_INDEX,
                unique=True,
                partialFilterExpression={"status": InterestStatus.PENDING.value},
            )

    def get(self, interest_id: str) -> Optional[Interest]:
        with _store_errors(f"load interest {interest_id}"):
            doc = self.collection.find_one({"_id": interest_id})
        return Interest(**_from_document(doc)) if doc else None

    def _find(self, query: Dict[str, Any], direction: int) -> List[Interest]:
        with _store_errors("list interests"):
            docs = list(self.collection.find(query).sort("createdAt", direction))
        return [Interest(**_from_document(d)) for d in docs]

    def find_by_crop(self, crop_id: str) -> List[Interest]:
        return self._find({"cropId": crop_id}, ASCENDING)

    def find_by_buyer(self, buyer_email: str) -> List[Interest]:
        return self._find({"buyerEmail": buyer_email}, DESCENDING)

    def find_by_seller(self, seller_email: str) -> List[Interest]:
        return self._find({"sellerEmail": seller_email}, DESCENDING)

    def insert(self, interest: Interest) -> None:
        with _store_errors(f"insert interest {interest.id}"):
            try:
                self.collection.insert_one(to_document(interest))
            except DuplicateKeyError as e:
                raise DuplicatePendingInterest(
                    f"{interest.buyer_email} already has a pending interest on crop {interest.crop_id}"
                ) from e

    def update_status(
        self,
        interest_id: str,
        status: InterestStatus,
        updated_at: datetime,
        expected_status: Optional[InterestStatus] = None,
    ) -> bool:
        query: Dict[str, Any] = {"_id": interest_id}
        if expected_status is not None:
            query["status"] = InterestStatus(expected_status).value
        with _store_errors(f"update interest {interest_id}"):
            result = self.collection.update_one(
                query,
                {"$set": {"status": InterestStatus(status).value, "updatedAt": updated_at}},
            )
        return result.matched_count == 1

    def delete(self, interest_id: str) -> bool:
        with _store_errors(f"delete interest {interest_id}"):
            result = self.collection.delete_one({"_id": interest_id})
        return result.deleted_count == 1

    def delete_all_for_crop(self, crop_id: str) -> int:
        with _store_errors(f"delete interests of crop {crop_id}"):
            result = self.collection.delete_many({"cropId": crop_id})
        return result.deleted_count
