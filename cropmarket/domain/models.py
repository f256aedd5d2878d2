"""
Domain models for crop listings and purchase interests.

These models represent the core domain entities and should be independent
of any infrastructure concerns (document stores, HTTP, etc.). Field names are
snake_case in Python and camelCase when serialized, matching the stored
document shape.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class InterestStatus(str, Enum):
    """Lifecycle states of a buyer's interest."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class MarketModel(BaseModel):
    """Base model serializing to camelCase documents."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        use_enum_values = False


class InterestSummary(MarketModel):
    """Read-optimized mirror of an interest, embedded in its crop."""
    id: str
    crop_id: str
    crop_name: str = ""
    buyer_email: str
    buyer_name: str = ""
    quantity_requested: int = Field(ge=1)
    message: Optional[str] = None
    status: InterestStatus = InterestStatus.PENDING
    created_at: datetime
    updated_at: datetime

    @property
    def is_pending(self) -> bool:
        return self.status == InterestStatus.PENDING


class Interest(InterestSummary):
    """Canonical interest record."""
    seller_email: str

    def to_summary(self) -> InterestSummary:
        """Build the mirror entry carrying the same id and fields."""
        return InterestSummary(**self.model_dump(exclude={"seller_email"}))

    def matches(self, summary: InterestSummary) -> bool:
        """Whether a mirror entry agrees with this record on its mutable fields."""
        return (
            summary.id == self.id
            and summary.status == self.status
            and summary.updated_at == self.updated_at
        )


class SellerInterest(Interest):
    """Interest as shown in a seller's inbox, with its crop's thumbnail."""
    crop_image: str = ""


class Crop(MarketModel):
    """A seller's listing of produce, with its embedded interest mirror."""
    id: str
    owner_email: str
    owner_name: str = ""
    owner_photo: str = ""
    name: str
    type: str = ""
    description: str = ""
    location: str = ""
    unit: str = ""
    price_per_unit: float = Field(default=0, ge=0)
    quantity_available: float = Field(default=0, ge=0)
    image: str
    interests: List[InterestSummary] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None

    def find_summary(self, interest_id: str) -> Optional[InterestSummary]:
        for summary in self.interests:
            if summary.id == interest_id:
                return summary
        return None

    def pending_summary_for(self, buyer_email: str) -> Optional[InterestSummary]:
        """Return the buyer's pending interest on this crop, if any."""
        for summary in self.interests:
            if summary.buyer_email == buyer_email and summary.is_pending:
                return summary
        return None


class CropDraft(MarketModel):
    """Seller-supplied fields for a new crop listing."""
    owner_email: str
    owner_name: str = ""
    owner_photo: str = ""
    name: str
    type: str = ""
    description: str = ""
    location: str = ""
    unit: str = ""
    price_per_unit: float = 0
    quantity: float = 0
    image: str = ""


class CropUpdate(MarketModel):
    """Owner edit of a crop listing. Omitted fields are left unchanged."""
    name: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    unit: Optional[str] = None
    price_per_unit: Optional[float] = None
    quantity: Optional[float] = None
    image: Optional[str] = None
