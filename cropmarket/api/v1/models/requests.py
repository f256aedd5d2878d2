"""
API request models using Pydantic.

Bodies use the camelCase field names the marketplace frontend sends.
"""
from typing import Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from cropmarket.domain.models import CropDraft, CropUpdate


class RequestModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class CropCreateRequest(RequestModel):
    """Body for listing a new crop."""
    user_email: str = Field(description="Authenticated seller email")
    user_name: str = ""
    user_photo: str = ""
    name: str
    type: str = ""
    description: str = ""
    location: str = ""
    unit: str = ""
    price_per_unit: float = 0
    quantity: float = 0
    image: str = Field(default="", description="Reference to an uploaded image")

    def to_draft(self) -> CropDraft:
        return CropDraft(
            owner_email=self.user_email,
            owner_name=self.user_name,
            owner_photo=self.user_photo,
            name=self.name,
            type=self.type,
            description=self.description,
            location=self.location,
            unit=self.unit,
            price_per_unit=self.price_per_unit,
            quantity=self.quantity,
            image=self.image,
        )


class CropUpdateRequest(RequestModel):
    """Body for an owner's edit of a crop."""
    user_email: str = Field(description="Authenticated identity, must own the crop")
    name: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    unit: Optional[str] = None
    price_per_unit: Optional[float] = None
    quantity: Optional[float] = None
    image: Optional[str] = None

    def to_update(self) -> CropUpdate:
        return CropUpdate(**self.model_dump(exclude={"user_email"}))


class InterestCreateRequest(RequestModel):
    """Body for a buyer's interest in a crop."""
    crop_id: str
    user_email: str = Field(description="Authenticated buyer email")
    user_name: str = ""
    quantity: int = Field(description="Whole units requested")
    message: Optional[str] = None


class InterestStatusRequest(RequestModel):
    """Body for a seller's decision on an interest."""
    status: str = Field(description="accepted or rejected")
    user_email: str = Field(description="Authenticated identity, must be the seller")
