"""
API response models using Pydantic.
"""
from pydantic import BaseModel, Field


class OperationResult(BaseModel):
    """Acknowledgement for operations without a payload."""
    success: bool = Field(
        default=True,
        description="Whether the operation completed"
    )


class CropDeletedResult(OperationResult):
    """Acknowledgement for a crop deletion."""
    interests_removed: int = Field(
        description="Number of interests removed together with the crop"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "success": True,
                "interests_removed": 2,
            }
        }
