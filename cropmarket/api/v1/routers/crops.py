"""
API router for crop listing endpoints.
"""
from fastapi import APIRouter, Path, Query
from typing import Annotated, List

from cropmarket.api.dependencies import CropServiceDep, InterestEngineDep
from cropmarket.api.v1.models.requests import CropCreateRequest, CropUpdateRequest
from cropmarket.api.v1.models.responses import CropDeletedResult
from cropmarket.domain.models import Crop


router = APIRouter(
    prefix="/crops",
    tags=["crops"],
)

CropId = Annotated[str, Path(description="Unique identifier for the crop")]


@router.get("", response_model=List[Crop], summary="List all crops")
def list_crops(crop_service: CropServiceDep) -> List[Crop]:
    """All crop listings, newest first."""
    return crop_service.list_crops()


@router.get(
    "/owner/{email}",
    response_model=List[Crop],
    summary="List a seller's crops",
)
def list_crops_by_owner(
    email: Annotated[str, Path(description="Seller email")],
    crop_service: CropServiceDep,
) -> List[Crop]:
    return crop_service.list_crops_by_owner(email)


@router.get(
    "/{crop_id}",
    response_model=Crop,
    summary="Get a crop",
    responses={404: {"description": "Crop not found"}},
)
def get_crop(crop_id: CropId, crop_service: CropServiceDep) -> Crop:
    """
    Get a crop with its embedded interest summaries.

    A crop whose mirror is marked stale is reconciled before it is returned.
    """
    return crop_service.get_crop(crop_id)


@router.post(
    "",
    response_model=Crop,
    status_code=201,
    summary="List a new crop",
    responses={400: {"description": "Image or user email missing"}},
)
def create_crop(body: CropCreateRequest, crop_service: CropServiceDep) -> Crop:
    return crop_service.create_crop(body.to_draft())


@router.put(
    "/{crop_id}",
    response_model=Crop,
    summary="Edit a crop",
    responses={
        403: {"description": "Caller does not own the crop"},
        404: {"description": "Crop not found"},
    },
)
def update_crop(
    crop_id: CropId,
    body: CropUpdateRequest,
    crop_service: CropServiceDep,
) -> Crop:
    return crop_service.update_crop(crop_id, body.user_email, body.to_update())


@router.delete(
    "/{crop_id}",
    response_model=CropDeletedResult,
    summary="Delete a crop and its interests",
    responses={
        403: {"description": "Caller does not own the crop"},
        404: {"description": "Crop not found"},
    },
)
def delete_crop(
    crop_id: CropId,
    email: Annotated[str, Query(description="Authenticated owner email")],
    engine: InterestEngineDep,
) -> CropDeletedResult:
    removed = engine.delete_crop(crop_id, email)
    return CropDeletedResult(interests_removed=removed)


@router.post(
    "/{crop_id}/reconcile",
    response_model=Crop,
    summary="Rebuild a crop's interest summaries",
    description="""
    Recompute the interest summaries embedded in a crop from the canonical
    interest records. Safe to call repeatedly.
    """,
    responses={404: {"description": "Crop not found"}},
)
def reconcile_crop(crop_id: CropId, crop_service: CropServiceDep) -> Crop:
    return crop_service.reconcile_crop(crop_id)
