"""
API router for interest endpoints.
"""
from fastapi import APIRouter, Path, Query
from typing import Annotated, List

from cropmarket.api.dependencies import CropServiceDep, InterestEngineDep
from cropmarket.api.v1.models.requests import InterestCreateRequest, InterestStatusRequest
from cropmarket.api.v1.models.responses import OperationResult
from cropmarket.domain.models import Interest, SellerInterest


router = APIRouter(
    prefix="/interests",
    tags=["interests"],
)

InterestId = Annotated[str, Path(description="Unique identifier for the interest")]


@router.post(
    "",
    response_model=Interest,
    status_code=201,
    summary="Show interest in a crop",
    description="""
    Record a buyer's interest in a crop. The crop's available quantity is
    only reduced once the seller accepts the interest.
    """,
    responses={
        400: {"description": "Quantity below 1 or above what is available"},
        403: {"description": "Buyer owns the crop"},
        404: {"description": "Crop not found"},
        409: {"description": "Buyer already has a pending interest on the crop"},
    },
)
def create_interest(body: InterestCreateRequest, engine: InterestEngineDep) -> Interest:
    return engine.create_interest(
        crop_id=body.crop_id,
        buyer_email=body.user_email,
        buyer_name=body.user_name,
        quantity_requested=body.quantity,
        message=body.message,
    )


@router.patch(
    "/{interest_id}",
    response_model=Interest,
    summary="Accept or reject an interest",
    responses={
        403: {"description": "Caller is not the seller"},
        404: {"description": "Interest or crop not found"},
        409: {"description": "Interest already decided, or quantity update conflict"},
    },
)
def update_interest_status(
    interest_id: InterestId,
    body: InterestStatusRequest,
    engine: InterestEngineDep,
) -> Interest:
    return engine.update_interest_status(interest_id, body.status, body.user_email)


@router.delete(
    "/{interest_id}",
    response_model=OperationResult,
    summary="Withdraw an interest",
    responses={
        403: {"description": "Caller is not the buyer"},
        404: {"description": "Interest not found"},
    },
)
def delete_interest(
    interest_id: InterestId,
    email: Annotated[str, Query(description="Authenticated buyer email")],
    engine: InterestEngineDep,
) -> OperationResult:
    engine.delete_interest(interest_id, email)
    return OperationResult()


@router.get(
    "/seller/{email}",
    response_model=List[SellerInterest],
    summary="Interests received by a seller",
)
def list_seller_interests(
    email: Annotated[str, Path(description="Seller email")],
    crop_service: CropServiceDep,
) -> List[SellerInterest]:
    return crop_service.list_interests_for_seller(email)


@router.get(
    "/buyer/{email}",
    response_model=List[Interest],
    summary="Interests raised by a buyer",
)
def list_buyer_interests(
    email: Annotated[str, Path(description="Buyer email")],
    crop_service: CropServiceDep,
) -> List[Interest]:
    return crop_service.list_interests_for_buyer(email)
