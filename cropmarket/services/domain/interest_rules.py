"""
Domain service: rules governing interests on crop listings.

Pure checks and constructors with no storage access:
- Ownership and party checks (seller, buyer, crop owner)
- Requested quantity bounds
- The interest status state machine
"""
from datetime import datetime
from typing import Any, Optional

from cropmarket.domain.errors import Forbidden, InvalidArgument, InvalidTransition
from cropmarket.domain.models import Crop, Interest, InterestStatus
from cropmarket.utils.identifiers import new_id, utc_now


# Only a pending interest can be decided, and only once.
ALLOWED_TRANSITIONS = {
    InterestStatus.PENDING: {InterestStatus.ACCEPTED, InterestStatus.REJECTED},
    InterestStatus.ACCEPTED: set(),
    InterestStatus.REJECTED: set(),
}


def ensure_not_owner(crop: Crop, buyer_email: str) -> None:
    """A seller cannot raise an interest on their own crop."""
    if buyer_email == crop.owner_email:
        raise Forbidden("Cannot show interest in own crop")


def ensure_crop_owner(crop: Crop, acting_email: str) -> None:
    if acting_email != crop.owner_email:
        raise Forbidden(f"Only the owner of crop {crop.id} may change it")


def ensure_seller(interest: Interest, acting_email: str) -> None:
    if acting_email != interest.seller_email:
        raise Forbidden(f"Only the seller may decide interest {interest.id}")


def ensure_buyer(interest: Interest, acting_email: str) -> None:
    if acting_email != interest.buyer_email:
        raise Forbidden(f"Only the buyer may withdraw interest {interest.id}")


def validate_requested_quantity(quantity: Any, available: float) -> int:
    """
    Check a requested quantity against what the crop has available.

    Args:
        quantity: Requested quantity, must be a whole number
        available: Crop's current available quantity

    Returns:
        The quantity as an int

    Raises:
        InvalidArgument: If the quantity is not a positive integer or exceeds availability
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidArgument("Quantity must be a whole number")
    if quantity < 1:
        raise InvalidArgument("Quantity must be >= 1")
    if quantity > available:
        raise InvalidArgument(
            f"Requested quantity {quantity} exceeds available quantity {available:g}"
        )
    return quantity


def validate_transition(current: InterestStatus, requested: Any) -> InterestStatus:
    """
    Resolve a requested status change against the state machine.

    Raises:
        InvalidTransition: If the requested status is unknown or not reachable
            from the current one
    """
    try:
        target = InterestStatus(requested)
    except ValueError as e:
        raise InvalidTransition(f"Unknown interest status: {requested!r}") from e

    if target not in ALLOWED_TRANSITIONS[InterestStatus(current)]:
        raise InvalidTransition(
            f"Cannot change interest status from {InterestStatus(current).value} to {target.value}"
        )
    return target


def build_interest(
    crop: Crop,
    buyer_email: str,
    buyer_name: str,
    quantity: int,
    message: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Interest:
    """Create a new pending interest on a crop with a fresh shared id."""
    now = now or utc_now()
    return Interest(
        id=new_id(),
        crop_id=crop.id,
        crop_name=crop.name,
        buyer_email=buyer_email,
        buyer_name=buyer_name or "",
        seller_email=crop.owner_email,
        quantity_requested=quantity,
        message=message,
        status=InterestStatus.PENDING,
        created_at=now,
        updated_at=now,
    )
