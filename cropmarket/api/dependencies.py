"""
Dependency injection for FastAPI.
"""
from typing import Annotated
from fastapi import Depends, Request

from cropmarket.infrastructure.database import Database
from cropmarket.services.application.crop_service import CropService
from cropmarket.services.application.interest_engine import InterestEngine
from cropmarket.services.application.reconciler import Reconciler


def get_database(request: Request) -> Database:
    """
    Database handle opened in the application lifespan.

    Returns:
        Database instance stored on app.state
    """
    return request.app.state.database


def get_reconciler(request: Request) -> Reconciler:
    """
    Shared reconciler, so stale marks survive across requests.

    Returns:
        Reconciler instance stored on app.state
    """
    return request.app.state.reconciler


def get_interest_engine(
    database: Annotated[Database, Depends(get_database)],
    reconciler: Annotated[Reconciler, Depends(get_reconciler)],
) -> InterestEngine:
    """
    Dependency factory for InterestEngine.

    Args:
        database: Database handle (injected)
        reconciler: Mirror reconciler (injected)

    Returns:
        InterestEngine instance
    """
    return InterestEngine(
        crops=database.crops,
        interests=database.interests,
        reconciler=reconciler,
    )


def get_crop_service(
    database: Annotated[Database, Depends(get_database)],
    reconciler: Annotated[Reconciler, Depends(get_reconciler)],
) -> CropService:
    """Dependency factory for CropService."""
    return CropService(
        crops=database.crops,
        interests=database.interests,
        reconciler=reconciler,
    )


# Type aliases for cleaner route signatures
InterestEngineDep = Annotated[InterestEngine, Depends(get_interest_engine)]
CropServiceDep = Annotated[CropService, Depends(get_crop_service)]
