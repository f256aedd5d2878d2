"""
Shared pytest fixtures for all tests.

This module provides common fixtures including:
- In-memory crop and interest stores
- Engine, reconciler and crop service wired to those stores
- A listed sample crop
- FastAPI test client
"""
import os

os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from cropmarket.domain.models import Crop, CropDraft
from cropmarket.infrastructure.memory_store import InMemoryCropStore, InMemoryInterestStore
from cropmarket.services.application.crop_service import CropService
from cropmarket.services.application.interest_engine import InterestEngine
from cropmarket.services.application.reconciler import Reconciler


SELLER = "seller@farm.test"
BUYER_A = "alice@buyers.test"
BUYER_B = "bob@buyers.test"


# ============================================================
# Store and Service Fixtures
# ============================================================

@pytest.fixture
def crop_store() -> InMemoryCropStore:
    return InMemoryCropStore()


@pytest.fixture
def interest_store() -> InMemoryInterestStore:
    return InMemoryInterestStore()


@pytest.fixture
def reconciler(crop_store, interest_store) -> Reconciler:
    return Reconciler(crop_store, interest_store)


@pytest.fixture
def engine(crop_store, interest_store, reconciler) -> InterestEngine:
    return InterestEngine(crop_store, interest_store, reconciler)


@pytest.fixture
def crop_service(crop_store, interest_store, reconciler) -> CropService:
    return CropService(crop_store, interest_store, reconciler)


# ============================================================
# Sample Data Fixtures
# ============================================================

@pytest.fixture
def make_crop(crop_service):
    """Factory listing a crop owned by SELLER."""
    def _make(quantity: float = 10, name: str = "Rice", owner: str = SELLER) -> Crop:
        return crop_service.create_crop(CropDraft(
            owner_email=owner,
            owner_name="Sam Seller",
            name=name,
            type="grain",
            description="Aromatic basmati",
            location="Rajshahi",
            unit="kg",
            price_per_unit=42.5,
            quantity=quantity,
            image="https://img.test/rice.jpg",
        ))
    return _make


@pytest.fixture
def crop(make_crop) -> Crop:
    """A crop with 10 units available."""
    return make_crop(quantity=10)


# ============================================================
# FastAPI Test Client Fixtures
# ============================================================

@pytest.fixture
def test_client():
    """Test client with the application lifespan (in-memory storage) running."""
    from cropmarket.main import app

    with TestClient(app) as client:
        yield client
