"""Root-level pytest fixtures for all tests.

Provides shared fixtures for the filter engine tests:
- Field catalog covering every field type
- Sample content documents
"""

import pytest

from src.filter_engine.models import FilterField
from tests.helpers import build_catalog


@pytest.fixture
def catalog() -> list[FilterField]:
    """Field catalog with every field type."""
    return build_catalog()


@pytest.fixture
def articles() -> list[dict]:
    """Sample content documents."""
    return [
        {
            "_id": "a1",
            "title": "Hello World",
            "status": "published",
            "price": 10,
            "featured": True,
            "editions": ["print", "web"],
            "created_at": "2024-01-05T10:00:00Z",
            "metadata": {"rating": 4},
        },
        {
            "_id": "a2",
            "title": "Draft Notes",
            "status": "draft",
            "price": 25.5,
            "featured": False,
            "editions": [],
            "created_at": "2024-02-01T08:30:00+00:00",
            "metadata": {"rating": 2},
        },
        {
            "_id": "a3",
            "title": "Archived Story",
            "status": "archived",
            "editions": ["mobile"],
            "created_at": "2023-12-31T23:59:59Z",
        },
        {
            "_id": "a4",
            "title": "",
            "status": "published",
            "price": "7",
            "featured": "true",
            "created_at": "2024-03-10T00:00:00Z",
            "metadata": {"rating": 5},
        },
    ]
