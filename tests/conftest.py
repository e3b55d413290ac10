"""Pytest configuration and shared fixtures for rug estimate tests."""

import os
import sys
import itertools
import pytest
from unittest.mock import AsyncMock, MagicMock


# ============================================================================
# Ensure local imports work (config/, models/, services/, utils/)
# ============================================================================
#
# The codebase uses absolute imports like `from models...` / `from services...`,
# so the repository root must be on sys.path during collection.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


# ============================================================================
# ID Generation
# ============================================================================

@pytest.fixture
def id_factory():
    """Deterministic service id generator: svc-1, svc-2, ..."""
    counter = itertools.count(1)
    return lambda: f"svc-{next(counter)}"


# ============================================================================
# Report Text
# ============================================================================

@pytest.fixture
def breakdown_report() -> str:
    """Report with a single rug breakdown section."""
    return "\n".join([
        "RUG BREAKDOWN AND SERVICES",
        "Rug #1: Persian (8x10)",
        "- Deep Cleaning & Wash: $560.00",
        "- Fringe Repair: $185.00",
        "Subtotal: $745.00",
        "TOTAL ESTIMATE: $745.00",
    ])


@pytest.fixture
def multi_rug_report() -> str:
    """Two rugs sharing services, followed by a closing section."""
    return "\n".join([
        "# Inspection Summary",
        "",
        "Both rugs show heavy soiling. Previous owner quote: $99.00",
        "",
        "## Estimate of Services",
        "",
        "Rug #1: Persian (8x10)",
        "- Deep Cleaning & Wash: $560.00",
        "- Persian Binding: $0",
        "Subtotal: $560.00",
        "",
        "Rug #2: Kilim (4x6)",
        "- Deep Cleaning & Wash: $240.00",
        "- Persian Binding: $120.00",
        "- Moth Proofing Protection: $1,250.50",
        "Subtotal: $1,610.50",
        "",
        "## Total Investment: $2,170.50",
        "",
        "## Additional Protection",
        "- Fiber Protection: $80.00",
        "",
        "Sincerely,",
        "The Inspection Team",
    ])


@pytest.fixture
def loose_report() -> str:
    """Report with priced lines but no recognized services section."""
    return "\n".join([
        "Condition notes for the customer:",
        "- **Stain Removal**: $95.00",
        "* Hand Fringe: $150",
        "Hand Fringe: $175.00",
        "**Total**: $245.00",
        "Rug #1: $0.00",
        "OK: $10.00",
    ])


# ============================================================================
# Firebase Mocks
# ============================================================================

@pytest.fixture
def mock_firestore_client():
    """Mock Firestore client."""
    client = MagicMock()

    collection_mock = MagicMock()
    document_mock = MagicMock()

    # Set up chain: client.collection().document()
    client.collection.return_value = collection_mock
    collection_mock.document.return_value = document_mock

    document_mock.get = AsyncMock(return_value=MagicMock(
        exists=True,
        id="est-123",
        to_dict=lambda: {
            "jobId": "job-1",
            "inspectionId": "insp-1",
            "services": [
                {"id": "svc-1", "name": "Deep Cleaning & Wash", "quantity": 1,
                 "unitPrice": 560.0, "priority": "high"},
            ],
            "totalAmount": 560.0,
            "createdAt": "2026-01-21T08:00:00Z",
        }
    ))
    document_mock.set = AsyncMock()

    return client


@pytest.fixture
def mock_firestore_service(mock_firestore_client):
    """FirestoreService with mocked client."""
    from services.firestore_service import FirestoreService

    return FirestoreService(db=mock_firestore_client)
