"""Firestore service for rug estimates.

Provides persistence for approved estimates and per-user service prices.
"""

from typing import Dict, Any, Optional, List
from uuid import uuid4
import inspect
import structlog

from firebase_admin import firestore

from config.errors import RugEstimateError, ErrorCode
from models.estimate import ApprovedEstimate
from models.service_item import ServicePrice

logger = structlog.get_logger()


class FirestoreService:
    """Service for Firestore operations.

    Note: Firebase Admin SDK for Python is synchronous. Methods are
    marked async for interface compatibility but operations are sync.
    """

    COLLECTION_APPROVED_ESTIMATES = "approvedEstimates"
    COLLECTION_SERVICE_PRICES = "servicePrices"

    def __init__(self, db=None):
        """Initialize FirestoreService.

        Args:
            db: Optional Firestore client. If not provided, uses default.
        """
        self._db = db

    @property
    def db(self):
        """Get Firestore client (lazy initialization)."""
        if self._db is None:
            self._db = firestore.client()
        return self._db

    async def _maybe_await(self, result: Any) -> Any:
        """Await result if it is awaitable (supports AsyncMock in unit tests)."""
        if inspect.isawaitable(result):
            return await result
        return result

    async def get_service_prices(self, user_id: str) -> List[ServicePrice]:
        """List a user's configured service prices.

        Args:
            user_id: Owner of the price catalog.

        Returns:
            Service prices in stored order. Malformed documents are skipped.

        Raises:
            RugEstimateError: If Firestore operation fails.
        """
        try:
            query = (
                self.db
                .collection(self.COLLECTION_SERVICE_PRICES)
                .where("userId", "==", user_id)
            )
            docs = query.stream()

            prices: List[ServicePrice] = []
            for doc in docs:
                data = doc.to_dict() or {}
                try:
                    prices.append(ServicePrice.model_validate(data))
                except ValueError as e:
                    logger.warning(
                        "service_price_skipped",
                        user_id=user_id,
                        doc_id=doc.id,
                        error=str(e)[:200]
                    )
            logger.info("service_prices_loaded", user_id=user_id, count=len(prices))
            return prices

        except Exception as e:
            logger.error("service_prices_get_failed", user_id=user_id, error=str(e))
            raise RugEstimateError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to load service prices: {str(e)}",
                details={"user_id": user_id}
            )

    async def save_approved_estimate(self, estimate: ApprovedEstimate) -> str:
        """Create or overwrite an approved estimate document.

        Args:
            estimate: Approved estimate; a document ID is generated if unset.

        Returns:
            The estimate document ID.

        Raises:
            RugEstimateError: If Firestore operation fails.
        """
        estimate_id = estimate.id or str(uuid4())
        try:
            doc_ref = self.db.collection(self.COLLECTION_APPROVED_ESTIMATES).document(estimate_id)

            data: Dict[str, Any] = estimate.to_firestore_dict()
            data["createdAt"] = firestore.SERVER_TIMESTAMP
            data["updatedAt"] = firestore.SERVER_TIMESTAMP

            await self._maybe_await(doc_ref.set(data))
            logger.info(
                "approved_estimate_saved",
                estimate_id=estimate_id,
                job_id=estimate.job_id,
                total_amount=estimate.total_amount
            )
            return estimate_id

        except Exception as e:
            logger.error("approved_estimate_save_failed", estimate_id=estimate_id, error=str(e))
            raise RugEstimateError(
                code=ErrorCode.FIRESTORE_WRITE_FAILED,
                message=f"Failed to save approved estimate: {str(e)}",
                details={"estimate_id": estimate_id}
            )

    async def get_approved_estimate(self, estimate_id: str) -> Optional[ApprovedEstimate]:
        """Fetch an approved estimate by ID.

        Args:
            estimate_id: The estimate document ID.

        Returns:
            ApprovedEstimate or None if not found.

        Raises:
            RugEstimateError: If Firestore operation fails.
        """
        try:
            doc_ref = self.db.collection(self.COLLECTION_APPROVED_ESTIMATES).document(estimate_id)
            doc = await self._maybe_await(doc_ref.get())

            if not doc.exists:
                return None
            return ApprovedEstimate.model_validate({"id": doc.id, **(doc.to_dict() or {})})

        except Exception as e:
            logger.error("approved_estimate_get_failed", estimate_id=estimate_id, error=str(e))
            raise RugEstimateError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to get approved estimate: {str(e)}",
                details={"estimate_id": estimate_id}
            )
