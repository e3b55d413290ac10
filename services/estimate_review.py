"""Estimate review session.

Holds the editable list of services for one inspected rug, seeded from the
AI report, until staff approve it. The parsed list is kept as a snapshot so
large edits can be flagged for pricing feedback.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
from uuid import uuid4

import structlog
from pydantic import ValidationError as PydanticValidationError

from config.errors import EmptyEstimateError, ServiceNotFoundError, ValidationError
from config.settings import settings
from models.estimate import ApprovedEstimate, ServiceEdit, calculate_total
from models.service_item import Priority, ServiceItem, ServicePrice
from services.report_parser import (
    IdFactory,
    apply_price_catalog,
    classify_priority,
    parse_report_for_services,
)

logger = structlog.get_logger(__name__)


class EstimateReview:
    """Editable estimate for one rug.

    Service ids are assigned once and never change during the session, so
    the original and edited lists can be compared by id.
    """

    def __init__(
        self,
        services: Optional[Sequence[ServiceItem]] = None,
        id_factory: Optional[IdFactory] = None,
    ):
        """Initialize EstimateReview.

        Args:
            services: Initial services, also kept as the original snapshot.
            id_factory: Callable returning fresh service ids.
        """
        self._id_factory = id_factory or (lambda: str(uuid4()))
        self._services: List[ServiceItem] = list(services or [])
        self._original: Dict[str, ServiceItem] = {s.id: s for s in self._services}

    @classmethod
    def from_report(
        cls,
        report_text: str,
        catalog: Optional[Sequence[ServicePrice]] = None,
        id_factory: Optional[IdFactory] = None,
    ) -> "EstimateReview":
        """Seed a review from AI report text.

        Args:
            report_text: Analysis report text.
            catalog: Optional service price catalog used for zero prices.
            id_factory: Callable returning fresh service ids.

        Returns:
            New EstimateReview.
        """
        services = parse_report_for_services(report_text, id_factory=id_factory)
        if catalog:
            services = apply_price_catalog(services, catalog)
        return cls(services=services, id_factory=id_factory)

    @property
    def services(self) -> List[ServiceItem]:
        """Current services (a copy)."""
        return list(self._services)

    def _index_of(self, service_id: str) -> int:
        for index, service in enumerate(self._services):
            if service.id == service_id:
                return index
        raise ServiceNotFoundError(service_id)

    def add_service(
        self,
        name: str = "New Service",
        unit_price: float = 0.0,
        quantity: int = 1,
        priority: Optional[Priority] = None,
        description: Optional[str] = None,
    ) -> ServiceItem:
        """Append a manually added service.

        Raises:
            ValidationError: If any value is invalid.
        """
        try:
            service = ServiceItem(
                id=self._id_factory(),
                name=name,
                description=description,
                quantity=quantity,
                unit_price=unit_price,
                priority=priority or classify_priority(name),
            )
        except PydanticValidationError as e:
            raise ValidationError(
                message=f"Invalid service: {e.errors()[0]['msg']}",
                details={"errors": [str(err["loc"]) for err in e.errors()]}
            )
        self._services.append(service)
        logger.info("service_added", service_id=service.id, name=service.name)
        return service

    def update_service(self, service_id: str, **updates: Any) -> ServiceItem:
        """Replace fields of one service.

        Raises:
            ServiceNotFoundError: If no service has this id.
            ValidationError: If an update is invalid.
        """
        index = self._index_of(service_id)
        try:
            updated = self._services[index].with_updates(**updates)
        except PydanticValidationError as e:
            raise ValidationError(
                message=f"Invalid service update: {e.errors()[0]['msg']}",
                details={"service_id": service_id}
            )
        except ValueError as e:
            raise ValidationError(message=str(e), details={"service_id": service_id})

        self._services[index] = updated
        logger.info("service_updated", service_id=service_id, fields=sorted(updates))
        return updated

    def remove_service(self, service_id: str) -> None:
        """Remove one service.

        Raises:
            ServiceNotFoundError: If no service has this id.
        """
        index = self._index_of(service_id)
        del self._services[index]
        logger.info("service_removed", service_id=service_id)

    def total(self) -> float:
        """Grand total of the current services."""
        return calculate_total(self._services)

    def edits_needing_feedback(self, threshold: Optional[float] = None) -> List[ServiceEdit]:
        """Find reviewed services that drifted far from what the report said.

        A service qualifies when its name changed or its unit price moved by
        more than ``threshold`` (a fraction of the original price). Added
        and removed services are not reported.

        Args:
            threshold: Relative price change; defaults to settings.

        Returns:
            ServiceEdit for each qualifying service, in current order.
        """
        if threshold is None:
            threshold = settings.price_change_feedback_threshold

        edits: List[ServiceEdit] = []
        for service in self._services:
            original = self._original.get(service.id)
            if original is None:
                continue
            edit = ServiceEdit(
                service_id=service.id,
                original_name=original.name,
                edited_name=service.name,
                original_price=original.unit_price,
                edited_price=service.unit_price,
            )
            if edit.exceeds(threshold):
                edits.append(edit)
        return edits

    def approve(
        self,
        job_id: str,
        inspection_id: str,
        approved_by: Optional[str] = None,
    ) -> ApprovedEstimate:
        """Freeze the current services into an approved estimate.

        Raises:
            EmptyEstimateError: If there are no services.
        """
        if not self._services:
            logger.warning("approve_rejected_empty", job_id=job_id, inspection_id=inspection_id)
            raise EmptyEstimateError(job_id=job_id)

        estimate = ApprovedEstimate(
            job_id=job_id,
            inspection_id=inspection_id,
            services=self.services,
            approved_by_staff_user_id=approved_by,
            approved_by_staff_at=datetime.now(timezone.utc) if approved_by else None,
        )
        logger.info(
            "estimate_approved",
            job_id=job_id,
            inspection_id=inspection_id,
            service_count=len(estimate.services),
            total_amount=estimate.total_amount,
        )
        return estimate
