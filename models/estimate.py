"""Estimate document models for rug estimates.

Pydantic models for the approved estimate stored in Firestore and the
review diff used to ask staff for pricing feedback.
"""

from typing import Dict, Any, Optional, List, Sequence
from datetime import datetime
from pydantic import BaseModel, Field, model_validator

from models.service_item import ServiceItem


def calculate_total(services: Sequence[ServiceItem]) -> float:
    """Grand total of an estimate: sum of quantity x unit price, in cents precision."""
    return round(sum(service.line_total for service in services), 2)


class ApprovedEstimate(BaseModel):
    """Staff-approved estimate for one inspected rug.

    Represents the document stored in /approvedEstimates/{id}. The total is
    always recomputed from the services so stored and displayed totals agree.
    """

    id: Optional[str] = Field(
        default=None,
        description="Document ID"
    )
    job_id: str = Field(
        alias="jobId",
        description="Job the inspected rug belongs to"
    )
    inspection_id: str = Field(
        alias="inspectionId",
        description="Inspection the estimate was generated from"
    )
    services: List[ServiceItem] = Field(
        default_factory=list,
        description="Approved service line items"
    )
    total_amount: float = Field(
        default=0.0,
        ge=0,
        alias="totalAmount",
        description="Sum of quantity x unitPrice over services"
    )
    approved_by_staff_user_id: Optional[str] = Field(
        default=None,
        alias="approvedByStaffUserId",
        description="Staff user who approved the estimate"
    )
    approved_by_staff_at: Optional[datetime] = Field(
        default=None,
        alias="approvedByStaffAt",
        description="When the estimate was approved"
    )

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def recompute_total(self) -> "ApprovedEstimate":
        """Overwrite any supplied total with the recomputed one."""
        self.total_amount = calculate_total(self.services)
        return self

    def to_firestore_dict(self) -> Dict[str, Any]:
        """Convert to Firestore-compatible dict.

        Returns:
            Dict with camelCase keys for Firestore.
        """
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"id"})


class ServiceEdit(BaseModel):
    """Difference between a parsed service and its reviewed version."""

    service_id: str = Field(description="Service item ID")
    original_name: str = Field(description="Name as parsed from the report")
    edited_name: str = Field(description="Name after review")
    original_price: float = Field(ge=0, description="Unit price as parsed")
    edited_price: float = Field(ge=0, description="Unit price after review")

    @property
    def name_changed(self) -> bool:
        return self.original_name.strip() != self.edited_name.strip()

    @property
    def price_change_ratio(self) -> Optional[float]:
        """Relative price change, or None when the original price was zero."""
        if self.original_price == 0:
            return None
        return abs(self.edited_price - self.original_price) / self.original_price

    def exceeds(self, threshold: float) -> bool:
        """Whether this edit is large enough to ask for feedback."""
        if self.name_changed:
            return True
        ratio = self.price_change_ratio
        if ratio is None:
            return self.edited_price != self.original_price
        return ratio > threshold
