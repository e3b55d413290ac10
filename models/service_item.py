"""Service line item models for rug estimates.

A ServiceItem is one priced, quantified unit of work pulled out of an
inspection report (or added by hand during estimate review).
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class Priority(str, Enum):
    """Urgency tier shown as a colored badge on estimates."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ServiceItem(BaseModel):
    """A single billable service on a rug estimate."""

    id: str = Field(
        description="Opaque identifier, stable for the whole review session"
    )
    name: str = Field(
        min_length=1,
        description="Service label, e.g. 'Deep Cleaning & Wash'"
    )
    description: Optional[str] = Field(
        default=None,
        description="Free text added during review"
    )
    quantity: int = Field(
        default=1,
        ge=1,
        description="Number of times the service is billed"
    )
    unit_price: float = Field(
        default=0.0,
        ge=0,
        alias="unitPrice",
        description="Price per unit in dollars"
    )
    priority: Priority = Field(
        default=Priority.MEDIUM,
        description="Priority tier"
    )

    class Config:
        populate_by_name = True
        use_enum_values = True
        validate_assignment = True

    @property
    def line_total(self) -> float:
        """Line subtotal, always quantity x unit price."""
        return self.quantity * self.unit_price

    def with_updates(self, **updates: Any) -> "ServiceItem":
        """Return a new item with the given fields overridden.

        Accepts snake_case or camelCase field names. The id is never
        overridden and the current item is left untouched.

        Raises:
            pydantic.ValidationError: If an override is not a valid value.
        """
        data = self.model_dump()
        for key, value in updates.items():
            if key == "unitPrice":
                key = "unit_price"
            if key == "id":
                continue
            if key not in data:
                raise ValueError(f"Unknown ServiceItem field: {key}")
            data[key] = value
        return ServiceItem.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase dict consumed by the frontend and PDF renderer."""
        return self.model_dump(by_alias=True)


class ServicePrice(BaseModel):
    """A business's configured price for a named service.

    Stored in /servicePrices/{id}
    """

    service_name: str = Field(
        alias="serviceName",
        description="Service name, e.g. 'Persian Binding'"
    )
    unit_price: float = Field(
        default=0.0,
        ge=0,
        alias="unitPrice",
        description="Default unit price in dollars"
    )
    is_additional: bool = Field(
        default=False,
        alias="isAdditional",
        description="Whether the service is billed as an add-on"
    )

    class Config:
        populate_by_name = True
