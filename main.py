"""Cloud Function entry points for rug estimates.

Provides HTTP endpoints for:
- Parsing an AI inspection report into priced service line items
- Approving and persisting a reviewed estimate
"""

import asyncio
import json
from typing import Dict, Any, List, Optional
from datetime import datetime, date

import structlog
from firebase_functions import https_fn, options
from firebase_admin import initialize_app
from pydantic import ValidationError as PydanticValidationError

from config.errors import RugEstimateError, ErrorCode, ValidationError
from config.settings import settings
from models.service_item import ServiceItem
from services.estimate_review import EstimateReview
from services.firestore_service import FirestoreService
from utils.logging_config import configure_logging

settings.validate()

# Initialize Firebase Admin SDK
try:
    initialize_app(options=settings.firebase_options)
except ValueError:
    # Already initialized
    pass

configure_logging()
logger = structlog.get_logger()

# ============================================================================
# Helper Functions
# ============================================================================


def success_response(data: Dict[str, Any]) -> Dict[str, Any]:
    """Build success response."""
    return {"success": True, "data": data}


def error_response(code: str, message: str, details: Dict[str, Any] = None) -> Dict[str, Any]:
    """Build error response."""
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {}
        }
    }


def get_request_json(req: https_fn.Request) -> Dict[str, Any]:
    """Extract JSON from request body.

    Raises:
        ValidationError: If JSON is invalid or not an object.
    """
    try:
        data = req.get_json(force=True) or {}
    except Exception as e:
        raise ValidationError(
            message=f"Invalid JSON in request body: {str(e)}"
        )
    if not isinstance(data, dict):
        raise ValidationError(message="Request body must be a JSON object")
    return data


def _require(data: Dict[str, Any], field: str) -> Any:
    value = data.get(field)
    if not value:
        raise ValidationError(message=f"Missing {field} in request", field=field)
    return value


def _services_from_request(raw_services: Any) -> List[ServiceItem]:
    """Validate the services list sent back by the review screen."""
    if not isinstance(raw_services, list):
        raise ValidationError(message="services must be a list", field="services")
    try:
        return [ServiceItem.model_validate(item) for item in raw_services]
    except PydanticValidationError as e:
        raise ValidationError(
            message="Invalid services",
            field="services",
            details={"errors": [f"{err['loc']}: {err['msg']}" for err in e.errors()]}
        )


# ============================================================================
# Estimate Entry Points
# ============================================================================


@https_fn.on_request(
    timeout_sec=60,
    memory=options.MemoryOption.MB_256,
    region="us-central1"
)
def parse_estimate(req: https_fn.Request) -> https_fn.Response:
    """Parse an AI inspection report into editable service line items.

    Request body:
    {
        "reportText": "RUG BREAKDOWN AND SERVICES ...",
        "userId": "user-123"  // Optional: fills zero prices from the price catalog
    }

    Response:
    {
        "success": true,
        "data": {
            "services": [{"id": "...", "name": "...", "quantity": 1, "unitPrice": 560.0, "priority": "high"}],
            "total": 560.0
        }
    }
    """
    if req.method == "OPTIONS":
        return _cors_response()

    try:
        data = get_request_json(req)
        report_text = data.get("reportText")
        if not isinstance(report_text, str):
            raise ValidationError(message="Missing reportText in request", field="reportText")

        result = asyncio.run(_parse_estimate_async(report_text, data.get("userId")))
        return _json_response(success_response(result))

    except ValidationError as e:
        return _json_response(
            error_response(e.code, e.message, e.details),
            status=400
        )
    except RugEstimateError as e:
        logger.error("parse_estimate_error", error=e.message, code=e.code)
        return _json_response(
            error_response(e.code, e.message, e.details),
            status=500
        )
    except Exception as e:
        logger.exception("parse_estimate_exception", error=str(e))
        return _json_response(
            error_response(
                ErrorCode.INTERNAL_ERROR,
                f"Failed to parse estimate: {str(e)}"
            ),
            status=500
        )


async def _parse_estimate_async(report_text: str, user_id: Optional[str]) -> Dict[str, Any]:
    """Parse report text, using the user's price catalog when available."""
    catalog = []
    if user_id:
        catalog = await FirestoreService().get_service_prices(user_id)

    review = EstimateReview.from_report(report_text, catalog=catalog)
    return {
        "services": [service.to_dict() for service in review.services],
        "total": review.total(),
    }


@https_fn.on_request(
    timeout_sec=60,
    memory=options.MemoryOption.MB_256,
    region="us-central1"
)
def approve_estimate(req: https_fn.Request) -> https_fn.Response:
    """Approve a reviewed estimate and store it.

    Request body:
    {
        "jobId": "job-123",
        "inspectionId": "insp-456",
        "userId": "user-123",
        "services": [{"id": "...", "name": "...", "quantity": 1, "unitPrice": 560.0, "priority": "high"}]
    }

    Response:
    {
        "success": true,
        "data": {"estimateId": "...", "totalAmount": 560.0}
    }
    """
    if req.method == "OPTIONS":
        return _cors_response()

    try:
        data = get_request_json(req)
        job_id = _require(data, "jobId")
        inspection_id = _require(data, "inspectionId")
        user_id = _require(data, "userId")
        services = _services_from_request(data.get("services"))

        logger.info(
            "approve_request_received",
            job_id=job_id,
            inspection_id=inspection_id,
            user_id=user_id,
            service_count=len(services)
        )

        result = asyncio.run(_approve_estimate_async(job_id, inspection_id, user_id, services))
        return _json_response(success_response(result))

    except ValidationError as e:
        return _json_response(
            error_response(e.code, e.message, e.details),
            status=400
        )
    except RugEstimateError as e:
        logger.error("approve_estimate_error", error=e.message, code=e.code)
        status = 400 if e.code == ErrorCode.EMPTY_ESTIMATE else 500
        return _json_response(
            error_response(e.code, e.message, e.details),
            status=status
        )
    except Exception as e:
        logger.exception("approve_estimate_exception", error=str(e))
        return _json_response(
            error_response(
                ErrorCode.FIRESTORE_WRITE_FAILED,
                f"Failed to approve estimate: {str(e)}"
            ),
            status=500
        )


async def _approve_estimate_async(
    job_id: str,
    inspection_id: str,
    user_id: str,
    services: List[ServiceItem]
) -> Dict[str, Any]:
    """Build the approved estimate and persist it."""
    estimate = EstimateReview(services=services).approve(
        job_id=job_id,
        inspection_id=inspection_id,
        approved_by=user_id
    )
    estimate_id = await FirestoreService().save_approved_estimate(estimate)
    return {"estimateId": estimate_id, "totalAmount": estimate.total_amount}


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "3600"
}


def _cors_response() -> https_fn.Response:
    """Return CORS preflight response."""
    return https_fn.Response(
        "",
        status=204,
        headers=CORS_HEADERS
    )


def _json_response(data: dict, status: int = 200) -> https_fn.Response:
    """Return JSON response with CORS headers."""

    def _json_default(o: Any):
        """JSON serializer for datetimes and Firestore timestamp types."""
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return str(o)

    return https_fn.Response(
        json.dumps(data, default=_json_default),
        status=status,
        mimetype="application/json",
        headers=CORS_HEADERS
    )
