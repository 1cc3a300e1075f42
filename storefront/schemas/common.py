"""Health and error envelopes shared by every storefront route."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Liveness answer for load balancers and uptime monitors."""

    model_config = ConfigDict(from_attributes=True)

    status: HealthStatus = Field(description="Whether the payments service process is up")
    timestamp: datetime = Field(default_factory=utc_now, description="When the answer was produced")
    version: str = Field(default="0.1.0", description="storefront-payments release")


class CheckResult(BaseModel):
    """Outcome of probing one backing service during readiness."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "examples": [
                {"name": "database", "healthy": True, "latency_ms": 12.4},
                {"name": "payment_processor", "healthy": False, "error": "MERCADOPAGO_ACCESS_TOKEN is not set"},
            ]
        },
    )

    name: str = Field(description="Backing service: database (Supabase) or payment_processor (Mercado Pago)")
    healthy: bool = Field(description="True when the service answered as expected")
    latency_ms: float | None = Field(default=None, description="Round trip of the check, in milliseconds")
    error: str | None = Field(default=None, description="Why the check failed")


class ReadinessResponse(BaseModel):
    """Readiness answer; unhealthy as soon as one backing service is."""

    model_config = ConfigDict(from_attributes=True)

    status: HealthStatus = Field(description="Combined readiness of carts, purchases and checkout")
    timestamp: datetime = Field(default_factory=utc_now, description="When the checks ran")
    checks: list[CheckResult] = Field(default_factory=list, description="One entry per backing service")


class ErrorDetail(BaseModel):
    """Points at the cart line, field or purchase an error is about."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "examples": [
                {
                    "loc": ["items", "0", "unitPrice"],
                    "msg": "Unit price must be a positive number",
                    "type": "invalid_cart",
                },
                {"loc": ["userId"], "msg": "A user id is required to create a payment", "type": "invalid_cart"},
            ]
        },
    )

    loc: list[str] | None = Field(
        default=None,
        description='Path to the offending input, e.g. ["items", "2", "quantity"] for the third cart line',
    )
    msg: str = Field(description="What the buyer or frontend has to fix")
    type: str = Field(description="Error category, usually invalid_cart")


class ErrorResponse(BaseModel):
    """Body of every non-2xx answer, including cart rejections and missing purchases.

    Processor failures never carry details; the processor's own message only
    goes to the logs.
    """

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "examples": [
                {
                    "error": "invalid_cart",
                    "message": "Quantity must be a positive integer",
                    "details": [
                        {
                            "loc": ["items", "1", "quantity"],
                            "msg": "Quantity must be a positive integer",
                            "type": "invalid_cart",
                        }
                    ],
                },
                {"error": "not_found", "message": "Purchase pay_123 not found"},
                {
                    "error": "payment_processor_error",
                    "message": "Payment processor unavailable, please try again later",
                },
            ]
        },
    )

    error: str = Field(description="invalid_cart, not_found, payment_processor_error, http_error or internal_error")
    message: str = Field(description="Text safe to show the buyer")
    details: list[ErrorDetail] | None = Field(default=None, description="Per-field problems for rejected carts")
    request_id: str | None = Field(default=None, description="X-Request-ID echoed back for support tickets")
    timestamp: datetime = Field(default_factory=utc_now, description="When the error was produced")

    @classmethod
    def from_exception(
        cls,
        error_type: str,
        message: str,
        details: list[dict[str, Any]] | None = None,
        request_id: str | None = None,
    ) -> "ErrorResponse":
        """Build the envelope from an APIError's fields.

        Detail dicts may be partial: a missing msg falls back to the dict's
        repr and a missing type to "error".
        """
        error_details = None
        if details:
            error_details = [
                ErrorDetail(
                    loc=d.get("loc"),
                    msg=d.get("msg", str(d)),
                    type=d.get("type", "error"),
                )
                for d in details
            ]

        return cls(
            error=error_type,
            message=message,
            details=error_details,
            request_id=request_id,
        )
