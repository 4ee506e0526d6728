"""Business exceptions shared by the domain, application and infrastructure layers.

The core layer only maps these to HTTP responses; the domain never imports core.
"""
from __future__ import annotations

from typing import Optional, Sequence

from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode


class BusinessException(Exception):
    """Base business exception"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class PurchaseValidationException(BusinessException):
    """Locally recoverable input problem; blocks submission before any network call."""

    def __init__(
        self,
        message: str,
        *,
        code: int = BusinessCode.PARAM_VALIDATION_ERROR,
        error_type: str = "ValidationError",
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=code,
            message=message,
            error_type=error_type,
            details=details,
            field=field,
        )


class MissingSelectionException(PurchaseValidationException):
    def __init__(self, method_id: str | None = None):
        super().__init__(
            "Please select a payment method and option",
            code=BusinessCode.PARAM_MISSING,
            error_type="MissingSelection",
            field="payment_method",
            details={"method_id": method_id} if method_id else None,
        )


class MissingContactException(PurchaseValidationException):
    def __init__(self):
        super().__init__(
            "Please enter your phone number",
            code=BusinessCode.PARAM_MISSING,
            error_type="MissingContact",
            field="phone",
        )


class InvalidContactException(PurchaseValidationException):
    def __init__(self, phone: str):
        super().__init__(
            "Please enter a valid phone number",
            error_type="InvalidContact",
            field="phone",
            details={"phone": phone},
        )


class InvalidAmountException(PurchaseValidationException):
    def __init__(self, amount: object, *, minimum: object = None, maximum: object = None):
        details: dict = {"amount": str(amount)}
        if minimum is not None:
            details["minimum"] = str(minimum)
        if maximum is not None:
            details["maximum"] = str(maximum)
        super().__init__(
            "Invalid amount. Please check your support amount.",
            error_type="InvalidAmount",
            field="amount",
            details=details,
        )


class UnsupportedRequiredFieldException(PurchaseValidationException):
    def __init__(self, method_code: str, fields: Sequence[str]):
        super().__init__(
            f"Payment method {method_code} requires unsupported field(s): {', '.join(fields)}",
            error_type="UnsupportedRequiredField",
            field="required_fields",
            details={"method_code": method_code, "fields": list(fields)},
        )


class DirectoryUnavailableException(BusinessException):
    def __init__(self, resource: str, *, status_code: int | None = None, reason: str | None = None):
        super().__init__(
            code=PaymentCode.DIRECTORY_UNAVAILABLE,
            message=f"Failed to load {resource}. Please try again.",
            error_type="DirectoryUnavailable",
            details={
                "resource": resource,
                "status_code": status_code,
                "reason": reason,
                "retryable": True,
            },
        )
        self.resource = resource
        self.status_code = status_code


class GatewayException(BusinessException):
    """Upstream answered, but rejected the request (non-2xx or unusable body)."""

    DEFAULT_MESSAGE = "Failed to initiate payment. Please try again or contact support."

    def __init__(self, status_code: int | None, message: str | None = None):
        super().__init__(
            code=PaymentCode.GATEWAY_ERROR,
            message=message or self.DEFAULT_MESSAGE,
            error_type="GatewayError",
            details={"status_code": status_code, "retryable": True},
        )
        self.status_code = status_code


class GatewayUnreachableException(BusinessException):
    def __init__(self, reason: str | None = None):
        super().__init__(
            code=PaymentCode.GATEWAY_UNREACHABLE,
            message="Network error: Unable to connect to payment service",
            error_type="GatewayUnreachable",
            details={"reason": reason, "retryable": True},
        )


class UnauthenticatedException(BusinessException):
    def __init__(self):
        super().__init__(
            code=BusinessCode.UNAUTHORIZED,
            message="User not authenticated. Please log in.",
            error_type="Unauthenticated",
        )


class PurchaseNotFoundException(BusinessException):
    def __init__(self, record_id: str):
        super().__init__(
            code=BusinessCode.NOT_FOUND,
            message="Purchase not found",
            error_type="PurchaseNotFound",
            details={"record_id": record_id},
        )
