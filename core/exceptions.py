"""
Domain error taxonomy and the DRF exception handler.

Services raise these exceptions; views let them propagate and the handler
below renders every error the same way:

    {"success": false, "message": "...", "errors": {...}, "status_code": 400}
"""

import logging

from django.utils.translation import gettext_lazy as _
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class NotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = _("Resource not found.")
    default_code = "not_found"


class AuthorizationError(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = _("You are not allowed to perform this action.")
    default_code = "forbidden"


class InsufficientStockError(APIException):
    """Raised when a product (or variant) cannot cover the requested quantity."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "insufficient_stock"

    def __init__(self, product_name, available=None):
        self.product_name = product_name
        self.available = available
        if available is None:
            detail = _("Insufficient stock for %(name)s.") % {"name": product_name}
        else:
            detail = _("Insufficient stock for %(name)s. Available: %(available)s.") % {
                "name": product_name,
                "available": available,
            }
        super().__init__(detail)


class PaymentStateError(APIException):
    """The order's payment state forbids the requested transition."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = _("The order's payment state does not allow this operation.")
    default_code = "payment_state"


class ConcurrencyConflictError(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = _("The resource was modified by another request. Reload and retry.")
    default_code = "conflict"


class ExternalServiceError(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = _("An external service failed to process the request.")
    default_code = "external_service_error"


class PaymentGatewayUnavailable(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = _("Card payments are not available right now.")
    default_code = "payment_gateway_unavailable"


def _first_message(data):
    if isinstance(data, dict):
        if "detail" in data:
            return str(data["detail"])
        for value in data.values():
            return _first_message(value)
    if isinstance(data, list) and data:
        return _first_message(data[0])
    return str(data)


def custom_exception_handler(exc, context):
    """
    Wrap DRF's default handler and render errors as an envelope.

    `message` carries the first human-readable error, `errors` the full DRF
    payload (field errors included) and `status_code` mirrors the HTTP status.
    Exceptions DRF does not know about are logged and left to Django (500).
    """
    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.exception(
            "Unhandled error in %s", view.__class__.__name__ if view else "unknown view"
        )
        return None

    if response.status_code >= 500:
        logger.error("%s: %s", exc.__class__.__name__, exc)

    data = response.data
    response.data = {
        "success": False,
        "message": _first_message(data),
        "errors": data,
        "status_code": response.status_code,
    }
    return response
