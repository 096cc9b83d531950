from django.utils.translation import gettext_lazy as _
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

from .base_view import flatten_detail
from .response import standardized_response


class OwnershipException(APIException):
    """Raised when a merchant or user touches a resource they do not own."""
    status_code = 403
    default_detail = _('You are not authorized to access this resource.')
    default_code = 'not_owner'


class InsufficientStockException(APIException):
    status_code = 400
    default_detail = _('Insufficient stock')
    default_code = 'insufficient_stock'


class EmptyCartException(APIException):
    status_code = 400
    default_detail = _('Cart is empty')
    default_code = 'empty_cart'


class DuplicateReviewException(APIException):
    status_code = 400
    default_detail = _('You have already reviewed this product')
    default_code = 'duplicate_review'


class OrderNotCancellableException(APIException):
    status_code = 400
    default_detail = _('Order can no longer be cancelled')
    default_code = 'order_not_cancellable'


def envelope_exception_handler(exc, context):
    """
    DRF exception handler that wraps the default error payload in the
    standard envelope. Views built on BaseAPIView translate exceptions
    themselves; this covers everything else DRF dispatches.
    """
    response = exception_handler(exc, context)
    if response is None:
        return None

    detail = response.data
    if isinstance(detail, dict) and set(detail.keys()) == {'detail'}:
        detail = detail['detail']
    response.data = standardized_response(success=False, error=flatten_detail(detail))
    return response
