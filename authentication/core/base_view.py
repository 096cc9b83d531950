import logging
import traceback

from django.conf import settings
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, AuthenticationFailed, NotAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError

from .response import standardized_response

logger = logging.getLogger(__name__)


def flatten_detail(detail):
    """Collapse a single-message list to its string; keep field error maps as-is."""
    if isinstance(detail, list) and len(detail) == 1 and not isinstance(detail[0], (dict, list)):
        return str(detail[0])
    if isinstance(detail, (dict, list)):
        return detail
    return str(detail)


class BaseAPIView(APIView):
    """APIView that renders every failure in the standard response envelope."""

    def _describe_request(self):
        request = getattr(self, "request", None)
        user = getattr(request, "user", None)
        user_id = getattr(user, "uuid", None) or getattr(user, "id", None) or "anonymous"
        return getattr(request, "method", "UNKNOWN"), getattr(request, "path", "UNKNOWN"), user_id

    def _classify(self, exc):
        """Map an exception to ``(status_code, error, error_code)`` or None if unexpected."""
        if isinstance(exc, (AuthenticationFailed, NotAuthenticated)):
            return status.HTTP_401_UNAUTHORIZED, flatten_detail(exc.detail), None
        if isinstance(exc, TokenError):
            return status.HTTP_401_UNAUTHORIZED, 'Invalid or expired token', None
        if isinstance(exc, Http404):
            return status.HTTP_404_NOT_FOUND, str(exc) or "Not found", None
        if isinstance(exc, DjangoPermissionDenied):
            return status.HTTP_403_FORBIDDEN, str(exc) or "Permission denied", None
        if isinstance(exc, APIException):
            code = exc.get_codes()
            return exc.status_code, flatten_detail(exc.detail), code if isinstance(code, str) else None
        return None

    def handle_exception(self, exc):
        method, path, user_id = self._describe_request()
        classified = self._classify(exc)

        if classified is None:
            logger.error("Unexpected error on %s %s (user=%s): %s\n%s",
                         method, path, user_id, exc, traceback.format_exc())
            debug_info = None
            if settings.DEBUG:
                debug_info = {"exception": exc.__class__.__name__, "stack": traceback.format_exc()}
            return Response(
                standardized_response(success=False, error="Internal Server Error", debug=debug_info),
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        status_code, error, error_code = classified
        if status_code >= 403:
            logger.warning("%s on %s %s (user=%s, code=%s): %s",
                           status_code, method, path, user_id, error_code, error)
        elif status_code == status.HTTP_400_BAD_REQUEST:
            logger.warning("Rejected input on %s %s (user=%s): %s", method, path, user_id, error)

        return Response(
            standardized_response(success=False, error=error, error_code=error_code),
            status=status_code,
        )
