from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from gateway import GatewayError


def gateway_exception_handler(exc, context):
    """DRF's handler, plus hosted-backend failures surfaced verbatim as 502."""
    if isinstance(exc, GatewayError):
        return Response({"error": exc.message}, status=status.HTTP_502_BAD_GATEWAY)
    return exception_handler(exc, context)
