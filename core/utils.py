"""
Helpers shared by the API views.

`envelope_response` builds the `{success, message, data}` body returned by the
order and payment endpoints. Errors use the same keys via
`core.exceptions.custom_exception_handler`.
"""

from rest_framework import status as http_status
from rest_framework.response import Response


def envelope_response(data=None, message="", status=http_status.HTTP_200_OK):
    """
    Return a DRF `Response` wrapped in the success envelope.

    Example:
        >>> envelope_response({"id": 1}, "Order created.", status=201).data
        {'success': True, 'message': 'Order created.', 'data': {'id': 1}}
    """
    return Response(
        {"success": True, "message": str(message), "data": data}, status=status
    )
