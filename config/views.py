import structlog
from django.db import connection, DatabaseError
from django.http import JsonResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.groups.services.exceptions import PersistenceError

logger = structlog.get_logger(__name__)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def health_check(request):
    """Report whether the app and its database are reachable."""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except DatabaseError:
        logger.exception("health_check_failed")
        return Response(
            {'status': 'unhealthy', 'database': 'unavailable'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE
        )
    return Response({'status': 'ok', 'database': 'ok'})


def api_exception_handler(exc, context):
    """
    DRF exception handler that also maps store failures to 500.

    Anything DRF already knows how to render is passed through unchanged.
    """
    response = exception_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, PersistenceError):
        view = context.get('view')
        logger.error(
            "persistence_failure",
            view=view.__class__.__name__ if view else None,
            error=str(exc),
        )
        return Response(
            {'error': 'Storage temporarily unavailable'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return None


def error_404(request, exception):
    """Custom 404 handler."""
    return JsonResponse({
        'error': 'Not found',
        'status': 404
    }, status=404)


def error_500(request):
    """Custom 500 handler."""
    return JsonResponse({
        'error': 'Internal server error',
        'status': 500
    }, status=500)
