import logging

from django.core.exceptions import ObjectDoesNotExist
from django.http import Http404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class ReglaNegocioError(ValueError):
    """Una operación viola una regla del negocio (cargo ya pagado, cupos agotados, etc.)."""


def exception_handler(exc, context):
    """
    Extiende el handler de DRF: los DoesNotExist de los servicios responden 404
    y los ValueError (incluye ReglaNegocioError) responden 400 con su mensaje.
    """
    if isinstance(exc, ObjectDoesNotExist):
        exc = Http404(str(exc))

    response = drf_exception_handler(exc, context)
    if response is not None:
        return response

    if isinstance(exc, ValueError):
        view = context.get("view")
        logger.info("Regla de negocio rechazada en %s: %s", view.__class__.__name__ if view else "-", exc)
        return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

    return None
