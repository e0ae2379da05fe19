# core/services/correlativos.py
from django.db import transaction

from core.models import Correlativo


def formatear_correlativo(numero: int, relleno: int = 6) -> str:
    return str(int(numero or 0)).zfill(relleno)


@transaction.atomic
def siguiente_codigo(clave: str, prefijo: str, relleno: int = 6) -> str:
    """
    Reserva el siguiente número del contador `clave` y lo devuelve formateado.
    Ej.: siguiente_codigo("receipt", "REC-2025") -> "REC-2025-000001", luego "...-000002".
    El prefijo y el relleno solo se usan al crear el contador.
    """
    correlativo, _ = Correlativo.objects.select_for_update().get_or_create(
        clave=clave, defaults={"prefijo": prefijo, "relleno": relleno}
    )
    numero = correlativo.siguiente
    correlativo.siguiente = numero + 1
    correlativo.save(update_fields=["siguiente", "updated_at"])
    return f"{correlativo.prefijo}-{formatear_correlativo(numero, correlativo.relleno)}"
