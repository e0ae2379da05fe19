# cobranzas/services/pasarela.py
"""Preferencias de pago de Mercado Pago para el saldo de un cargo."""
import logging

import mercadopago
from django.conf import settings

from cobranzas.models import Cargo
from core.exceptions import ReglaNegocioError

logger = logging.getLogger(__name__)


class PasarelaNoConfigurada(ReglaNegocioError):
    pass


def _sdk():
    token = getattr(settings, "MERCADOPAGO_ACCESS_TOKEN", "")
    if not token:
        raise PasarelaNoConfigurada("Mercado Pago no está configurado (MERCADOPAGO_ACCESS_TOKEN)")
    return mercadopago.SDK(token)


def datos_preferencia(cargo: Cargo) -> dict:
    empadronado = cargo.empadronado
    frontend = settings.FRONTEND_URL.rstrip("/")
    data = {
        "items": [{
            "id": str(cargo.pk),
            "title": f"Cuota {cargo.periodo} - Padrón {empadronado.numero_padron}",
            "quantity": 1,
            "currency_id": "PEN",
            "unit_price": float(cargo.saldo),
        }],
        "payer": {"name": empadronado.nombre, "surname": empadronado.apellidos},
        "external_reference": f"cargo-{cargo.pk}",
        "back_urls": {
            "success": f"{frontend}/pagos/exito",
            "failure": f"{frontend}/pagos/error",
            "pending": f"{frontend}/pagos/pendiente",
        },
    }
    if settings.MERCADOPAGO_NOTIFICATION_URL:
        data["notification_url"] = settings.MERCADOPAGO_NOTIFICATION_URL
    return data


def crear_preferencia(cargo: Cargo) -> dict:
    if cargo.saldo <= 0:
        raise ReglaNegocioError(f"El cargo {cargo.periodo} no tiene saldo pendiente")
    respuesta = _sdk().preference().create(datos_preferencia(cargo))
    preferencia = respuesta.get("response", {})
    if respuesta.get("status") not in (200, 201):
        logger.error("Mercado Pago rechazó la preferencia del cargo %s: %s", cargo.pk, preferencia)
        raise ReglaNegocioError("No se pudo crear la preferencia de pago")
    return {
        "id": preferencia.get("id"),
        "init_point": preferencia.get("init_point"),
        "sandbox_init_point": preferencia.get("sandbox_init_point"),
        "monto": cargo.saldo,
    }


def procesar_notificacion(data: dict) -> None:
    """Solo se registra: los pagos se concilian manualmente en el módulo de cobranzas."""
    logger.info("Notificación de Mercado Pago recibida: tipo=%s id=%s", data.get("type") or data.get("topic"), (data.get("data") or {}).get("id"))
