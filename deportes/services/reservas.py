# deportes/services/reservas.py
from __future__ import annotations

import logging
import re
from collections import Counter
from datetime import datetime, timedelta
from decimal import Decimal
from urllib.parse import quote

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from cobranzas.models import MovimientoFinanciero
from cobranzas.services.finanzas import registrar_ingreso
from cobranzas.services.periodos import redondear
from core.exceptions import ReglaNegocioError
from core.services.auditoria import registrar_actividad
from deportes.models import Cancha, ConfiguracionDeportes, Reserva

logger = logging.getLogger(__name__)

ESTADOS_INACTIVOS = (Reserva.Estado.CANCELADO, Reserva.Estado.NO_SHOW)
INTERVALO_DIAS = {"semanal": 7, "quincenal": 14, "mensual": 30}


def calcular_precio(cancha: Cancha, duracion_horas, es_aportante: bool) -> dict:
    """
    base = precio_hora * horas; la luz depende del tramo de duración (<=1h, <=2h, más);
    el descuento de aportante se aplica sobre base + luz.
    """
    duracion = Decimal(str(duracion_horas))
    base = cancha.precio_hora * duracion
    if duracion <= 1:
        luz = cancha.luz_1h
    elif duracion <= 2:
        luz = cancha.luz_2h
    else:
        luz = cancha.luz_3h
    descuento = (base + luz) * cancha.tarifa_aportante / 100 if es_aportante else Decimal("0")
    return {
        "base": redondear(base),
        "luz": redondear(luz),
        "descuento_aportante": redondear(descuento),
        "total": redondear(max(Decimal("0"), base + luz - descuento)),
    }


def duracion_en_horas(inicio: datetime, fin: datetime) -> Decimal:
    return redondear(Decimal((fin - inicio).total_seconds()) / 3600)


def validar_disponibilidad(cancha: Cancha, inicio: datetime, fin: datetime, excluir_id=None) -> bool:
    """No debe cruzarse (buffer incluido) con reservas vigentes de la misma cancha."""
    buffer = timedelta(minutes=cancha.buffer_minutos)
    conflictos = Reserva.objects.filter(
        cancha=cancha, fecha_inicio__lt=fin + buffer, fecha_fin__gt=inicio - buffer
    ).exclude(estado__in=ESTADOS_INACTIVOS)
    if excluir_id is not None:
        conflictos = conflictos.exclude(pk=excluir_id)
    return not conflictos.exists()


def validar_limite_diario(dni: str, inicio: datetime, config: ConfiguracionDeportes | None = None, excluir_id=None) -> bool:
    config = config or ConfiguracionDeportes.get_solo()
    del_dia = Reserva.objects.filter(dni=dni, fecha_inicio__date=timezone.localtime(inicio).date()).exclude(
        estado__in=ESTADOS_INACTIVOS
    )
    if excluir_id is not None:
        del_dia = del_dia.exclude(pk=excluir_id)
    return del_dia.count() < config.reservas_por_persona_por_dia


def validar_horario(cancha: Cancha, inicio: datetime, fin: datetime, config: ConfiguracionDeportes) -> None:
    inicio_local, fin_local = timezone.localtime(inicio), timezone.localtime(fin)
    if inicio_local.date() != fin_local.date():
        raise ReglaNegocioError("La reserva debe empezar y terminar el mismo día")
    apertura = max(config.apertura, cancha.horario_inicio)
    cierre = min(config.cierre, cancha.horario_fin)
    if inicio_local.time() < apertura or fin_local.time() > cierre:
        raise ReglaNegocioError(f"Fuera del horario de atención ({apertura:%H:%M} - {cierre:%H:%M})")
    if inicio_local.time() > config.ultima_reserva:
        raise ReglaNegocioError(f"La última reserva del día empieza a las {config.ultima_reserva:%H:%M}")


def _validar_reserva(cancha, inicio, fin, dni, config, excluir_id=None) -> Decimal:
    if fin <= inicio:
        raise ReglaNegocioError("La hora de fin debe ser posterior a la de inicio")
    if not cancha.activa:
        raise ReglaNegocioError(f"La cancha {cancha.nombre} no está disponible")
    duracion = duracion_en_horas(inicio, fin)
    if duracion < cancha.hora_minima or duracion > cancha.hora_maxima:
        raise ReglaNegocioError(f"La duración debe estar entre {cancha.hora_minima} y {cancha.hora_maxima} horas")
    validar_horario(cancha, inicio, fin, config)
    if not validar_disponibilidad(cancha, inicio, fin, excluir_id):
        raise ReglaNegocioError("Este horario ya está ocupado para la cancha seleccionada")
    if dni and not validar_limite_diario(dni, inicio, config, excluir_id):
        raise ReglaNegocioError(f"Se alcanzó el límite de {config.reservas_por_persona_por_dia} reservas por día para el DNI {dni}")
    return duracion


@transaction.atomic
def crear_reserva(datos: dict, usuario=None) -> Reserva:
    """
    `datos`: cancha, nombre_cliente, telefono, fecha_inicio, fecha_fin y opcionalmente
    empadronado, dni, es_aportante, observaciones, frecuencia + recurrente_hasta.
    """
    config = ConfiguracionDeportes.get_solo()
    cancha = Cancha.objects.select_for_update().get(pk=datos["cancha"].pk)
    inicio, fin = datos["fecha_inicio"], datos["fecha_fin"]
    duracion = _validar_reserva(cancha, inicio, fin, datos.get("dni", ""), config)

    frecuencia = datos.get("frecuencia") or ""
    if frecuencia and not datos.get("recurrente_hasta"):
        raise ReglaNegocioError("Las reservas recurrentes requieren fecha de fin")

    precio = calcular_precio(cancha, duracion, datos.get("es_aportante", False))
    reserva = Reserva.objects.create(
        **{k: v for k, v in datos.items() if k != "cancha"},
        cancha=cancha,
        duracion_horas=duracion,
        precio_base=precio["base"],
        precio_luz=precio["luz"],
        descuento_aportante=precio["descuento_aportante"],
        precio_total=precio["total"],
        saldo_pendiente=precio["total"],
        created_by=usuario if getattr(usuario, "is_authenticated", False) else None,
    )
    generadas = generar_reservas_recurrentes(reserva) if frecuencia else []
    registrar_actividad(
        usuario, "CREAR_RESERVA", "deportes", objeto=reserva,
        details=str(reserva), total=reserva.precio_total, recurrentes=len(generadas),
    )
    return reserva


def generar_reservas_recurrentes(base: Reserva) -> list[Reserva]:
    """Repite la reserva cada 7/14/30 días hasta `recurrente_hasta`; los horarios ocupados se omiten."""
    intervalo = timedelta(days=INTERVALO_DIAS[base.frecuencia])
    duracion = base.fecha_fin - base.fecha_inicio
    actual = base.fecha_inicio + intervalo
    generadas = []
    while timezone.localtime(actual).date() <= base.recurrente_hasta:
        if validar_disponibilidad(base.cancha, actual, actual + duracion):
            generadas.append(Reserva.objects.create(
                cancha=base.cancha, empadronado=base.empadronado, nombre_cliente=base.nombre_cliente,
                dni=base.dni, telefono=base.telefono, fecha_inicio=actual, fecha_fin=actual + duracion,
                duracion_horas=base.duracion_horas, es_aportante=base.es_aportante,
                precio_base=base.precio_base, precio_luz=base.precio_luz,
                descuento_aportante=base.descuento_aportante, precio_total=base.precio_total,
                saldo_pendiente=base.precio_total, frecuencia=base.frecuencia,
                recurrente_hasta=base.recurrente_hasta, reserva_padre=base,
                observaciones=base.observaciones, created_by=base.created_by,
            ))
        else:
            logger.info("Reserva recurrente omitida por cruce: cancha %s %s", base.cancha_id, actual)
        actual += intervalo
    return generadas


@transaction.atomic
def registrar_pago_reserva(
    reserva_id: int, metodo_pago: str, numero_operacion: str = "", voucher_url: str = "",
    es_prepago: bool = False, monto_prepago=None, usuario=None,
) -> Reserva:
    """Pago total (o adelanto) de una reserva; genera el ingreso en finanzas."""
    reserva = Reserva.objects.select_for_update().select_related("cancha").get(pk=reserva_id)
    if reserva.estado != Reserva.Estado.PENDIENTE:
        raise ReglaNegocioError(f"No se puede pagar una reserva en estado {reserva.estado}")
    saldo = reserva.precio_total - reserva.monto_pagado
    if es_prepago:
        if monto_prepago is None:
            raise ValueError("monto_prepago es requerido para un adelanto")
        monto = redondear(monto_prepago)
        if monto <= 0 or monto > saldo:
            raise ReglaNegocioError(f"El adelanto debe ser mayor a cero y no exceder S/{saldo}")
    else:
        monto = saldo

    reserva.metodo_pago = metodo_pago
    reserva.numero_operacion = numero_operacion or ""
    reserva.voucher_url = voucher_url or ""
    reserva.fecha_pago = timezone.now()
    reserva.es_prepago = es_prepago
    reserva.monto_pagado = reserva.monto_pagado + monto
    reserva.saldo_pendiente = max(Decimal("0"), reserva.precio_total - reserva.monto_pagado)
    if reserva.saldo_pendiente == 0:
        reserva.estado = Reserva.Estado.PAGADO

    if monto > 0:
        cancha = reserva.cancha
        reserva.ingreso = registrar_ingreso(
            "alquiler", monto,
            f"Reserva {cancha.nombre} - {reserva.nombre_cliente} ({cancha.get_tipo_display()})",
            usuario=usuario, metodo_pago=metodo_pago, numero_operacion=reserva.numero_operacion,
            numero_comprobante=reserva.numero_comprobante,
            origen=MovimientoFinanciero.Origen.RESERVA,
        )
    reserva.save()
    registrar_actividad(usuario, "PAGAR_RESERVA", "deportes", objeto=reserva, monto=monto, saldo=reserva.saldo_pendiente)
    return reserva


@transaction.atomic
def cancelar_reserva(reserva_id: int, motivo: str = "", usuario=None, forzar: bool = False, ahora: datetime | None = None) -> Reserva:
    """Cancela hasta `horas_antes_para_cancelar` antes del inicio; el personal puede forzarla."""
    ahora = ahora or timezone.now()
    reserva = Reserva.objects.select_for_update().get(pk=reserva_id)
    if reserva.estado in (Reserva.Estado.CANCELADO, Reserva.Estado.NO_SHOW, Reserva.Estado.COMPLETADO):
        raise ReglaNegocioError(f"La reserva ya está en estado {reserva.estado}")
    config = ConfiguracionDeportes.get_solo()
    limite = reserva.fecha_inicio - timedelta(hours=config.horas_antes_para_cancelar)
    if not forzar and ahora > limite:
        raise ReglaNegocioError(f"Solo se puede cancelar hasta {config.horas_antes_para_cancelar} horas antes del inicio")
    reserva.estado = Reserva.Estado.CANCELADO
    reserva.motivo_cancelacion = motivo or ""
    reserva.save(update_fields=["estado", "motivo_cancelacion", "updated_at"])
    registrar_actividad(usuario, "CANCELAR_RESERVA", "deportes", objeto=reserva, details=motivo)
    return reserva


@transaction.atomic
def completar_reserva(reserva_id: int, usuario=None) -> Reserva:
    reserva = Reserva.objects.select_for_update().get(pk=reserva_id)
    if reserva.estado != Reserva.Estado.PAGADO:
        raise ReglaNegocioError("Solo se completan reservas pagadas")
    reserva.estado = Reserva.Estado.COMPLETADO
    reserva.save(update_fields=["estado", "updated_at"])
    registrar_actividad(usuario, "COMPLETAR_RESERVA", "deportes", objeto=reserva)
    return reserva


@transaction.atomic
def procesar_no_shows(ahora: datetime | None = None) -> int:
    """Las reservas aún pendientes pasada la tolerancia desde su inicio quedan como no-show."""
    ahora = ahora or timezone.now()
    config = ConfiguracionDeportes.get_solo()
    limite = ahora - timedelta(hours=config.horas_para_no_show)
    vencidas = Reserva.objects.select_for_update().filter(estado=Reserva.Estado.PENDIENTE, fecha_inicio__lt=limite)
    ids = list(vencidas.values_list("pk", flat=True))
    if ids:
        Reserva.objects.filter(pk__in=ids).update(estado=Reserva.Estado.NO_SHOW, updated_at=ahora)
        logger.info("%s reservas marcadas como no-show", len(ids))
    return len(ids)


def estadisticas(desde: datetime | None = None, hasta: datetime | None = None) -> dict:
    filtro = Q(estado__in=[Reserva.Estado.PAGADO, Reserva.Estado.COMPLETADO])
    if desde:
        filtro &= Q(fecha_inicio__gte=desde)
    if hasta:
        filtro &= Q(fecha_inicio__lte=hasta)
    pagadas = list(Reserva.objects.filter(filtro).select_related("cancha"))
    canchas = Cancha.objects.count()

    por_cancha = Counter((r.cancha_id, r.cancha.nombre) for r in pagadas)
    por_hora = Counter(f"{timezone.localtime(r.fecha_inicio).hour:02d}:00" for r in pagadas)
    ocupacion = min(100.0, len(pagadas) / (canchas * 30) * 100) if canchas else 0.0
    return {
        "reservas": len(pagadas),
        "ingresos_totales": redondear(sum((r.precio_total for r in pagadas), Decimal("0"))),
        "canchas_mas_usadas": [
            {"cancha_id": cid, "nombre": nombre, "reservas": n} for (cid, nombre), n in por_cancha.most_common(5)
        ],
        "horarios_populares": [{"hora": h, "reservas": n} for h, n in por_hora.most_common(8)],
        "ocupacion_promedio": round(ocupacion, 2),
    }


def comprobante(reserva: Reserva) -> dict:
    inicio, fin = timezone.localtime(reserva.fecha_inicio), timezone.localtime(reserva.fecha_fin)
    return {
        "reserva_id": reserva.pk,
        "numero_comprobante": reserva.numero_comprobante,
        "fecha_emision": timezone.now(),
        "cliente": {"nombre": reserva.nombre_cliente, "dni": reserva.dni, "telefono": reserva.telefono},
        "cancha": {"nombre": reserva.cancha.nombre, "ubicacion": reserva.cancha.get_ubicacion_display()},
        "horario": {
            "fecha": inicio.date(),
            "inicio": inicio.strftime("%H:%M"),
            "fin": fin.strftime("%H:%M"),
            "duracion": reserva.duracion_horas,
        },
        "precio": {
            "base": reserva.precio_base,
            "luz": reserva.precio_luz,
            "descuento_aportante": reserva.descuento_aportante,
            "total": reserva.precio_total,
        },
        "estado": reserva.estado,
        "observaciones": reserva.observaciones,
    }


def enlace_whatsapp(reserva: Reserva) -> str:
    config = ConfiguracionDeportes.get_solo()
    inicio, fin = timezone.localtime(reserva.fecha_inicio), timezone.localtime(reserva.fecha_fin)
    mensaje = config.whatsapp_template.format(
        nombre=reserva.nombre_cliente,
        cancha=reserva.cancha.nombre,
        fecha=inicio.strftime("%d/%m/%Y"),
        hora_inicio=inicio.strftime("%H:%M"),
        hora_fin=fin.strftime("%H:%M"),
        total=reserva.precio_total,
    )
    mensaje += f"\nComprobante: {reserva.numero_comprobante}"
    telefono = re.sub(r"\D", "", reserva.telefono)
    return f"https://wa.me/51{telefono}?text={quote(mensaje)}"
