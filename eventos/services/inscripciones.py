# eventos/services/inscripciones.py
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from cobranzas.models import MovimientoFinanciero
from cobranzas.services.finanzas import registrar_ingreso
from cobranzas.services.periodos import redondear
from core.exceptions import ReglaNegocioError
from core.models import Comprobante
from core.services.auditoria import registrar_actividad
from core.services.correlativos import siguiente_codigo
from eventos.models import Evento, Inscripcion, Promocion, Sesion

logger = logging.getLogger(__name__)

MAX_PERSONAS = 10


def precio_escalonado(precio, personas: int) -> Decimal:
    """1ra persona precio completo, 2da al 50%, desde la 3ra precio completo."""
    if personas <= 0:
        return Decimal("0")
    total = precio
    if personas > 1:
        total += precio * Decimal("0.5")
    if personas > 2:
        total += precio * (personas - 2)
    return redondear(total)


def promocion_aplicable(promocion: Promocion, personas: int, codigo: str = "", hoy: date | None = None) -> bool:
    if not promocion.activa:
        return False
    hoy = hoy or timezone.localdate()
    acompanantes = personas - 1
    if promocion.tipo == "codigo":
        return bool(codigo) and codigo.strip().upper() == promocion.codigo.strip().upper()
    if promocion.tipo == "acompanantes":
        if acompanantes < (promocion.minimo_acompanantes or 0):
            return False
        return promocion.maximo_acompanantes is None or acompanantes <= promocion.maximo_acompanantes
    if promocion.tipo == "early_bird":
        return promocion.fecha_vencimiento is not None and hoy <= promocion.fecha_vencimiento
    if promocion.tipo == "grupal":
        return personas >= (promocion.minimo_inscripciones or 0)
    # porcentaje / custom: basta con que esté activa
    return True


def aplicar_promocion(precio: Decimal, promocion: Promocion) -> Decimal:
    if promocion.tipo_descuento == "fijo":
        if promocion.precio_final is None:
            return precio
        return min(precio, promocion.precio_final)
    porcentaje = promocion.monto_descuento or Decimal("0")
    return redondear(max(Decimal("0"), precio * (100 - porcentaje) / 100))


def calcular_precio(evento: Evento, sesiones, personas: int, codigo: str = "", hoy: date | None = None) -> dict:
    """
    Precio por sesión con la escala por persona; si hay promociones aplicables
    se usa la que deja el menor total. Sin sesiones se cobra el precio del evento.
    """
    precios = [s.precio for s in sesiones] or [evento.precio]
    subtotal = sum((precio_escalonado(precio, personas) for precio in precios), Decimal("0"))
    mejor, total = None, subtotal
    for promocion in evento.promociones.all():
        if not promocion_aplicable(promocion, personas, codigo, hoy):
            continue
        con_promo = sum((precio_escalonado(aplicar_promocion(precio, promocion), personas) for precio in precios), Decimal("0"))
        if con_promo < total:
            mejor, total = promocion, con_promo
    return {
        "subtotal": redondear(subtotal),
        "descuento": redondear(subtotal - total),
        "total": redondear(total),
        "promocion": mejor,
    }


@transaction.atomic
def crear_evento(datos: dict, sesiones: list[dict] | None = None, promociones: list[dict] | None = None, usuario=None) -> Evento:
    if datos["fecha_fin"] < datos["fecha_inicio"]:
        raise ReglaNegocioError("La fecha de fin no puede ser anterior a la de inicio")
    if not datos.get("cupos_ilimitados") and not datos.get("cupos_maximos"):
        raise ReglaNegocioError("Indique los cupos máximos o marque cupos ilimitados")
    creador = usuario if getattr(usuario, "is_authenticated", False) else None
    evento = Evento.objects.create(**datos, creado_por=creador, modificado_por=creador)
    if evento.cupos_ilimitados:
        evento.cupos_maximos = evento.cupos_disponibles = None
    else:
        evento.cupos_disponibles = evento.cupos_maximos
    evento.save(update_fields=["cupos_maximos", "cupos_disponibles"])
    for sesion in sesiones or []:
        Sesion.objects.create(evento=evento, **sesion)
    for promocion in promociones or []:
        Promocion.objects.create(evento=evento, **promocion)
    registrar_actividad(usuario, "CREAR_EVENTO", "eventos", objeto=evento, details=evento.titulo)
    return evento


@transaction.atomic
def actualizar_evento(evento: Evento, datos: dict, usuario=None) -> Evento:
    """Al cambiar los cupos máximos, los disponibles se ajustan en la misma diferencia."""
    evento = Evento.objects.select_for_update().get(pk=evento.pk)
    ocupados = None if evento.cupos_ilimitados else (evento.cupos_maximos or 0) - (evento.cupos_disponibles or 0)
    for campo, valor in datos.items():
        setattr(evento, campo, valor)
    if evento.cupos_ilimitados:
        evento.cupos_maximos = evento.cupos_disponibles = None
    elif "cupos_maximos" in datos or "cupos_ilimitados" in datos:
        if not evento.cupos_maximos:
            raise ReglaNegocioError("Indique los cupos máximos o marque cupos ilimitados")
        if ocupados is None:
            ocupados = sum(i.cupos for i in evento.inscripciones.exclude(estado=Inscripcion.Estado.CANCELADO))
        if evento.cupos_maximos < ocupados:
            raise ReglaNegocioError(f"Ya hay {ocupados} cupos ocupados")
        evento.cupos_disponibles = evento.cupos_maximos - ocupados
    evento.modificado_por = usuario if getattr(usuario, "is_authenticated", False) else None
    evento.save()
    registrar_actividad(usuario, "ACTUALIZAR_EVENTO", "eventos", objeto=evento, campos=sorted(datos))
    return evento


def cambiar_estado(evento: Evento, estado: str, usuario=None) -> Evento:
    if estado not in Evento.Estado.values:
        raise ReglaNegocioError(f"Estado inválido: {estado}")
    evento.estado = estado
    evento.save(update_fields=["estado", "updated_at"])
    registrar_actividad(usuario, "CAMBIAR_ESTADO_EVENTO", "eventos", objeto=evento, estado=estado)
    return evento


@transaction.atomic
def inscribir(
    evento_id: int, personas: list[dict], sesion_ids: list[int] | None = None, empadronado=None,
    codigo: str = "", observaciones: str = "", usuario=None,
) -> Inscripcion:
    """Una inscripción por grupo: el titular más sus acompañantes ocupan 1 + acompañantes cupos."""
    evento = Evento.objects.select_for_update().get(pk=evento_id)
    if evento.estado != Evento.Estado.ACTIVO:
        raise ReglaNegocioError("El evento no acepta inscripciones")
    if not personas or len(personas) > MAX_PERSONAS:
        raise ReglaNegocioError(f"Se admiten de 1 a {MAX_PERSONAS} personas por inscripción")
    if any(not (p.get("nombre") or "").strip() or not (p.get("dni") or "").strip() for p in personas):
        raise ReglaNegocioError("Complete el nombre y DNI de todas las personas")

    sesiones = list(evento.sesiones.filter(pk__in=sesion_ids or []))
    if len(sesiones) != len(set(sesion_ids or [])):
        raise ReglaNegocioError("Alguna sesión no pertenece al evento")
    if evento.sesiones.exists() and not sesiones:
        raise ReglaNegocioError("Debe seleccionar al menos una sesión")

    cupos = len(personas)
    if not evento.cupos_ilimitados:
        if (evento.cupos_disponibles or 0) < cupos:
            raise ReglaNegocioError("No hay cupos suficientes disponibles")
        evento.cupos_disponibles -= cupos
        evento.save(update_fields=["cupos_disponibles", "updated_at"])

    precio = calcular_precio(evento, sesiones, cupos, codigo)
    titular = personas[0]
    inscripcion = Inscripcion.objects.create(
        evento=evento,
        empadronado=empadronado,
        nombre=titular["nombre"].strip(),
        dni=titular["dni"].strip(),
        acompanantes=cupos - 1,
        personas=[{"nombre": p["nombre"].strip(), "dni": p["dni"].strip()} for p in personas],
        promocion=precio["promocion"],
        subtotal=precio["subtotal"],
        descuento=precio["descuento"],
        monto_total=precio["total"],
        observaciones=observaciones or "",
    )
    inscripcion.sesiones.set(sesiones)
    registrar_actividad(usuario, "INSCRIBIR_EVENTO", "eventos", objeto=inscripcion, evento=evento.pk, cupos=cupos, total=precio["total"])
    return inscripcion


@transaction.atomic
def registrar_pago_inscripcion(inscripcion_id: int, metodo_pago: str = "transferencia", monto=None, usuario=None) -> Inscripcion:
    """Confirma la inscripción, emite el recibo REC-<año>-NNNNNN y registra el ingreso."""
    inscripcion = Inscripcion.objects.select_for_update().select_related("evento").get(pk=inscripcion_id)
    if inscripcion.estado == Inscripcion.Estado.CANCELADO:
        raise ReglaNegocioError("La inscripción está cancelada")
    if inscripcion.pago_realizado:
        raise ReglaNegocioError("La inscripción ya fue pagada")
    monto = redondear(monto if monto is not None else inscripcion.monto_total)
    if monto < 0:
        raise ReglaNegocioError("El monto no puede ser negativo")

    evento = inscripcion.evento
    anio = timezone.localdate().year
    sesiones = list(inscripcion.sesiones.all())
    items = [
        {
            "descripcion": f"Inscripción a '{evento.titulo}' - sesión {s.fecha:%d/%m/%Y} {s.hora_inicio:%H:%M}",
            "cantidad": inscripcion.cupos,
            "precio_unitario": s.precio,
            "subtotal": precio_escalonado(s.precio, inscripcion.cupos),
        }
        for s in sesiones
    ] or [{
        "descripcion": f"Inscripción a '{evento.titulo}'",
        "cantidad": inscripcion.cupos,
        "precio_unitario": evento.precio,
        "subtotal": inscripcion.subtotal,
    }]
    if inscripcion.descuento:
        items.append({"descripcion": "Promoción", "cantidad": 1, "precio_unitario": -inscripcion.descuento, "subtotal": -inscripcion.descuento})

    recibo = Comprobante.objects.create(
        codigo=siguiente_codigo(f"receipt-{anio}", f"REC-{anio}"),
        tipo="evento",
        empadronado=inscripcion.empadronado,
        cliente_nombre=inscripcion.nombre,
        items=items,
        total=monto,
        metodo_pago=metodo_pago,
        referencia=f"inscripcion-{inscripcion.pk}",
    )
    inscripcion.pago_realizado = True
    inscripcion.fecha_pago = timezone.now()
    inscripcion.monto_pagado = monto
    inscripcion.metodo_pago = metodo_pago
    inscripcion.estado = Inscripcion.Estado.CONFIRMADO
    inscripcion.comprobante = recibo
    inscripcion.save()
    if monto > 0:
        registrar_ingreso(
            "evento", monto, f"Inscripción {evento.titulo} - {inscripcion.nombre}",
            usuario=usuario, metodo_pago=metodo_pago, numero_comprobante=recibo.codigo,
            origen=MovimientoFinanciero.Origen.EVENTO,
        )
    registrar_actividad(usuario, "PAGAR_INSCRIPCION", "eventos", objeto=inscripcion, comprobante=recibo.codigo, monto=monto)
    return inscripcion


@transaction.atomic
def cancelar_inscripcion(inscripcion_id: int, usuario=None) -> Inscripcion:
    inscripcion = Inscripcion.objects.select_for_update().get(pk=inscripcion_id)
    if inscripcion.estado == Inscripcion.Estado.CANCELADO:
        raise ReglaNegocioError("La inscripción ya está cancelada")
    inscripcion.estado = Inscripcion.Estado.CANCELADO
    inscripcion.save(update_fields=["estado"])
    evento = Evento.objects.select_for_update().get(pk=inscripcion.evento_id)
    if not evento.cupos_ilimitados and evento.cupos_disponibles is not None:
        evento.cupos_disponibles += inscripcion.cupos
        evento.save(update_fields=["cupos_disponibles", "updated_at"])
    registrar_actividad(usuario, "CANCELAR_INSCRIPCION", "eventos", objeto=inscripcion)
    return inscripcion


def marcar_asistencia(inscripcion: Inscripcion, asistio: bool, usuario=None) -> Inscripcion:
    if inscripcion.estado == Inscripcion.Estado.CANCELADO:
        raise ReglaNegocioError("La inscripción está cancelada")
    inscripcion.estado = Inscripcion.Estado.ASISTIO if asistio else Inscripcion.Estado.NO_ASISTIO
    inscripcion.save(update_fields=["estado"])
    registrar_actividad(usuario, "ASISTENCIA_EVENTO", "eventos", objeto=inscripcion, asistio=asistio)
    return inscripcion


def estadisticas() -> dict:
    vigentes = Inscripcion.objects.exclude(estado=Inscripcion.Estado.CANCELADO)
    ingresos = Inscripcion.objects.filter(pago_realizado=True).aggregate(s=Sum("monto_pagado"))["s"] or Decimal("0")
    finalizados = Evento.objects.filter(estado=Evento.Estado.FINALIZADO).count()
    asistieron = Inscripcion.objects.filter(estado=Inscripcion.Estado.ASISTIO).count()
    popular = (
        Evento.objects.annotate(inscritos=Count("inscripciones", filter=~Q(inscripciones__estado=Inscripcion.Estado.CANCELADO)))
        .filter(inscritos__gt=0).order_by("-inscritos").first()
    )
    return {
        "total_eventos": Evento.objects.count(),
        "eventos_activos": Evento.objects.filter(estado=Evento.Estado.ACTIVO).count(),
        "total_inscripciones": vigentes.count(),
        "ingresos_totales": redondear(ingresos),
        "promedio_asistencia": round(asistieron / finalizados * 100, 2) if finalizados else 0,
        "evento_mas_popular": {"titulo": popular.titulo, "inscritos": popular.inscritos} if popular else None,
    }
