# cobranzas/services/ledger.py
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from cobranzas.models import Cargo, ConfiguracionCobranza, Pago, PeriodoGenerado
from cobranzas.services import periodos as p
from core.exceptions import ReglaNegocioError
from core.models import Empadronado
from core.services.auditoria import registrar_actividad
from core.services.notificaciones import notificar_empadronado

logger = logging.getLogger(__name__)

ESTADOS_QUE_ACREDITAN = (Pago.Estado.PENDIENTE, Pago.Estado.APROBADO)


def primer_periodo(empadronado: Empadronado, config: ConfiguracionCobranza | None = None) -> str:
    config = config or ConfiguracionCobranza.get_solo()
    return p.primer_periodo_facturable(empadronado.fecha_ingreso, config.dia_cierre, config.fecha_inicio_cobro)


def recalcular_cargo(cargo: Cargo, save: bool = True) -> Cargo:
    """
    saldo = original + morosidad - pagos (aprobados o pendientes), nunca negativo.
    Los pagos rechazados no cuentan.
    """
    acreditado = cargo.pagos.filter(estado__in=ESTADOS_QUE_ACREDITAN).aggregate(s=Sum("monto"))["s"] or Decimal("0")
    cargo.monto_pagado = p.redondear(acreditado)
    cargo.saldo = max(Decimal("0"), p.redondear(cargo.monto_original + cargo.monto_morosidad - acreditado))
    if cargo.saldo == 0:
        cargo.estado = Cargo.Estado.PAGADO
    elif cargo.es_moroso:
        cargo.estado = Cargo.Estado.MOROSO
    else:
        cargo.estado = Cargo.Estado.PENDIENTE
    if save:
        cargo.save(update_fields=["monto_pagado", "saldo", "estado", "updated_at"])
    return cargo


def generar_cargo(empadronado: Empadronado, periodo: str, config: ConfiguracionCobranza | None = None) -> Cargo | None:
    """Crea el cargo del periodo si corresponde. Devuelve None si no aplica o ya existía."""
    p.validar_periodo(periodo)
    config = config or ConfiguracionCobranza.get_solo()
    if not empadronado.habilitado or periodo < primer_periodo(empadronado, config):
        return None
    cargo, creado = Cargo.objects.get_or_create(
        empadronado=empadronado,
        periodo=periodo,
        defaults={
            "monto_original": config.monto_mensual,
            "saldo": config.monto_mensual,
            "fecha_vencimiento": p.fecha_vencimiento(periodo, config.dia_vencimiento),
        },
    )
    return cargo if creado else None


def _generar_para_todos(periodo: str, config: ConfiguracionCobranza) -> int:
    creados = 0
    for empadronado in Empadronado.objects.filter(habilitado=True):
        if generar_cargo(empadronado, periodo, config) is not None:
            creados += 1
    return creados


@transaction.atomic
def generar_periodo(periodo: str, usuario=None) -> dict:
    p.validar_periodo(periodo)
    if PeriodoGenerado.objects.filter(periodo=periodo).exists():
        raise ReglaNegocioError(f"El periodo {periodo} ya fue generado")
    config = ConfiguracionCobranza.get_solo()
    creados = _generar_para_todos(periodo, config)
    PeriodoGenerado.objects.create(periodo=periodo, generado_por=usuario, cargos_creados=creados)
    registrar_actividad(usuario, "GENERAR_PERIODO", "cobranzas", details=f"Periodo {periodo}", periodo=periodo, cargos=creados)
    logger.info("Periodo %s generado: %s cargos", periodo, creados)
    return {"periodo": periodo, "cargos_creados": creados}


@transaction.atomic
def generar_historico(desde: str, hasta: str, usuario=None) -> dict:
    """Genera todos los periodos del rango; los que ya estaban bloqueados solo completan cargos faltantes."""
    if desde > hasta:
        raise ValueError("'desde' no puede ser posterior a 'hasta'")
    config = ConfiguracionCobranza.get_solo()
    total = 0
    resultado = []
    for periodo in p.rango_periodos(desde, hasta):
        creados = _generar_para_todos(periodo, config)
        bloqueo, nuevo = PeriodoGenerado.objects.get_or_create(
            periodo=periodo, defaults={"generado_por": usuario, "cargos_creados": creados}
        )
        if not nuevo and creados:
            bloqueo.cargos_creados += creados
            bloqueo.save(update_fields=["cargos_creados"])
        total += creados
        resultado.append({"periodo": periodo, "cargos_creados": creados})
    registrar_actividad(usuario, "GENERAR_HISTORICO", "cobranzas", details=f"{desde}-{hasta}", desde=desde, hasta=hasta, cargos=total)
    return {"periodos": resultado, "cargos_creados": total}


@transaction.atomic
def asegurar_cargos_empadronado(empadronado: Empadronado, hoy: date | None = None) -> int:
    """Crea los cargos del empadronado desde su primer periodo facturable hasta el mes en curso."""
    hoy = hoy or timezone.localdate()
    config = ConfiguracionCobranza.get_solo()
    desde = primer_periodo(empadronado, config)
    hasta = p.periodo_de(hoy)
    if desde > hasta:
        return 0
    return sum(1 for periodo in p.rango_periodos(desde, hasta) if generar_cargo(empadronado, periodo, config) is not None)


def _siguiente_numero_comprobante() -> str:
    ConfiguracionCobranza.get_solo()
    config = ConfiguracionCobranza.objects.select_for_update().get(pk=1)
    numero = config.numero_comprobante_actual
    config.numero_comprobante_actual = numero + 1
    config.save(update_fields=["numero_comprobante_actual", "updated_at"])
    return f"{config.serie_comprobantes}-{numero:06d}"


def _marcar_aprobado(pago: Pago, usuario, comentario: str = ""):
    pago.estado = Pago.Estado.APROBADO
    pago.revisado_por = usuario if getattr(usuario, "is_authenticated", False) else None
    pago.fecha_revision = timezone.now()
    pago.comentario_aprobacion = comentario or ""
    pago.numero_comprobante = _siguiente_numero_comprobante()


@transaction.atomic
def registrar_pago(
    cargo_id: int,
    monto,
    metodo_pago: str,
    fecha_pago: date,
    numero_operacion: str = "",
    observaciones: str = "",
    archivo_comprobante: str = "",
    usuario=None,
    aprobado: bool = False,
    hoy: date | None = None,
) -> Pago:
    """
    Registra un pago contra un cargo. Queda `pendiente` hasta que un encargado lo revise,
    salvo que el propio encargado lo registre como `aprobado` (pago en oficina).

    El pronto pago se mide contra la fecha de registro; solo un pago ya aprobado
    en oficina puede acreditarse con la fecha en que se recibió el dinero.
    """
    hoy = hoy or timezone.localdate()
    if fecha_pago > hoy:
        raise ReglaNegocioError("La fecha de pago no puede ser posterior a hoy")
    if monto is None:
        raise ValueError("monto es requerido")
    monto = p.redondear(monto)
    if monto <= 0:
        raise ReglaNegocioError("El monto debe ser mayor a cero")

    cargo = Cargo.objects.select_for_update().get(pk=cargo_id)
    recalcular_cargo(cargo)
    if cargo.saldo <= 0:
        raise ReglaNegocioError(f"El cargo {cargo.periodo} no tiene saldo pendiente")
    if monto > cargo.saldo:
        raise ReglaNegocioError(f"El monto S/{monto} excede el saldo S/{cargo.saldo}")

    numero_operacion = (numero_operacion or "").strip()
    if numero_operacion:
        repetido = Pago.objects.filter(metodo_pago=metodo_pago, numero_operacion=numero_operacion).exclude(
            estado=Pago.Estado.RECHAZADO
        )
        if repetido.exists():
            raise ReglaNegocioError(f"El número de operación {numero_operacion} ya fue registrado")

    config = ConfiguracionCobranza.get_solo()
    descuento = Decimal("0")
    primer_pago = not cargo.pagos.exclude(estado=Pago.Estado.RECHAZADO).exists()
    referencia = min(fecha_pago, hoy) if aprobado else hoy
    if primer_pago and not cargo.es_moroso and p.aplica_pronto_pago(cargo.periodo, referencia, config.dias_pronto_pago):
        descuento = p.redondear(cargo.monto_original * config.porcentaje_pronto_pago / 100)
        descuento = min(descuento, cargo.saldo - monto)

    pago = Pago(
        cargo=cargo,
        empadronado_id=cargo.empadronado_id,
        periodo=cargo.periodo,
        monto_recibido=monto,
        descuento_pronto_pago=descuento,
        monto=monto + descuento,
        metodo_pago=metodo_pago,
        numero_operacion=numero_operacion,
        fecha_pago=fecha_pago,
        observaciones=observaciones or "",
        archivo_comprobante=archivo_comprobante or "",
        registrado_por=usuario if getattr(usuario, "is_authenticated", False) else None,
    )
    if aprobado:
        _marcar_aprobado(pago, usuario)
    pago.save()
    recalcular_cargo(cargo)

    registrar_actividad(
        usuario, "REGISTRAR_PAGO", "cobranzas", objeto=pago,
        details=f"Pago S/{pago.monto} al cargo {cargo.periodo}",
        cargo=cargo.pk, monto=pago.monto, descuento=descuento, estado=pago.estado,
    )
    return pago


@transaction.atomic
def aprobar_pago(pago_id: int, usuario=None, comentario: str = "") -> Pago:
    pago = Pago.objects.select_for_update().get(pk=pago_id)
    if pago.estado != Pago.Estado.PENDIENTE:
        raise ReglaNegocioError(f"Solo se pueden aprobar pagos pendientes (estado actual: {pago.estado})")
    _marcar_aprobado(pago, usuario, comentario)
    pago.save()
    recalcular_cargo(pago.cargo)
    registrar_actividad(usuario, "APROBAR_PAGO", "cobranzas", objeto=pago, comprobante=pago.numero_comprobante)
    notificar_empadronado(
        pago.empadronado_id,
        f"Su pago de S/{pago.monto} del periodo {pago.periodo} fue aprobado (comprobante {pago.numero_comprobante})",
        link=f"/pagos/{pago.pk}/",
    )
    return pago


@transaction.atomic
def rechazar_pago(pago_id: int, motivo: str, usuario=None) -> Pago:
    motivo = (motivo or "").strip()
    if not motivo:
        raise ReglaNegocioError("El motivo de rechazo es obligatorio")
    pago = Pago.objects.select_for_update().get(pk=pago_id)
    if pago.estado != Pago.Estado.PENDIENTE:
        raise ReglaNegocioError(f"Solo se pueden rechazar pagos pendientes (estado actual: {pago.estado})")
    pago.estado = Pago.Estado.RECHAZADO
    pago.motivo_rechazo = motivo
    pago.revisado_por = usuario if getattr(usuario, "is_authenticated", False) else None
    pago.fecha_revision = timezone.now()
    pago.save()
    recalcular_cargo(pago.cargo)
    registrar_actividad(usuario, "RECHAZAR_PAGO", "cobranzas", objeto=pago, details=motivo)
    notificar_empadronado(
        pago.empadronado_id, f"Su pago del periodo {pago.periodo} fue rechazado: {motivo}", link=f"/pagos/{pago.pk}/",
    )
    return pago


@transaction.atomic
def ejecutar_cierre_mensual(hoy: date | None = None, usuario=None) -> dict:
    """
    Marca como morosos los cargos vencidos con saldo y les aplica el recargo
    (porcentaje_morosidad sobre el saldo). Un cargo se recarga una sola vez.
    """
    hoy = hoy or timezone.localdate()
    config = ConfiguracionCobranza.get_solo()
    vencidos = Cargo.objects.select_for_update().filter(saldo__gt=0, fecha_vencimiento__lt=hoy, es_moroso=False)
    marcados = 0
    total_recargo = Decimal("0")
    for cargo in vencidos:
        recargo = p.redondear(cargo.saldo * config.porcentaje_morosidad / 100)
        cargo.es_moroso = True
        cargo.monto_morosidad = recargo
        recalcular_cargo(cargo, save=False)
        cargo.save(update_fields=["es_moroso", "monto_morosidad", "monto_pagado", "saldo", "estado", "updated_at"])
        marcados += 1
        total_recargo += recargo
    registrar_actividad(usuario, "CIERRE_MENSUAL", "cobranzas", details=f"Cierre al {hoy}", cargos=marcados, recargo=total_recargo)
    logger.info("Cierre mensual %s: %s cargos morosos, recargo total S/%s", hoy, marcados, total_recargo)
    return {"fecha": hoy, "cargos_morosos": marcados, "total_morosidad": p.redondear(total_recargo)}
