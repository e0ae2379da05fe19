# cobranzas/services/finanzas.py
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from cobranzas.models import MovimientoFinanciero, Pago
from cobranzas.services.periodos import redondear
from core.exceptions import ReglaNegocioError
from core.services.auditoria import registrar_actividad

logger = logging.getLogger(__name__)


def validar_categoria(tipo: str, categoria: str) -> None:
    if tipo not in MovimientoFinanciero.Tipo.values:
        raise ReglaNegocioError(f"Tipo de movimiento inválido: {tipo}")
    if categoria not in MovimientoFinanciero.categorias_de(tipo):
        raise ReglaNegocioError(f"La categoría '{categoria}' no corresponde a un {tipo}")


def registrar_movimiento(tipo, categoria, monto, descripcion, fecha=None, usuario=None, **extra) -> MovimientoFinanciero:
    validar_categoria(tipo, categoria)
    monto = redondear(monto)
    if monto <= 0:
        raise ReglaNegocioError("El monto debe ser mayor a cero")
    movimiento = MovimientoFinanciero.objects.create(
        tipo=tipo,
        categoria=categoria,
        monto=monto,
        descripcion=descripcion,
        fecha=fecha or timezone.localdate(),
        registrado_por=usuario if getattr(usuario, "is_authenticated", False) else None,
        **extra,
    )
    registrar_actividad(usuario, f"REGISTRAR_{tipo.upper()}", "finanzas", objeto=movimiento, details=descripcion, monto=monto)
    return movimiento


def registrar_ingreso(categoria, monto, descripcion, fecha=None, usuario=None, **extra) -> MovimientoFinanciero:
    return registrar_movimiento(MovimientoFinanciero.Tipo.INGRESO, categoria, monto, descripcion, fecha, usuario, **extra)


def _solo_manual(movimiento: MovimientoFinanciero) -> None:
    if movimiento.origen != MovimientoFinanciero.Origen.MANUAL:
        raise ReglaNegocioError(
            f"El movimiento proviene de {movimiento.get_origen_display().lower()}; se corrige desde su origen"
        )


@transaction.atomic
def actualizar_movimiento(movimiento: MovimientoFinanciero, datos: dict, usuario=None) -> MovimientoFinanciero:
    _solo_manual(movimiento)
    datos = {k: v for k, v in datos.items() if k not in ("origen", "registrado_por")}
    tipo = datos.get("tipo", movimiento.tipo)
    validar_categoria(tipo, datos.get("categoria", movimiento.categoria))
    if "monto" in datos:
        datos["monto"] = redondear(datos["monto"])
        if datos["monto"] <= 0:
            raise ReglaNegocioError("El monto debe ser mayor a cero")
    for campo, valor in datos.items():
        setattr(movimiento, campo, valor)
    movimiento.save()
    registrar_actividad(usuario, "ACTUALIZAR_MOVIMIENTO", "finanzas", objeto=movimiento, campos=sorted(datos))
    return movimiento


@transaction.atomic
def eliminar_movimiento(movimiento: MovimientoFinanciero, usuario=None) -> None:
    _solo_manual(movimiento)
    registrar_actividad(
        usuario, "ELIMINAR_MOVIMIENTO", "finanzas", objeto=movimiento,
        details=movimiento.descripcion, tipo=movimiento.tipo, monto=movimiento.monto,
    )
    movimiento.delete()


def _total(qs, campo="monto") -> Decimal:
    return qs.aggregate(s=Sum(campo))["s"] or Decimal("0")


def resumen_caja() -> dict:
    """Saldo de caja: ingresos registrados + cuotas aprobadas - egresos."""
    ingresos = _total(MovimientoFinanciero.objects.filter(tipo=MovimientoFinanciero.Tipo.INGRESO))
    cuotas = _total(Pago.objects.filter(estado=Pago.Estado.APROBADO), "monto_recibido")
    egresos = _total(MovimientoFinanciero.objects.filter(tipo=MovimientoFinanciero.Tipo.EGRESO))
    return {
        "total_ingresos": redondear(ingresos),
        "total_cuotas": redondear(cuotas),
        "total_egresos": redondear(egresos),
        "saldo_actual": redondear(ingresos + cuotas - egresos),
    }


def _top_categorias(qs, limite=5) -> list[dict]:
    filas = qs.values("categoria").annotate(total=Sum("monto")).order_by("-total")[:limite]
    return [{"categoria": f["categoria"], "total": redondear(f["total"])} for f in filas]


def estadisticas_finanzas(hoy: date | None = None) -> dict:
    hoy = hoy or timezone.localdate()
    del_mes = MovimientoFinanciero.objects.filter(fecha__year=hoy.year, fecha__month=hoy.month)
    del_anio = MovimientoFinanciero.objects.filter(fecha__year=hoy.year)
    ingreso, egreso = MovimientoFinanciero.Tipo.INGRESO, MovimientoFinanciero.Tipo.EGRESO

    ingresos_mes = _total(del_mes.filter(tipo=ingreso))
    egresos_mes = _total(del_mes.filter(tipo=egreso))
    ingresos_anio = _total(del_anio.filter(tipo=ingreso))
    egresos_anio = _total(del_anio.filter(tipo=egreso))
    return {
        "ingresos_mes": redondear(ingresos_mes),
        "egresos_mes": redondear(egresos_mes),
        "balance_mes": redondear(ingresos_mes - egresos_mes),
        "ingresos_anio": redondear(ingresos_anio),
        "egresos_anio": redondear(egresos_anio),
        "balance_anio": redondear(ingresos_anio - egresos_anio),
        "top_ingresos": _top_categorias(del_mes.filter(tipo=ingreso)),
        "top_egresos": _top_categorias(del_mes.filter(tipo=egreso)),
    }
