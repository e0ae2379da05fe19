# cobranzas/services/periodos.py
"""
Reglas de calendario de la cobranza mensual.

Los periodos se manejan como texto 'YYYYMM' (ej. "202503"); al ser de ancho fijo
se pueden comparar y ordenar como cadenas.
"""
from __future__ import annotations

import calendar
import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

PERIODO_RE = re.compile(r"^\d{4}(0[1-9]|1[0-2])$")
CENTIMO = Decimal("0.01")

# Estados de morosidad de un empadronado en un año
AL_DIA = "al_dia"
PUNTUAL = "puntual"
ATRASADO = "atrasado"
MOROSO = "moroso"


def redondear(valor) -> Decimal:
    return Decimal(str(valor)).quantize(CENTIMO, rounding=ROUND_HALF_UP)


def validar_periodo(periodo) -> str:
    if not periodo or not PERIODO_RE.match(str(periodo)):
        raise ValueError("periodo debe ser 'YYYYMM'")
    return str(periodo)


def periodo_de(fecha: date) -> str:
    return f"{fecha.year}{fecha.month:02d}"


def inicio_periodo(periodo: str) -> date:
    periodo = validar_periodo(periodo)
    return date(int(periodo[:4]), int(periodo[4:]), 1)


def sumar_meses(periodo: str, n: int) -> str:
    inicio = inicio_periodo(periodo)
    indice = inicio.year * 12 + (inicio.month - 1) + n
    return f"{indice // 12}{indice % 12 + 1:02d}"


def rango_periodos(desde: str, hasta: str) -> list[str]:
    """Periodos entre `desde` y `hasta`, ambos incluidos."""
    validar_periodo(desde)
    validar_periodo(hasta)
    periodos = []
    actual = desde
    while actual <= hasta:
        periodos.append(actual)
        actual = sumar_meses(actual, 1)
    return periodos


def dia_del_mes(anio: int, mes: int, dia: int) -> date:
    # 31 en febrero -> 28/29
    return date(anio, mes, min(dia, calendar.monthrange(anio, mes)[1]))


def primer_periodo_facturable(fecha_ingreso: date, dia_cierre: int, fecha_politica: date) -> str:
    """
    Primer periodo que se le cobra a un empadronado.
    - Ingresó antes de la fecha de política: se cobra desde el mes de la política.
    - Ingresó el día de cierre o antes: se cobra desde ese mes.
    - Ingresó después del cierre: se cobra desde el mes siguiente.
    """
    if fecha_ingreso < fecha_politica:
        return periodo_de(fecha_politica)
    periodo = periodo_de(fecha_ingreso)
    return periodo if fecha_ingreso.day <= dia_cierre else sumar_meses(periodo, 1)


def fecha_vencimiento(periodo: str, dia_vencimiento: int) -> date:
    """El cargo de un periodo vence el `dia_vencimiento` del mes siguiente."""
    siguiente = inicio_periodo(sumar_meses(periodo, 1))
    return dia_del_mes(siguiente.year, siguiente.month, dia_vencimiento)


def aplica_pronto_pago(periodo: str, fecha_pago: date, dias_pronto_pago: int) -> bool:
    if dias_pronto_pago <= 0:
        return False
    return (fecha_pago - inicio_periodo(periodo)).days <= dias_pronto_pago


def periodos_exigibles(anio: int, hoy: date, primer_periodo: str) -> list[str]:
    """Meses del año transcurridos o en curso a `hoy` en los que el empadronado ya era facturable."""
    if anio > hoy.year:
        return []
    ultimo_mes = 12 if anio < hoy.year else hoy.month
    return [p for p in (f"{anio}{mes:02d}" for mes in range(1, ultimo_mes + 1)) if p >= primer_periodo]


def clasificar_morosidad(meses_deuda: int) -> str:
    if meses_deuda <= 0:
        return AL_DIA
    if meses_deuda <= 1:
        return PUNTUAL
    if meses_deuda <= 3:
        return ATRASADO
    return MOROSO
