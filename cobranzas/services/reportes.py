# cobranzas/services/reportes.py
from __future__ import annotations

from collections import Counter
from datetime import date
from decimal import Decimal

from django.db.models import Count, Q, Sum
from django.utils import timezone

from cobranzas.models import Cargo, ConfiguracionCobranza, MovimientoFinanciero, Pago
from cobranzas.services import periodos as p
from cobranzas.services.ledger import primer_periodo
from core.models import Empadronado


def meses_deuda(empadronado: Empadronado, anio: int, hoy: date | None = None, config=None) -> int:
    """Meses exigibles del año sin un cargo totalmente cubierto."""
    hoy = hoy or timezone.localdate()
    exigibles = p.periodos_exigibles(anio, hoy, primer_periodo(empadronado, config))
    if not exigibles:
        return 0
    cubiertos = set(
        Cargo.objects.filter(empadronado=empadronado, periodo__in=exigibles, saldo=0).values_list("periodo", flat=True)
    )
    return sum(1 for periodo in exigibles if periodo not in cubiertos)


def estado_morosidad(empadronado: Empadronado, anio: int | None = None, hoy: date | None = None, config=None) -> dict:
    hoy = hoy or timezone.localdate()
    anio = anio or hoy.year
    meses = meses_deuda(empadronado, anio, hoy, config)
    return {"anio": anio, "meses_deuda": meses, "estado": p.clasificar_morosidad(meses)}


def morosidad(anio: int | None = None, hoy: date | None = None) -> dict:
    """Clasificación de todos los empadronados habilitados para el año."""
    hoy = hoy or timezone.localdate()
    anio = anio or hoy.year
    config = ConfiguracionCobranza.get_solo()
    detalle = []
    for empadronado in Empadronado.objects.filter(habilitado=True):
        estado = estado_morosidad(empadronado, anio, hoy, config)
        detalle.append({
            "empadronado_id": empadronado.pk,
            "numero_padron": empadronado.numero_padron,
            "nombre": empadronado.nombre_completo,
            **estado,
        })
    resumen = Counter(d["estado"] for d in detalle)
    return {
        "anio": anio,
        "resumen": {estado: resumen.get(estado, 0) for estado in (p.AL_DIA, p.PUNTUAL, p.ATRASADO, p.MOROSO)},
        "empadronados": detalle,
    }


def estado_cuenta(empadronado: Empadronado, hoy: date | None = None) -> dict:
    hoy = hoy or timezone.localdate()
    cargos = list(Cargo.objects.filter(empadronado=empadronado).order_by("periodo"))
    pagos = Pago.objects.filter(empadronado=empadronado).order_by("-fecha_pago", "-created_at")
    con_saldo = [c for c in cargos if c.saldo > 0]
    return {
        "empadronado": {
            "id": empadronado.pk,
            "numero_padron": empadronado.numero_padron,
            "nombre": empadronado.nombre_completo,
        },
        "cargos": [
            {
                "id": c.pk, "periodo": c.periodo, "monto_original": c.monto_original,
                "monto_morosidad": c.monto_morosidad, "monto_pagado": c.monto_pagado,
                "saldo": c.saldo, "estado": c.estado, "fecha_vencimiento": c.fecha_vencimiento,
            }
            for c in cargos
        ],
        "pagos": [
            {
                "id": pg.pk, "periodo": pg.periodo, "monto": pg.monto, "descuento_pronto_pago": pg.descuento_pronto_pago,
                "metodo_pago": pg.metodo_pago, "fecha_pago": pg.fecha_pago, "estado": pg.estado,
                "numero_comprobante": pg.numero_comprobante,
            }
            for pg in pagos
        ],
        "deuda_total": p.redondear(sum((c.saldo for c in con_saldo), Decimal("0"))),
        "periodos_vencidos": [c.periodo for c in con_saldo if c.fecha_vencimiento < hoy],
        "morosidad": estado_morosidad(empadronado, hoy.year, hoy),
    }


def estadisticas(hoy: date | None = None) -> dict:
    hoy = hoy or timezone.localdate()
    periodo = p.periodo_de(hoy)
    inicio = p.inicio_periodo(periodo)
    fin = p.inicio_periodo(p.sumar_meses(periodo, 1))

    recaudado = Pago.objects.filter(
        estado=Pago.Estado.APROBADO, fecha_pago__gte=inicio, fecha_pago__lt=fin
    ).aggregate(s=Sum("monto_recibido"))["s"] or Decimal("0")
    pendiente = Cargo.objects.filter(saldo__gt=0).aggregate(s=Sum("saldo"))["s"] or Decimal("0")
    morosos = Cargo.objects.filter(saldo__gt=0, es_moroso=True).values("empadronado").distinct().count()

    cargos_mes = Cargo.objects.filter(periodo=periodo).aggregate(
        total=Count("id"), pagados=Count("id", filter=Q(estado=Cargo.Estado.PAGADO))
    )
    tasa = Decimal("0")
    if cargos_mes["total"]:
        tasa = p.redondear(Decimal(cargos_mes["pagados"]) * 100 / cargos_mes["total"])

    movimientos = MovimientoFinanciero.objects.filter(fecha__gte=inicio, fecha__lt=fin)
    ingresos = movimientos.filter(tipo=MovimientoFinanciero.Tipo.INGRESO).aggregate(s=Sum("monto"))["s"] or Decimal("0")
    egresos = movimientos.filter(tipo=MovimientoFinanciero.Tipo.EGRESO).aggregate(s=Sum("monto"))["s"] or Decimal("0")

    return {
        "periodo": periodo,
        "recaudado_mes": p.redondear(recaudado),
        "total_pendiente": p.redondear(pendiente),
        "empadronados_morosos": morosos,
        "tasa_cobranza": tasa,
        "ingresos_mes": p.redondear(ingresos),
        "egresos_mes": p.redondear(egresos),
        "balance_mes": p.redondear(recaudado + ingresos - egresos),
        "empadronados_activos": Empadronado.objects.filter(habilitado=True).count(),
        "cargos_mes": cargos_mes["total"],
        "cargos_mes_pagados": cargos_mes["pagados"],
    }


def reporte_deudores() -> list[dict]:
    filas = (
        Cargo.objects.filter(saldo__gt=0)
        .values("empadronado_id", "empadronado__numero_padron", "empadronado__nombre", "empadronado__apellidos")
        .annotate(deuda=Sum("saldo"), periodos=Count("id"), morosos=Count("id", filter=Q(es_moroso=True)))
    )
    deudores = []
    for fila in filas:
        periodos = list(
            Cargo.objects.filter(empadronado_id=fila["empadronado_id"], saldo__gt=0)
            .order_by("periodo").values_list("periodo", flat=True)
        )
        deudores.append({
            "empadronado_id": fila["empadronado_id"],
            "numero_padron": fila["empadronado__numero_padron"],
            "nombre": f"{fila['empadronado__nombre']} {fila['empadronado__apellidos']}".strip(),
            "deuda_total": p.redondear(fila["deuda"]),
            "periodos_adeudados": periodos,
            "es_moroso": fila["morosos"] > 0,
        })
    deudores.sort(key=lambda d: d["deuda_total"], reverse=True)
    return deudores
