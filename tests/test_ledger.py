from datetime import date
from decimal import Decimal

import pytest

from cobranzas.models import Cargo, Pago, PeriodoGenerado
from cobranzas.services import ledger
from core.exceptions import ReglaNegocioError
from core.models import ActivityLog

from .conftest import nuevo_empadronado

pytestmark = pytest.mark.django_db


@pytest.fixture
def cargo(config_cobranza, empadronado):
    return ledger.generar_cargo(empadronado, "202503", config_cobranza)


def test_generar_cargo_usa_la_configuracion(cargo):
    assert cargo.monto_original == Decimal("50.00")
    assert cargo.saldo == Decimal("50.00")
    assert cargo.fecha_vencimiento == date(2025, 4, 15)
    assert cargo.estado == Cargo.Estado.PENDIENTE


def test_generar_cargo_no_duplica(cargo, empadronado, config_cobranza):
    assert ledger.generar_cargo(empadronado, "202503", config_cobranza) is None
    assert Cargo.objects.filter(empadronado=empadronado, periodo="202503").count() == 1


def test_generar_cargo_respeta_primer_periodo(config_cobranza):
    tardio = nuevo_empadronado("P-050", dni="11112222", fecha_ingreso=date(2025, 3, 20))
    assert ledger.generar_cargo(tardio, "202503", config_cobranza) is None
    assert ledger.generar_cargo(tardio, "202504", config_cobranza) is not None


def test_generar_periodo_bloquea_el_periodo(config_cobranza, empadronado):
    nuevo_empadronado("P-002", dni="22223333", habilitado=False)
    resultado = ledger.generar_periodo("202503")
    assert resultado == {"periodo": "202503", "cargos_creados": 1}
    assert PeriodoGenerado.objects.get(periodo="202503").cargos_creados == 1
    with pytest.raises(ReglaNegocioError):
        ledger.generar_periodo("202503")
    assert ActivityLog.objects.filter(action="GENERAR_PERIODO").count() == 1


def test_generar_historico_completa_periodos_bloqueados(config_cobranza, empadronado):
    ledger.generar_periodo("202502")
    nuevo_empadronado("P-003", dni="33334444")
    resultado = ledger.generar_historico("202501", "202503")
    assert [f["periodo"] for f in resultado["periodos"]] == ["202501", "202502", "202503"]
    # P-001 ya tenía 202502; P-003 recibe los tres
    assert resultado["cargos_creados"] == 5
    assert PeriodoGenerado.objects.get(periodo="202502").cargos_creados == 2


def test_asegurar_cargos_hasta_el_mes_en_curso(config_cobranza, empadronado):
    creados = ledger.asegurar_cargos_empadronado(empadronado, hoy=date(2025, 4, 2))
    assert creados == 4
    assert list(empadronado.cargos.order_by("periodo").values_list("periodo", flat=True)) == [
        "202501", "202502", "202503", "202504",
    ]


def test_pago_con_pronto_pago_cubre_el_cargo(cargo):
    pago = ledger.registrar_pago(cargo.pk, "47.50", "yape", date(2025, 3, 2), numero_operacion="OP-1", hoy=date(2025, 3, 2))
    cargo.refresh_from_db()
    assert pago.estado == Pago.Estado.PENDIENTE
    assert pago.descuento_pronto_pago == Decimal("2.50")
    assert pago.monto == Decimal("50.00")
    assert cargo.saldo == Decimal("0.00")
    assert cargo.estado == Cargo.Estado.PAGADO


def test_pronto_pago_se_mide_al_registrar(cargo):
    # fecha declarada dentro de la ventana, pero registrado semanas después
    pago = ledger.registrar_pago(cargo.pk, "47.50", "yape", date(2025, 3, 2), numero_operacion="OP-2", hoy=date(2025, 3, 25))
    cargo.refresh_from_db()
    assert pago.descuento_pronto_pago == Decimal("0")
    assert cargo.saldo == Decimal("2.50")


def test_pago_en_oficina_usa_la_fecha_de_recepcion(cargo, economia_user):
    pago = ledger.registrar_pago(
        cargo.pk, "47.50", "efectivo", date(2025, 3, 2), usuario=economia_user, aprobado=True, hoy=date(2025, 3, 6),
    )
    assert pago.descuento_pronto_pago == Decimal("2.50")
    assert pago.monto == Decimal("50.00")


def test_fecha_de_pago_futura(cargo):
    with pytest.raises(ReglaNegocioError):
        ledger.registrar_pago(cargo.pk, 10, "efectivo", date(2025, 3, 21), hoy=date(2025, 3, 20))


def test_pago_tardio_sin_descuento(cargo):
    pago = ledger.registrar_pago(cargo.pk, 30, "efectivo", date(2025, 3, 20))
    cargo.refresh_from_db()
    assert pago.descuento_pronto_pago == Decimal("0")
    assert cargo.saldo == Decimal("20.00")
    assert cargo.monto_pagado == Decimal("30.00")


def test_descuento_solo_en_el_primer_pago(cargo):
    ledger.registrar_pago(cargo.pk, 20, "efectivo", date(2025, 3, 1), hoy=date(2025, 3, 1))
    segundo = ledger.registrar_pago(cargo.pk, "27.50", "efectivo", date(2025, 3, 2), hoy=date(2025, 3, 2))
    cargo.refresh_from_db()
    assert segundo.descuento_pronto_pago == Decimal("0")
    assert cargo.saldo == Decimal("0.00")


def test_pago_no_puede_exceder_el_saldo(cargo):
    with pytest.raises(ReglaNegocioError):
        ledger.registrar_pago(cargo.pk, 60, "efectivo", date(2025, 3, 20))
    with pytest.raises(ReglaNegocioError):
        ledger.registrar_pago(cargo.pk, 0, "efectivo", date(2025, 3, 20))


def test_cargo_pagado_no_acepta_mas_pagos(cargo):
    ledger.registrar_pago(cargo.pk, 50, "efectivo", date(2025, 3, 20))
    with pytest.raises(ReglaNegocioError):
        ledger.registrar_pago(cargo.pk, 1, "efectivo", date(2025, 3, 21))


def test_numero_de_operacion_repetido(cargo, empadronado, config_cobranza):
    otro = ledger.generar_cargo(empadronado, "202504", config_cobranza)
    pago = ledger.registrar_pago(cargo.pk, 10, "yape", date(2025, 3, 20), numero_operacion="123456")
    with pytest.raises(ReglaNegocioError):
        ledger.registrar_pago(otro.pk, 10, "yape", date(2025, 4, 20), numero_operacion="123456")
    # el mismo número con otro método no choca
    ledger.registrar_pago(otro.pk, 10, "plin", date(2025, 4, 20), numero_operacion="123456")
    # rechazado, el número queda libre
    ledger.rechazar_pago(pago.pk, "Voucher ilegible")
    ledger.registrar_pago(otro.pk, 10, "yape", date(2025, 4, 20), numero_operacion="123456")


def test_aprobar_asigna_comprobante_correlativo(cargo, economia_user):
    primero = ledger.registrar_pago(cargo.pk, 10, "efectivo", date(2025, 3, 20))
    segundo = ledger.registrar_pago(cargo.pk, 10, "efectivo", date(2025, 3, 21))
    primero = ledger.aprobar_pago(primero.pk, usuario=economia_user, comentario="Conforme")
    segundo = ledger.aprobar_pago(segundo.pk, usuario=economia_user)
    assert primero.estado == Pago.Estado.APROBADO
    assert primero.numero_comprobante == "001-000001"
    assert segundo.numero_comprobante == "001-000002"
    assert primero.revisado_por == economia_user
    with pytest.raises(ReglaNegocioError):
        ledger.aprobar_pago(primero.pk, usuario=economia_user)


def test_pago_aprobado_al_registrar(cargo, economia_user):
    pago = ledger.registrar_pago(cargo.pk, 50, "efectivo", date(2025, 3, 20), usuario=economia_user, aprobado=True)
    assert pago.estado == Pago.Estado.APROBADO
    assert pago.numero_comprobante == "001-000001"
    assert pago.registrado_por == economia_user


def test_rechazar_devuelve_el_saldo(cargo, economia_user):
    pago = ledger.registrar_pago(cargo.pk, 50, "transferencia", date(2025, 3, 20), numero_operacion="T-9")
    with pytest.raises(ReglaNegocioError):
        ledger.rechazar_pago(pago.pk, "  ")
    pago = ledger.rechazar_pago(pago.pk, "No figura en el banco", usuario=economia_user)
    cargo.refresh_from_db()
    assert pago.estado == Pago.Estado.RECHAZADO
    assert pago.motivo_rechazo == "No figura en el banco"
    assert cargo.saldo == Decimal("50.00")
    assert cargo.estado == Cargo.Estado.PENDIENTE


def test_cierre_mensual_aplica_recargo_una_vez(cargo):
    ledger.registrar_pago(cargo.pk, 20, "efectivo", date(2025, 3, 20))
    resultado = ledger.ejecutar_cierre_mensual(hoy=date(2025, 4, 16))
    cargo.refresh_from_db()
    assert resultado["cargos_morosos"] == 1
    assert resultado["total_morosidad"] == Decimal("3.00")
    assert cargo.es_moroso
    assert cargo.monto_morosidad == Decimal("3.00")
    assert cargo.saldo == Decimal("33.00")
    assert cargo.estado == Cargo.Estado.MOROSO

    otra = ledger.ejecutar_cierre_mensual(hoy=date(2025, 5, 16))
    cargo.refresh_from_db()
    assert otra["cargos_morosos"] == 0
    assert cargo.monto_morosidad == Decimal("3.00")


def test_cierre_no_toca_cargos_al_dia_o_no_vencidos(cargo, empadronado, config_cobranza):
    pagado = ledger.generar_cargo(empadronado, "202502", config_cobranza)
    ledger.registrar_pago(pagado.pk, 50, "efectivo", date(2025, 3, 1))
    resultado = ledger.ejecutar_cierre_mensual(hoy=date(2025, 4, 15))
    assert resultado["cargos_morosos"] == 0


def test_moroso_pierde_el_pronto_pago(cargo):
    ledger.ejecutar_cierre_mensual(hoy=date(2025, 4, 16))
    pago = ledger.registrar_pago(cargo.pk, 55, "efectivo", date(2025, 3, 2))
    cargo.refresh_from_db()
    assert pago.descuento_pronto_pago == Decimal("0")
    assert cargo.saldo == Decimal("0.00")
    assert cargo.estado == Cargo.Estado.PAGADO
