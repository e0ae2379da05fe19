from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from cobranzas.models import MovimientoFinanciero
from core.exceptions import ReglaNegocioError
from deportes.models import Cancha, Reserva
from deportes.services import reservas as svc

pytestmark = pytest.mark.django_db


def lima(dia, hora, minuto=0):
    return timezone.make_aware(datetime(2030, 1, dia, hora, minuto))


@pytest.fixture
def cancha():
    return Cancha.objects.create(
        nombre="Losa Boulevard", tipo="futbol", ubicacion="boulevard",
        precio_hora=Decimal("30"), luz_1h=Decimal("5"), luz_2h=Decimal("8"), luz_3h=Decimal("12"),
        tarifa_aportante=Decimal("10"),
    )


def reservar(cancha, inicio, fin, dni="45678912", **extra):
    datos = {
        "cancha": cancha, "nombre_cliente": "Rosa Quispe", "telefono": "987 654 321",
        "dni": dni, "fecha_inicio": inicio, "fecha_fin": fin,
    }
    datos.update(extra)
    return svc.crear_reserva(datos)


@pytest.mark.parametrize("horas,luz,total", [
    ("1", "5.00", "35.00"), ("1.5", "8.00", "53.00"), ("2", "8.00", "68.00"), ("3", "12.00", "102.00"),
])
def test_precio_por_tramo_de_luz(cancha, horas, luz, total):
    precio = svc.calcular_precio(cancha, Decimal(horas), False)
    assert precio["luz"] == Decimal(luz)
    assert precio["total"] == Decimal(total)


def test_descuento_aportante_sobre_base_y_luz(cancha):
    precio = svc.calcular_precio(cancha, 2, True)
    assert precio == {
        "base": Decimal("60.00"), "luz": Decimal("8.00"),
        "descuento_aportante": Decimal("6.80"), "total": Decimal("61.20"),
    }


def test_crear_reserva_calcula_precio(cancha):
    reserva = reservar(cancha, lima(10, 10), lima(10, 12))
    assert reserva.duracion_horas == Decimal("2.00")
    assert reserva.precio_total == Decimal("68.00")
    assert reserva.saldo_pendiente == Decimal("68.00")
    assert reserva.estado == Reserva.Estado.PENDIENTE
    assert reserva.numero_comprobante == f"DEP-{reserva.pk:08d}"


def test_horario_ocupado(cancha):
    reservar(cancha, lima(10, 10), lima(10, 12))
    with pytest.raises(ReglaNegocioError):
        reservar(cancha, lima(10, 11), lima(10, 13), dni="11111111")
    reservar(cancha, lima(10, 12), lima(10, 13), dni="11111111")


def test_buffer_entre_reservas(cancha):
    cancha.buffer_minutos = 15
    cancha.save()
    reservar(cancha, lima(10, 10), lima(10, 12))
    assert not svc.validar_disponibilidad(cancha, lima(10, 12), lima(10, 13))
    assert svc.validar_disponibilidad(cancha, lima(10, 12, 15), lima(10, 13, 15))


def test_reserva_cancelada_libera_el_horario(cancha):
    reserva = reservar(cancha, lima(10, 10), lima(10, 12))
    svc.cancelar_reserva(reserva.pk, forzar=True)
    reservar(cancha, lima(10, 10), lima(10, 12), dni="11111111")


def test_limite_de_reservas_por_dni(cancha):
    reservar(cancha, lima(10, 6), lima(10, 7))
    reservar(cancha, lima(10, 8), lima(10, 9))
    with pytest.raises(ReglaNegocioError):
        reservar(cancha, lima(10, 10), lima(10, 11))
    reservar(cancha, lima(11, 10), lima(11, 11))


@pytest.mark.parametrize("inicio,fin", [
    ((10, 5), (10, 6)),     # antes de la apertura
    ((10, 21, 30), (10, 22, 30)),   # pasa el cierre
    ((10, 10), (10, 10, 30)),   # menos de la duración mínima
    ((10, 10), (10, 14)),   # más de la máxima
    ((10, 12), (10, 11)),   # fin antes que inicio
])
def test_reservas_invalidas(cancha, inicio, fin):
    with pytest.raises(ReglaNegocioError):
        reservar(cancha, lima(*inicio), lima(*fin))


def test_cancha_inactiva(cancha):
    cancha.activa = False
    cancha.save()
    with pytest.raises(ReglaNegocioError):
        reservar(cancha, lima(10, 10), lima(10, 11))


def test_reserva_recurrente_semanal(cancha):
    base = reservar(cancha, lima(1, 18), lima(1, 19), frecuencia="semanal", recurrente_hasta=date(2030, 1, 22))
    generadas = base.reservas_generadas.order_by("fecha_inicio")
    assert [timezone.localtime(r.fecha_inicio).day for r in generadas] == [8, 15, 22]
    assert all(r.precio_total == base.precio_total for r in generadas)


def test_recurrente_omite_horarios_ocupados(cancha):
    reservar(cancha, lima(8, 18), lima(8, 19), dni="11111111")
    base = reservar(cancha, lima(1, 18), lima(1, 19), frecuencia="semanal", recurrente_hasta=date(2030, 1, 15))
    assert [timezone.localtime(r.fecha_inicio).day for r in base.reservas_generadas.all().order_by("fecha_inicio")] == [15]


def test_recurrente_requiere_fecha_fin(cancha):
    with pytest.raises(ReglaNegocioError):
        reservar(cancha, lima(1, 18), lima(1, 19), frecuencia="semanal")


def test_pago_total_registra_ingreso(cancha, economia_user):
    reserva = reservar(cancha, lima(10, 10), lima(10, 12))
    reserva = svc.registrar_pago_reserva(reserva.pk, "yape", numero_operacion="Y-1", usuario=economia_user)
    assert reserva.estado == Reserva.Estado.PAGADO
    assert reserva.saldo_pendiente == Decimal("0")
    ingreso = reserva.ingreso
    assert ingreso.categoria == "alquiler"
    assert ingreso.monto == Decimal("68.00")
    assert ingreso.numero_comprobante == reserva.numero_comprobante
    with pytest.raises(ReglaNegocioError):
        svc.registrar_pago_reserva(reserva.pk, "yape")


def test_adelanto_y_saldo(cancha):
    reserva = reservar(cancha, lima(10, 10), lima(10, 12))
    with pytest.raises(ReglaNegocioError):
        svc.registrar_pago_reserva(reserva.pk, "efectivo", es_prepago=True, monto_prepago=100)
    reserva = svc.registrar_pago_reserva(reserva.pk, "efectivo", es_prepago=True, monto_prepago=20)
    assert reserva.estado == Reserva.Estado.PENDIENTE
    assert reserva.saldo_pendiente == Decimal("48.00")
    reserva = svc.registrar_pago_reserva(reserva.pk, "efectivo")
    assert reserva.estado == Reserva.Estado.PAGADO
    assert MovimientoFinanciero.objects.filter(categoria="alquiler").count() == 2


def test_cancelacion_con_anticipacion(cancha):
    reserva = reservar(cancha, lima(10, 10), lima(10, 12))
    with pytest.raises(ReglaNegocioError):
        svc.cancelar_reserva(reserva.pk, ahora=lima(10, 9))
    reserva = svc.cancelar_reserva(reserva.pk, "Lluvia", ahora=lima(10, 7))
    assert reserva.estado == Reserva.Estado.CANCELADO
    assert reserva.motivo_cancelacion == "Lluvia"
    with pytest.raises(ReglaNegocioError):
        svc.cancelar_reserva(reserva.pk, forzar=True)


def test_completar_solo_pagadas(cancha):
    reserva = reservar(cancha, lima(10, 10), lima(10, 12))
    with pytest.raises(ReglaNegocioError):
        svc.completar_reserva(reserva.pk)
    svc.registrar_pago_reserva(reserva.pk, "efectivo")
    assert svc.completar_reserva(reserva.pk).estado == Reserva.Estado.COMPLETADO


def test_no_show_de_pendientes_vencidas(cancha):
    pendiente = reservar(cancha, lima(10, 10), lima(10, 11))
    pagada = reservar(cancha, lima(10, 12), lima(10, 13), dni="11111111")
    svc.registrar_pago_reserva(pagada.pk, "efectivo")
    assert svc.procesar_no_shows(ahora=lima(10, 10, 30)) == 0
    assert svc.procesar_no_shows(ahora=lima(10, 14)) == 1
    pendiente.refresh_from_db()
    pagada.refresh_from_db()
    assert pendiente.estado == Reserva.Estado.NO_SHOW
    assert pagada.estado == Reserva.Estado.PAGADO


def test_comprobante_y_whatsapp(cancha):
    reserva = reservar(cancha, lima(10, 10), lima(10, 12))
    datos = svc.comprobante(reserva)
    assert datos["horario"]["inicio"] == "10:00"
    assert datos["precio"]["total"] == Decimal("68.00")
    enlace = svc.enlace_whatsapp(reserva)
    assert enlace.startswith("https://wa.me/51987654321?text=")
    assert "Losa%20Boulevard" in enlace


def test_estadisticas(cancha):
    for dia in (10, 11):
        reserva = reservar(cancha, lima(dia, 18), lima(dia, 19))
        svc.registrar_pago_reserva(reserva.pk, "efectivo")
    reservar(cancha, lima(12, 18), lima(12, 19))
    stats = svc.estadisticas()
    assert stats["reservas"] == 2
    assert stats["ingresos_totales"] == Decimal("70.00")
    assert stats["canchas_mas_usadas"][0]["reservas"] == 2
    assert stats["horarios_populares"] == [{"hora": "18:00", "reservas": 2}]


def test_duracion_en_horas():
    inicio = lima(10, 10)
    assert svc.duracion_en_horas(inicio, inicio + timedelta(minutes=90)) == Decimal("1.50")
