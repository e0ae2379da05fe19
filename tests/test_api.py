from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from acceso.models import SolicitudAcceso
from cobranzas.models import Cargo, Pago
from cobranzas.services import ledger
from core.models import ActivityLog, Empadronado
from deportes.models import Cancha
from deportes.services import reservas
from eventos.services import inscripciones

from .conftest import crear_usuario, nuevo_empadronado

pytestmark = pytest.mark.django_db


@pytest.fixture
def cargos(config_cobranza, empadronado):
    ajeno = nuevo_empadronado("P-002", dni="22223333")
    return {
        "propio": ledger.generar_cargo(empadronado, "202503", config_cobranza),
        "ajeno": ledger.generar_cargo(ajeno, "202503", config_cobranza),
    }


def test_login_con_email_y_auditoria(api_client, asociado_user):
    r = api_client.post("/api/auth/login/", {"email": "rosa@junta.pe", "password": "clave-segura-123"}, format="json")
    assert r.status_code == 200
    assert {"access", "refresh"} <= set(r.data)
    r = api_client.post("/api/auth/login/", {"username": "rosa", "password": "otra"}, format="json")
    assert r.status_code == 401
    acciones = set(ActivityLog.objects.values_list("action", flat=True))
    assert {"USER_LOGIN_SUCCESS", "USER_LOGIN_FAILED"} <= acciones


def test_sin_autenticar(api_client):
    assert api_client.get("/api/cargos/").status_code == 401


def test_me(cliente_de, asociado_user):
    r = cliente_de(asociado_user).get("/api/me/")
    assert r.status_code == 200
    assert r.data["profile"]["role"] == "ASOCIADO"
    assert r.data["profile"]["numero_padron"] == "P-001"


def test_asociado_solo_ve_sus_cargos(cliente_de, asociado_user, economia_user, cargos):
    r = cliente_de(asociado_user).get("/api/cargos/")
    assert r.data["count"] == 1
    assert r.data["results"][0]["id"] == cargos["propio"].pk
    assert cliente_de(asociado_user).get(f"/api/cargos/{cargos['ajeno'].pk}/").status_code == 404
    assert cliente_de(economia_user).get("/api/cargos/").data["count"] == 2


def test_asociado_paga_su_cargo_y_queda_pendiente(cliente_de, asociado_user, cargos):
    client = cliente_de(asociado_user)
    payload = {
        "cargo": cargos["propio"].pk, "monto": "50.00", "metodo_pago": "yape",
        "numero_operacion": "778899", "fecha_pago": "2025-03-20", "aprobado": True,
    }
    r = client.post("/api/pagos/", payload, format="json")
    assert r.status_code == 201
    assert r.data["estado"] == Pago.Estado.PENDIENTE

    r = client.post("/api/pagos/", {**payload, "cargo": cargos["ajeno"].pk, "numero_operacion": "1"}, format="json")
    assert r.status_code == 403


def test_pago_sin_numero_de_operacion(cliente_de, economia_user, cargos):
    payload = {"cargo": cargos["propio"].pk, "monto": "10", "metodo_pago": "transferencia", "fecha_pago": "2025-03-20"}
    r = cliente_de(economia_user).post("/api/pagos/", payload, format="json")
    assert r.status_code == 400
    assert "numero_operacion" in r.data


def test_pago_con_fecha_atrasada_o_futura(cliente_de, asociado_user, cargos):
    client = cliente_de(asociado_user)
    payload = {
        "cargo": cargos["propio"].pk, "monto": "47.50", "metodo_pago": "yape",
        "numero_operacion": "445566", "fecha_pago": "2025-03-02",
    }
    r = client.post("/api/pagos/", payload, format="json")
    assert r.status_code == 201
    assert Decimal(r.data["descuento_pronto_pago"]) == Decimal("0")
    assert Decimal(r.data["monto"]) == Decimal("47.50")

    r = client.post("/api/pagos/", {**payload, "monto": "1", "numero_operacion": "1", "fecha_pago": "2099-01-01"}, format="json")
    assert r.status_code == 400
    assert "fecha_pago" in r.data


def test_regla_de_negocio_responde_400(cliente_de, economia_user, cargos):
    payload = {"cargo": cargos["propio"].pk, "monto": "80", "metodo_pago": "efectivo", "fecha_pago": "2025-03-20"}
    r = cliente_de(economia_user).post("/api/pagos/", payload, format="json")
    assert r.status_code == 400
    assert "excede" in r.data["detail"]


def test_economia_aprueba_y_rechaza(cliente_de, asociado_user, economia_user, cargos):
    pago = ledger.registrar_pago(cargos["propio"].pk, 10, "efectivo", date(2025, 3, 20))
    assert cliente_de(asociado_user).post(f"/api/pagos/{pago.pk}/aprobar/").status_code == 403
    r = cliente_de(economia_user).post(f"/api/pagos/{pago.pk}/aprobar/", {"comentario": "ok"}, format="json")
    assert r.status_code == 200
    assert r.data["numero_comprobante"] == "001-000001"
    r = cliente_de(economia_user).post(f"/api/pagos/{pago.pk}/rechazar/", {"motivo": "tarde"}, format="json")
    assert r.status_code == 400


def test_avisos_de_revision_de_pago(cliente_de, asociado_user, economia_user, cargos):
    aprobado = ledger.registrar_pago(cargos["propio"].pk, 10, "efectivo", date(2025, 3, 20))
    rechazado = ledger.registrar_pago(cargos["propio"].pk, 10, "efectivo", date(2025, 3, 21))
    ledger.aprobar_pago(aprobado.pk, usuario=economia_user)
    ledger.rechazar_pago(rechazado.pk, "Voucher ilegible", usuario=economia_user)

    client = cliente_de(asociado_user)
    r = client.get("/api/notifications/")
    assert r.status_code == 200
    assert r.data["count"] == 2
    mensajes = [n["message"] for n in r.data["results"]]
    assert any("aprobado" in m and "001-000001" in m for m in mensajes)
    assert any("Voucher ilegible" in m for m in mensajes)
    assert cliente_de(economia_user).get("/api/notifications/").data["count"] == 0

    aviso = r.data["results"][0]
    r = client.patch(f"/api/notifications/{aviso['id']}/", {"is_read": True, "message": "otro"}, format="json")
    assert r.status_code == 200
    assert r.data["is_read"] and r.data["message"] == aviso["message"]
    assert client.post("/api/notifications/mark_all_as_read/").status_code == 204
    assert all(n["is_read"] for n in client.get("/api/notifications/").data["results"])


def test_avisos_no_se_crean_por_api(cliente_de, asociado_user):
    r = cliente_de(asociado_user).post("/api/notifications/", {"message": "hola"}, format="json")
    assert r.status_code == 405


def test_generar_periodo_y_cierre(cliente_de, economia_user, asociado_user, config_cobranza, empadronado):
    assert cliente_de(asociado_user).post("/api/cargos/generar/", {"periodo": "202503"}, format="json").status_code == 403
    client = cliente_de(economia_user)
    r = client.post("/api/cargos/generar/", {"periodo": "202503"}, format="json")
    assert r.status_code == 201
    assert r.data["cargos_creados"] == 1
    assert client.post("/api/cargos/generar/", {"periodo": "202503"}, format="json").status_code == 400
    assert client.post("/api/cargos/generar/", {"periodo": "2025-03"}, format="json").status_code == 400
    r = client.post("/api/cargos/cierre/")
    assert r.status_code == 200
    assert Cargo.objects.get(periodo="202503").es_moroso


def test_estado_de_cuenta(cliente_de, asociado_user, economia_user, cargos):
    r = cliente_de(asociado_user).get("/api/cobranzas/estado-cuenta/")
    assert r.status_code == 200
    assert r.data["empadronado"]["numero_padron"] == "P-001"
    ajeno = cargos["ajeno"].empadronado_id
    assert cliente_de(asociado_user).get(f"/api/cobranzas/estado-cuenta/{ajeno}/").status_code == 403
    assert cliente_de(economia_user).get(f"/api/cobranzas/estado-cuenta/{ajeno}/").status_code == 200
    assert cliente_de(economia_user).get("/api/cobranzas/estado-cuenta/9999/").status_code == 404


def test_reportes_de_cobranza(cliente_de, economia_user, asociado_user, cargos):
    assert cliente_de(asociado_user).get("/api/cobranzas/deudores/").status_code == 403
    client = cliente_de(economia_user)
    assert len(client.get("/api/cobranzas/deudores/").data) == 2
    assert client.get("/api/cobranzas/morosidad/?anio=2025").data["anio"] == 2025
    assert client.get("/api/cobranzas/morosidad/?anio=abc").status_code == 400
    assert "tasa_cobranza" in client.get("/api/cobranzas/estadisticas/").data


def test_configuracion_de_cobranza(cliente_de, economia_user, asociado_user, config_cobranza):
    assert cliente_de(asociado_user).get("/api/cobranzas/configuracion/").status_code == 200
    assert cliente_de(asociado_user).patch("/api/cobranzas/configuracion/", {"monto_mensual": "1"}, format="json").status_code == 403
    client = cliente_de(economia_user)
    assert client.patch("/api/cobranzas/configuracion/", {"dia_cierre": 40}, format="json").status_code == 400
    r = client.patch("/api/cobranzas/configuracion/", {"monto_mensual": "60.00"}, format="json")
    assert r.status_code == 200
    assert Decimal(r.data["monto_mensual"]) == Decimal("60.00")


def test_movimientos_solo_economia(cliente_de, economia_user, asociado_user):
    payload = {"tipo": "egreso", "categoria": "donacion", "monto": "10", "descripcion": "x", "fecha": "2025-03-01"}
    assert cliente_de(asociado_user).get("/api/movimientos/").status_code == 403
    client = cliente_de(economia_user)
    assert client.post("/api/movimientos/", payload, format="json").status_code == 400
    r = client.post("/api/movimientos/", {**payload, "categoria": "mantenimiento"}, format="json")
    assert r.status_code == 201
    assert r.data["registrado_por"] == economia_user.pk
    assert client.get("/api/movimientos/resumen/").data["total_egresos"] == Decimal("10.00")
    assert r.data["origen"] == "manual"
    assert ActivityLog.objects.filter(action="REGISTRAR_EGRESO", objeto_id=str(r.data["id"])).exists()


def test_ingresos_registrados_por_cobros_no_se_tocan(cliente_de, economia_user):
    cancha = Cancha.objects.create(nombre="Losa", tipo="futbol", ubicacion="boulevard", precio_hora=Decimal("30"))
    inicio = timezone.make_aware(datetime(2030, 1, 10, 10))
    reserva = reservas.crear_reserva({
        "cancha": cancha, "nombre_cliente": "Rosa", "telefono": "987654321", "dni": "45678912",
        "fecha_inicio": inicio, "fecha_fin": inicio + timedelta(hours=1),
    })
    ingreso = reservas.registrar_pago_reserva(reserva.pk, "efectivo").ingreso
    client = cliente_de(economia_user)
    r = client.patch(f"/api/movimientos/{ingreso.pk}/", {"monto": "1.00"}, format="json")
    assert r.status_code == 400
    assert client.delete(f"/api/movimientos/{ingreso.pk}/").status_code == 400
    ingreso.refresh_from_db()
    assert ingreso.origen == "reserva"
    assert ingreso.monto == reserva.precio_total


def test_padron_escritura_solo_admin(cliente_de, admin_user, asociado_user, config_cobranza):
    payload = {
        "numero_padron": "P-200", "nombre": "Elena", "apellidos": "Soto", "dni": "70707070",
        "fecha_ingreso": "2025-05-02", "genero": "femenino",
    }
    assert cliente_de(asociado_user).post("/api/empadronados/", payload, format="json").status_code == 403
    client = cliente_de(admin_user)
    assert client.post("/api/empadronados/", {**payload, "dni": "70A"}, format="json").status_code == 400
    r = client.post("/api/empadronados/", payload, format="json")
    assert r.status_code == 201
    assert client.post("/api/empadronados/", {**payload, "numero_padron": "p-200"}, format="json").status_code == 400

    pk = r.data["id"]
    assert client.delete(f"/api/empadronados/{pk}/", {}, format="json").status_code == 400
    assert client.delete(f"/api/empadronados/{pk}/", {"motivo": "Duplicado"}, format="json").status_code == 204
    assert not Empadronado.objects.filter(pk=pk).exists()


def test_padron_busqueda(cliente_de, asociado_user):
    client = cliente_de(asociado_user)
    assert client.get("/api/empadronados/buscar/?dni=45678912").data["numero_padron"] == "P-001"
    assert client.get("/api/empadronados/buscar/?padron=X-9").status_code == 404
    assert client.get("/api/empadronados/buscar/").status_code == 400
    assert client.get("/api/empadronados/estadisticas/").data["total"] == 1


def test_vincular_cuenta(cliente_de, admin_user, empadronado):
    cuenta = crear_usuario("nuevo", "ASOCIADO")
    r = cliente_de(admin_user).post(f"/api/empadronados/{empadronado.pk}/vincular/", {"user": cuenta.pk}, format="json")
    assert r.status_code == 200
    assert r.data["empadronado"] == empadronado.pk


def test_reserva_de_asociado_queda_a_su_nombre(cliente_de, asociado_user, empadronado):
    cancha = Cancha.objects.create(nombre="Vóley 1", tipo="voley", ubicacion="quinta_llana", precio_hora=Decimal("20"))
    inicio = timezone.make_aware(datetime(2030, 5, 4, 9))
    payload = {
        "cancha": cancha.pk, "nombre_cliente": "Rosa", "telefono": "999111222", "dni": "45678912",
        "fecha_inicio": inicio.isoformat(), "fecha_fin": inicio.replace(hour=10).isoformat(),
    }
    client = cliente_de(asociado_user)
    r = client.post("/api/reservas/", payload, format="json")
    assert r.status_code == 201
    assert r.data["empadronado"] == empadronado.pk
    assert r.data["numero_comprobante"].startswith("DEP-")
    assert client.post(f"/api/reservas/{r.data['id']}/pagar/", {"metodo_pago": "efectivo"}, format="json").status_code == 403
    assert client.post("/api/reservas/", payload, format="json").status_code == 400


def test_inscripcion_a_evento(cliente_de, asociado_user, admin_user, empadronado):
    evento = inscripciones.crear_evento({
        "titulo": "Yoga", "fecha_inicio": date(2030, 1, 1), "fecha_fin": date(2030, 1, 31), "cupos_maximos": 5, "precio": 15,
    })
    sin_cuenta = crear_usuario("visitante", "ASOCIADO")
    body = {"personas": [{"nombre": "Rosa", "dni": "45678912"}]}
    assert cliente_de(sin_cuenta).post(f"/api/eventos/{evento.pk}/inscribir/", body, format="json").status_code == 403
    r = cliente_de(asociado_user).post(f"/api/eventos/{evento.pk}/inscribir/", body, format="json")
    assert r.status_code == 201
    assert r.data["empadronado"] == empadronado.pk
    assert cliente_de(asociado_user).get("/api/inscripciones/").data["count"] == 1
    assert cliente_de(asociado_user).patch(f"/api/eventos/{evento.pk}/", {"titulo": "X"}, format="json").status_code == 403
    assert cliente_de(admin_user).patch(f"/api/eventos/{evento.pk}/", {"titulo": "Yoga al aire libre"}, format="json").status_code == 200


def test_patrimonio_permisos(cliente_de, economia_user, asociado_user):
    payload = {"nombre": "Cortadora", "zona": "Depósito", "valor_estimado": "300.00"}
    assert cliente_de(asociado_user).post("/api/patrimonio/", payload, format="json").status_code == 403
    r = cliente_de(economia_user).post("/api/patrimonio/", payload, format="json")
    assert r.status_code == 201
    assert r.data["codigo"] == "PAT-001"
    assert cliente_de(asociado_user).get("/api/patrimonio/").data["count"] == 1
    assert cliente_de(economia_user).delete(f"/api/patrimonio/{r.data['id']}/").status_code == 204
    assert cliente_de(asociado_user).get("/api/patrimonio/").data["count"] == 0


def test_flujo_de_acceso_en_porton(cliente_de, asociado_user, seguridad_user, empadronado):
    payload = {"tipo": "visita", "personas": [{"nombre": "Ana Torres", "dni": "12345678"}]}
    r = cliente_de(asociado_user).post("/api/acceso/solicitudes/", payload, format="json")
    assert r.status_code == 201
    assert r.data["empadronado"] == empadronado.pk
    pk = r.data["id"]

    assert cliente_de(asociado_user).get("/api/acceso/solicitudes/pendientes/").status_code == 403
    assert cliente_de(asociado_user).post(f"/api/acceso/solicitudes/{pk}/autorizar/").status_code == 403
    pendientes = cliente_de(seguridad_user).get("/api/acceso/solicitudes/pendientes/")
    assert [s["id"] for s in pendientes.data] == [pk]
    r = cliente_de(seguridad_user).post(f"/api/acceso/solicitudes/{pk}/autorizar/", {}, format="json")
    assert r.status_code == 200
    assert r.data["estado"] == SolicitudAcceso.Estado.AUTORIZADO
    assert cliente_de(asociado_user).get("/api/acceso/solicitudes/historial/").data["count"] == 1


def test_favoritos_por_empadronado(cliente_de, asociado_user):
    client = cliente_de(asociado_user)
    r = client.post("/api/acceso/favoritos/", {"tipo": "visitante", "nombre": "Mamá", "datos": {"dni": "1"}}, format="json")
    assert r.status_code == 201
    otro = crear_usuario("otro", "ASOCIADO", empadronado=nuevo_empadronado("P-009", dni="9"))
    assert cliente_de(otro).get("/api/acceso/favoritos/").data["count"] == 0


def test_webhook_mercadopago_publico(api_client):
    r = api_client.post("/api/mercadopago/webhook/", {"type": "payment", "data": {"id": "1"}}, format="json")
    assert r.status_code == 200
