from datetime import date

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from cobranzas.models import ConfiguracionCobranza
from core.models import Empadronado, Profile

User = get_user_model()


def crear_usuario(username, role, empadronado=None):
    user = User.objects.create_user(username=username, email=f"{username}@junta.pe", password="clave-segura-123")
    Profile.objects.create(user=user, role=role, full_name=username.title(), empadronado=empadronado)
    return user


def nuevo_empadronado(numero_padron="P-001", **extra):
    datos = {
        "numero_padron": numero_padron,
        "nombre": "Rosa",
        "apellidos": "Quispe Mamani",
        "dni": "45678912",
        "fecha_ingreso": date(2024, 6, 1),
        "genero": "femenino",
        "manzana": "B",
        "lote": "12",
    }
    datos.update(extra)
    return Empadronado.objects.create(**datos)


@pytest.fixture
def config_cobranza(db):
    config = ConfiguracionCobranza.get_solo()
    config.monto_mensual = 50
    config.dia_cierre = 14
    config.dia_vencimiento = 15
    config.dias_pronto_pago = 3
    config.porcentaje_pronto_pago = 5
    config.porcentaje_morosidad = 10
    config.fecha_inicio_cobro = date(2025, 1, 15)
    config.save()
    return config


@pytest.fixture
def empadronado(db):
    return nuevo_empadronado()


@pytest.fixture
def admin_user(db):
    return crear_usuario("admin", "ADMIN")


@pytest.fixture
def economia_user(db):
    return crear_usuario("tesorera", "ECONOMIA")


@pytest.fixture
def seguridad_user(db):
    return crear_usuario("vigilante", "SEGURIDAD")


@pytest.fixture
def asociado_user(empadronado):
    return crear_usuario("rosa", "ASOCIADO", empadronado=empadronado)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def cliente_de(db):
    def _cliente(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _cliente
