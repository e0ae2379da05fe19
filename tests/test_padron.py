from datetime import date

import pytest
from django.utils import timezone

from cobranzas.services.periodos import periodo_de
from core.exceptions import ReglaNegocioError
from core.models import ActivityLog, Empadronado, Profile
from core.services import padron

from .conftest import crear_usuario, nuevo_empadronado

pytestmark = pytest.mark.django_db


def _datos(**extra):
    datos = {
        "numero_padron": "P-100",
        "nombre": "Julio",
        "apellidos": "Huamán Ccori",
        "dni": "40404040",
        "fecha_ingreso": date(2023, 1, 10),
        "genero": "masculino",
    }
    datos.update(extra)
    return datos


def test_alta_genera_cargos_desde_la_politica(config_cobranza, admin_user):
    emp = padron.crear_empadronado(_datos(), usuario=admin_user)
    periodos = list(emp.cargos.order_by("periodo").values_list("periodo", flat=True))
    assert periodos[0] == "202501"
    assert periodos[-1] == periodo_de(timezone.localdate())
    assert emp.creado_por == admin_user
    log = ActivityLog.objects.get(action="CREAR_EMPADRONADO")
    assert log.datos["cargos_generados"] == len(periodos)


def test_padron_unico_sin_importar_mayusculas(config_cobranza):
    padron.crear_empadronado(_datos(numero_padron="a-1"))
    with pytest.raises(ReglaNegocioError):
        padron.crear_empadronado(_datos(numero_padron="A-1", dni="50505050"))


def test_actualizar_audita_solo_lo_cambiado(empadronado, admin_user):
    padron.actualizar_empadronado(empadronado, {"telefono1": "987654321", "nombre": "Rosa"}, usuario=admin_user)
    log = ActivityLog.objects.get(action="ACTUALIZAR_EMPADRONADO")
    assert log.datos["cambios"] == {"telefono1": {"antes": "", "despues": "987654321"}}
    assert log.objeto_id == str(empadronado.pk)


def test_actualizar_sin_cambios_no_deja_rastro(empadronado):
    padron.actualizar_empadronado(empadronado, {"nombre": "Rosa"})
    assert not ActivityLog.objects.filter(action="ACTUALIZAR_EMPADRONADO").exists()


def test_actualizar_con_padron_repetido(empadronado):
    otro = nuevo_empadronado("P-002", dni="22223333")
    with pytest.raises(ReglaNegocioError):
        padron.actualizar_empadronado(otro, {"numero_padron": "p-001"})


def test_eliminar_exige_motivo_y_guarda_copia(empadronado):
    with pytest.raises(ReglaNegocioError):
        padron.eliminar_empadronado(empadronado, "")
    pk = empadronado.pk
    padron.eliminar_empadronado(empadronado, "Vendió el lote")
    assert not Empadronado.objects.filter(pk=pk).exists()
    log = ActivityLog.objects.get(action="ELIMINAR_EMPADRONADO")
    assert log.details == "Vendió el lote"
    assert log.datos["empadronado"]["numero_padron"] == "P-001"


def test_buscar_y_obtener(empadronado):
    nuevo_empadronado("P-002", nombre="Carlos", apellidos="Rojas", dni="22223333")
    assert list(padron.buscar("quispe")) == [empadronado]
    assert padron.buscar("").count() == 2
    assert padron.obtener_por_dni(" 45678912 ") == empadronado
    assert padron.obtener_por_padron("p-002").nombre == "Carlos"
    with pytest.raises(Empadronado.DoesNotExist):
        padron.obtener_por_dni("00000000")


def test_estadisticas():
    nuevo_empadronado("P-001", vive=True, estado_vivienda="construida")
    nuevo_empadronado("P-002", dni="2", genero="masculino", habilitado=False)
    stats = padron.estadisticas()
    assert stats["total"] == 2
    assert stats["viven"] == 1 and stats["no_viven"] == 1
    assert stats["habilitados"] == 1 and stats["inhabilitados"] == 1
    assert stats["por_estado_vivienda"] == {"construida": 1, "construccion": 0, "terreno": 1}
    assert stats["por_genero"] == {"masculino": 1, "femenino": 1}


def test_vincular_y_desvincular_cuenta(empadronado):
    user = crear_usuario("julio", "ASOCIADO")
    profile = padron.vincular_cuenta(empadronado, user.pk)
    assert profile.empadronado == empadronado

    otro = crear_usuario("intruso", "ASOCIADO")
    with pytest.raises(ReglaNegocioError):
        padron.vincular_cuenta(empadronado, otro.pk)

    padron.desvincular_cuenta(empadronado)
    assert Profile.objects.get(user=user).empadronado is None
    with pytest.raises(ReglaNegocioError):
        padron.desvincular_cuenta(empadronado)
