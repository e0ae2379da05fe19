from decimal import Decimal

import pytest

from patrimonio.filters import ItemPatrimonioFilter
from patrimonio.models import ItemPatrimonio
from patrimonio.services import inventario

pytestmark = pytest.mark.django_db


def test_digito_control_ean13():
    # EAN conocido: 400638133393-1
    assert inventario.digito_control_ean13("400638133393") == "1"
    assert inventario.codigo_barras_para("PAT-001") == "2000000000015"
    assert inventario.codigo_barras_para("PAT-007") == "2000000000077"


def test_crear_item_asigna_codigos_correlativos(economia_user):
    primero = inventario.crear_item({"nombre": "Podadora", "zona": "Parque 1", "valor_estimado": Decimal("850")}, usuario=economia_user)
    segundo = inventario.crear_item({"nombre": "Escalera", "zona": "Depósito"})
    assert primero.codigo == "PAT-001"
    assert segundo.codigo == "PAT-002"
    assert len(segundo.codigo_barras) == 13
    assert primero.registrado_por == economia_user


def test_baja_logica():
    item = inventario.crear_item({"nombre": "Silla", "zona": "Salón"})
    inventario.dar_de_baja(item, "Rota")
    assert ItemPatrimonio.objects.filter(pk=item.pk, activo=False).exists()
    assert inventario.resumen()["total_items"] == 0


def test_resumen_valoriza_donaciones():
    inventario.crear_item({"nombre": "Parlante", "zona": "Salón", "valor_estimado": Decimal("500"), "conservacion": "regular"})
    inventario.crear_item({
        "nombre": "Mesa", "zona": "Salón", "valor_estimado": Decimal("999"), "condicion": "segunda",
        "es_donacion": True, "donante": "Familia Rojas", "valor_aproximado_donacion": Decimal("300"),
        "requiere_mantenimiento": True,
    })
    resumen = inventario.resumen()
    assert resumen["total_items"] == 2
    assert resumen["valor_total"] == Decimal("800")
    assert resumen["por_estado"] == {"bueno": 1, "regular": 1, "malo": 0}
    assert resumen["por_condicion"] == {"nuevo": 1, "segunda": 1}
    assert resumen["donaciones"] == {"cantidad": 1, "valor_total": Decimal("300")}
    assert resumen["mantenimiento"] == {"pendientes": 1, "al_dia": 1}


def test_filtros():
    inventario.crear_item({"nombre": "Bomba de agua", "zona": "Cisterna", "responsable": "Juan Pérez", "requiere_mantenimiento": True})
    inventario.crear_item({"nombre": "Mesa", "zona": "Salón comunal", "es_donacion": True, "donante": "Vecinos"})
    qs = ItemPatrimonio.objects.all()
    assert ItemPatrimonioFilter({"busqueda": "bomba"}, queryset=qs).qs.count() == 1
    assert ItemPatrimonioFilter({"ubicacion": "salón"}, queryset=qs).qs.get().nombre == "Mesa"
    assert ItemPatrimonioFilter({"responsable": "pérez"}, queryset=qs).qs.count() == 1
    assert ItemPatrimonioFilter({"es_donacion": "true"}, queryset=qs).qs.count() == 1
    assert ItemPatrimonioFilter({"requiere_mantenimiento": "false"}, queryset=qs).qs.get().nombre == "Mesa"
