# patrimonio/services/inventario.py
from __future__ import annotations

from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Q

from core.services.auditoria import registrar_actividad
from core.services.correlativos import siguiente_codigo
from patrimonio.models import ItemPatrimonio

# Prefijo GS1 de uso interno (200-299)
PREFIJO_BARRAS = "200"


def digito_control_ean13(cuerpo: str) -> str:
    suma = sum(int(d) * (3 if i % 2 else 1) for i, d in enumerate(cuerpo))
    return str((10 - suma % 10) % 10)


def codigo_barras_para(codigo: str) -> str:
    """EAN-13 derivado del correlativo: 'PAT-007' -> '200000000007' + dígito de control."""
    numero = int(codigo.rsplit("-", 1)[-1])
    cuerpo = f"{PREFIJO_BARRAS}{numero:09d}"
    return cuerpo + digito_control_ean13(cuerpo)


@transaction.atomic
def crear_item(datos: dict, usuario=None) -> ItemPatrimonio:
    codigo = siguiente_codigo("patrimonio", "PAT", 3)
    item = ItemPatrimonio.objects.create(
        **datos,
        codigo=codigo,
        codigo_barras=codigo_barras_para(codigo),
        registrado_por=usuario if getattr(usuario, "is_authenticated", False) else None,
    )
    registrar_actividad(usuario, "CREAR_BIEN", "patrimonio", objeto=item, details=str(item))
    return item


def actualizar_item(item: ItemPatrimonio, datos: dict, usuario=None) -> ItemPatrimonio:
    for campo, valor in datos.items():
        setattr(item, campo, valor)
    item.save()
    registrar_actividad(usuario, "ACTUALIZAR_BIEN", "patrimonio", objeto=item, campos=sorted(datos))
    return item


def dar_de_baja(item: ItemPatrimonio, motivo: str = "", usuario=None) -> ItemPatrimonio:
    """Baja lógica: el bien deja de listarse pero conserva su código."""
    item.activo = False
    item.save(update_fields=["activo", "updated_at"])
    registrar_actividad(usuario, "BAJA_BIEN", "patrimonio", objeto=item, details=motivo or None)
    return item


def resumen() -> dict:
    activos = ItemPatrimonio.objects.filter(activo=True)
    conteos = activos.aggregate(
        total=Count("id"),
        bueno=Count("id", filter=Q(conservacion="bueno")),
        regular=Count("id", filter=Q(conservacion="regular")),
        malo=Count("id", filter=Q(conservacion="malo")),
        nuevo=Count("id", filter=Q(condicion="nuevo")),
        segunda=Count("id", filter=Q(condicion="segunda")),
        donaciones=Count("id", filter=Q(es_donacion=True)),
        pendientes=Count("id", filter=Q(requiere_mantenimiento=True)),
    )
    items = list(activos.only("es_donacion", "valor_estimado", "valor_aproximado_donacion"))
    return {
        "total_items": conteos["total"],
        "valor_total": sum((i.valor_patrimonial for i in items), Decimal("0")),
        "por_estado": {k: conteos[k] for k in ("bueno", "regular", "malo")},
        "por_condicion": {k: conteos[k] for k in ("nuevo", "segunda")},
        "donaciones": {
            "cantidad": conteos["donaciones"],
            "valor_total": sum((i.valor_patrimonial for i in items if i.es_donacion), Decimal("0")),
        },
        "mantenimiento": {
            "pendientes": conteos["pendientes"],
            "al_dia": conteos["total"] - conteos["pendientes"],
        },
    }
