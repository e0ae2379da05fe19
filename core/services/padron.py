# core/services/padron.py
from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q
from django.forms.models import model_to_dict

from core.exceptions import ReglaNegocioError
from core.models import Empadronado, Profile
from core.services.auditoria import registrar_actividad

logger = logging.getLogger(__name__)
User = get_user_model()

CAMPOS_AUDITADOS = [
    "numero_padron", "nombre", "apellidos", "dni", "familia", "manzana", "lote",
    "placas_vehiculares", "habilitado", "telefono1", "telefono2", "telefono3",
    "fecha_ingreso", "direccion", "genero", "vive", "estado_vivienda", "cumpleanos",
    "observaciones", "hijos",
]


def _usuario(user):
    return user if getattr(user, "is_authenticated", False) else None


def _validar_padron_unico(numero_padron: str, excluir_id=None):
    qs = Empadronado.objects.filter(numero_padron__iexact=numero_padron.strip())
    if excluir_id is not None:
        qs = qs.exclude(pk=excluir_id)
    if qs.exists():
        raise ReglaNegocioError(f"El número de padrón {numero_padron} ya está registrado")


@transaction.atomic
def crear_empadronado(datos: dict, usuario=None) -> Empadronado:
    """Registra al empadronado y le genera los cargos pendientes desde su primer periodo facturable."""
    # import diferido: cobranzas depende de core
    from cobranzas.services.ledger import asegurar_cargos_empadronado

    _validar_padron_unico(datos["numero_padron"])
    empadronado = Empadronado.objects.create(**datos, creado_por=_usuario(usuario), modificado_por=_usuario(usuario))
    cargos = asegurar_cargos_empadronado(empadronado)
    registrar_actividad(
        usuario, "CREAR_EMPADRONADO", "padron", objeto=empadronado,
        details=f"Alta de {empadronado}", cargos_generados=cargos,
    )
    return empadronado


@transaction.atomic
def actualizar_empadronado(empadronado: Empadronado, datos: dict, usuario=None) -> Empadronado:
    if "numero_padron" in datos:
        _validar_padron_unico(datos["numero_padron"], excluir_id=empadronado.pk)
    antes = model_to_dict(empadronado, fields=CAMPOS_AUDITADOS)
    for campo, valor in datos.items():
        setattr(empadronado, campo, valor)
    empadronado.modificado_por = _usuario(usuario)
    empadronado.save()
    despues = model_to_dict(empadronado, fields=CAMPOS_AUDITADOS)
    cambios = {c: {"antes": antes[c], "despues": despues[c]} for c in CAMPOS_AUDITADOS if antes[c] != despues[c]}
    if cambios:
        registrar_actividad(usuario, "ACTUALIZAR_EMPADRONADO", "padron", objeto=empadronado, details=str(empadronado), cambios=cambios)
    return empadronado


@transaction.atomic
def eliminar_empadronado(empadronado: Empadronado, motivo: str, usuario=None) -> None:
    motivo = (motivo or "").strip()
    if not motivo:
        raise ReglaNegocioError("Debe indicar el motivo de la eliminación")
    snapshot = model_to_dict(empadronado, fields=CAMPOS_AUDITADOS)
    registrar_actividad(usuario, "ELIMINAR_EMPADRONADO", "padron", objeto=empadronado, details=motivo, empadronado=snapshot)
    empadronado.delete()


def buscar(texto: str):
    texto = (texto or "").strip()
    qs = Empadronado.objects.all()
    if not texto:
        return qs
    return qs.filter(
        Q(nombre__icontains=texto) | Q(apellidos__icontains=texto)
        | Q(numero_padron__icontains=texto) | Q(dni__icontains=texto)
    )


def obtener_por_dni(dni: str) -> Empadronado:
    # el DNI no es único: un titular puede tener más de un lote
    empadronado = Empadronado.objects.filter(dni=dni.strip()).order_by("numero_padron").first()
    if empadronado is None:
        raise Empadronado.DoesNotExist(f"No hay empadronado con DNI {dni}")
    return empadronado


def obtener_por_padron(numero_padron: str) -> Empadronado:
    return Empadronado.objects.get(numero_padron__iexact=numero_padron.strip())


def estadisticas() -> dict:
    qs = Empadronado.objects.all()
    totales = qs.aggregate(
        total=Count("id"),
        viven=Count("id", filter=Q(vive=True)),
        habilitados=Count("id", filter=Q(habilitado=True)),
    )
    por_vivienda = {k: 0 for k, _ in Empadronado.VIVIENDA_CHOICES}
    for fila in qs.values("estado_vivienda").annotate(n=Count("id")):
        por_vivienda[fila["estado_vivienda"]] = fila["n"]
    por_genero = {k: 0 for k, _ in Empadronado.GENERO_CHOICES}
    for fila in qs.values("genero").annotate(n=Count("id")):
        por_genero[fila["genero"]] = fila["n"]
    return {
        "total": totales["total"],
        "viven": totales["viven"],
        "no_viven": totales["total"] - totales["viven"],
        "habilitados": totales["habilitados"],
        "inhabilitados": totales["total"] - totales["habilitados"],
        "por_estado_vivienda": por_vivienda,
        "por_genero": por_genero,
    }


@transaction.atomic
def vincular_cuenta(empadronado: Empadronado, user_id: int, usuario=None) -> Profile:
    cuenta = User.objects.get(pk=user_id)
    otro = Profile.objects.filter(empadronado=empadronado).exclude(user=cuenta).first()
    if otro is not None:
        raise ReglaNegocioError(f"El empadronado ya está vinculado a la cuenta {otro.user.username}")
    profile, _ = Profile.objects.get_or_create(user=cuenta)
    profile.empadronado = empadronado
    profile.save(update_fields=["empadronado"])
    registrar_actividad(usuario, "VINCULAR_CUENTA", "padron", objeto=empadronado, details=cuenta.username)
    return profile


@transaction.atomic
def desvincular_cuenta(empadronado: Empadronado, usuario=None) -> None:
    profile = Profile.objects.filter(empadronado=empadronado).first()
    if profile is None:
        raise ReglaNegocioError("El empadronado no tiene una cuenta vinculada")
    profile.empadronado = None
    profile.save(update_fields=["empadronado"])
    registrar_actividad(usuario, "DESVINCULAR_CUENTA", "padron", objeto=empadronado, details=profile.user.username)
