# acceso/services/solicitudes.py
from __future__ import annotations

import logging
from datetime import date

from django.db import transaction
from django.utils import timezone

from acceso.models import ListaTrabajadores, MaestroObra, SolicitudAcceso
from core.exceptions import ReglaNegocioError
from core.services.auditoria import registrar_actividad
from core.services.notificaciones import notificar_empadronado, notificar_rol

logger = logging.getLogger(__name__)

MAX_DIAS_LISTA = 30
RESULTADO = {SolicitudAcceso.Estado.AUTORIZADO: "autorizada", SolicitudAcceso.Estado.DENEGADO: "denegada"}


def normalizar_placas(placas) -> list[str]:
    return [p.strip().upper().replace(" ", "") for p in (placas or []) if p and p.strip()]


def _validar_personas(personas, etiqueta):
    if not personas:
        raise ReglaNegocioError(f"Debe registrar al menos un {etiqueta}")
    for persona in personas:
        if not (persona.get("nombre") or "").strip():
            raise ReglaNegocioError(f"Todos los {etiqueta}s deben tener nombre")
        if not persona.get("es_menor") and not (persona.get("dni") or "").strip():
            raise ReglaNegocioError(f"Falta el DNI de {persona['nombre']}")


@transaction.atomic
def crear_solicitud(tipo: str, empadronado, datos: dict, usuario=None) -> SolicitudAcceso:
    """
    Registra una solicitud de ingreso; queda pendiente en el pórtico hasta que
    Seguridad la autorice o deniegue.
    """
    datos = dict(datos)
    datos["placas"] = normalizar_placas(datos.get("placas"))
    if datos.get("tipo_acceso") == "vehicular" and not datos["placas"]:
        raise ReglaNegocioError("El acceso vehicular requiere al menos una placa")
    if datos.get("tipo_acceso") != "vehicular":
        datos["placas"] = []

    personas = datos.get("personas") or []
    if tipo == SolicitudAcceso.Tipo.VISITA:
        _validar_personas(personas, "visitante")
        datos["menores"] = sum(1 for p in personas if p.get("es_menor"))
    elif tipo == SolicitudAcceso.Tipo.TRABAJADORES:
        _validar_personas(personas, "trabajador")
        maestro = datos.get("maestro_obra")
        if maestro is None and not (datos.get("maestro_obra_temporal") or {}).get("nombre"):
            raise ReglaNegocioError("Indique el maestro de obra a cargo")
        if maestro is not None and not maestro.activo:
            raise ReglaNegocioError(f"El maestro de obra {maestro.nombre} no está activo")
    elif tipo == SolicitudAcceso.Tipo.PROVEEDOR:
        if not (datos.get("empresa") or "").strip():
            raise ReglaNegocioError("Indique la empresa del proveedor")
    else:
        raise ReglaNegocioError(f"Tipo de solicitud inválido: {tipo}")

    solicitud = SolicitudAcceso.objects.create(
        tipo=tipo,
        empadronado=empadronado,
        solicitado_por_nombre=empadronado.nombre_completo,
        solicitado_por_padron=empadronado.numero_padron,
        **datos,
    )
    registrar_actividad(usuario, "SOLICITAR_ACCESO", "acceso", objeto=solicitud, tipo=tipo, portico=solicitud.portico)
    notificar_rol(
        "SEGURIDAD",
        f"{solicitud.solicitado_por_nombre} solicita autorización ({solicitud.get_tipo_display().lower()}) en el pórtico {solicitud.portico}",
        link=f"/acceso/solicitudes/{solicitud.pk}/",
    )
    return solicitud


def pendientes(portico: str | None = None):
    qs = SolicitudAcceso.objects.filter(estado=SolicitudAcceso.Estado.PENDIENTE).select_related("maestro_obra")
    if portico:
        qs = qs.filter(portico=portico)
    return qs.order_by("created_at", "id")


@transaction.atomic
def resolver(solicitud_id: int, estado: str, usuario=None, observaciones: str = "") -> SolicitudAcceso:
    if estado not in (SolicitudAcceso.Estado.AUTORIZADO, SolicitudAcceso.Estado.DENEGADO):
        raise ReglaNegocioError("El estado debe ser 'autorizado' o 'denegado'")
    solicitud = SolicitudAcceso.objects.select_for_update().get(pk=solicitud_id)
    if solicitud.estado != SolicitudAcceso.Estado.PENDIENTE:
        raise ReglaNegocioError(f"La solicitud ya fue {solicitud.estado}")
    solicitud.estado = estado
    solicitud.resuelto_por = usuario if getattr(usuario, "is_authenticated", False) else None
    solicitud.fecha_resolucion = timezone.now()
    if observaciones:
        solicitud.observaciones = observaciones
    solicitud.save()
    registrar_actividad(usuario, f"ACCESO_{estado.upper()}", "acceso", objeto=solicitud, portico=solicitud.portico)
    notificar_empadronado(
        solicitud.empadronado_id,
        f"Su solicitud de {solicitud.get_tipo_display().lower()} fue {RESULTADO[estado]}",
        link=f"/acceso/solicitudes/{solicitud.pk}/",
    )
    return solicitud


def historial(empadronado):
    return SolicitudAcceso.objects.filter(empadronado=empadronado).select_related("maestro_obra").order_by("-created_at")


def crear_maestro_obra(datos: dict, usuario=None) -> MaestroObra:
    nombre = (datos.get("nombre") or "").strip()
    if not nombre:
        raise ReglaNegocioError("El nombre es obligatorio")
    maestro = MaestroObra.objects.create(
        **{**datos, "nombre": nombre},
        creado_por=usuario if getattr(usuario, "is_authenticated", False) else None,
    )
    registrar_actividad(usuario, "CREAR_MAESTRO_OBRA", "acceso", objeto=maestro, details=nombre)
    return maestro


def validar_vigencia(fecha_inicio: date, fecha_fin: date) -> None:
    if fecha_fin < fecha_inicio:
        raise ReglaNegocioError("La fecha de fin no puede ser anterior a la de inicio")
    if (fecha_fin - fecha_inicio).days > MAX_DIAS_LISTA:
        raise ReglaNegocioError(f"El período máximo es de {MAX_DIAS_LISTA} días")


def crear_lista(empadronado, datos: dict, usuario=None) -> ListaTrabajadores:
    validar_vigencia(datos["fecha_inicio"], datos["fecha_fin"])
    _validar_personas(datos.get("trabajadores"), "trabajador")
    if not datos["maestro_obra"].activo:
        raise ReglaNegocioError(f"El maestro de obra {datos['maestro_obra'].nombre} no está activo")
    datos = {**datos, "placas": normalizar_placas(datos.get("placas"))}
    lista = ListaTrabajadores.objects.create(empadronado=empadronado, **datos)
    registrar_actividad(usuario, "CREAR_LISTA_TRABAJADORES", "acceso", objeto=lista, hasta=lista.fecha_fin)
    return lista


def solicitar_desde_lista(lista: ListaTrabajadores, usuario=None, portico: str = "principal", hoy: date | None = None) -> SolicitudAcceso:
    """Genera la solicitud del día con los trabajadores de una lista vigente."""
    hoy = hoy or timezone.localdate()
    if not lista.activa or not lista.fecha_inicio <= hoy <= lista.fecha_fin:
        raise ReglaNegocioError("La lista no está vigente")
    solicitud = crear_solicitud(
        SolicitudAcceso.Tipo.TRABAJADORES,
        lista.empadronado,
        {
            "portico": portico,
            "tipo_acceso": lista.tipo_acceso,
            "placas": lista.placas,
            "personas": lista.trabajadores,
            "maestro_obra": lista.maestro_obra,
        },
        usuario=usuario,
    )
    solicitud.lista = lista
    solicitud.save(update_fields=["lista"])
    return solicitud
