# acceso/views.py
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from core.models import Empadronado
from core.permissions import HasRole, ReadOnlyOrRole, empadronado_id_de, es_personal

from .models import Favorito, ListaTrabajadores, MaestroObra, SolicitudAcceso
from .serializers import (
    FavoritoSerializer, ListaTrabajadoresSerializer, MaestroObraSerializer, ResolucionSerializer,
    SolicitarDesdeListaSerializer, SolicitudAccesoSerializer,
)
from .services import solicitudes as svc

EsSeguridad = HasRole.of("SEGURIDAD")


def _empadronado_propio(user):
    empadronado_id = empadronado_id_de(user)
    if empadronado_id is None:
        raise PermissionDenied("Su cuenta no está vinculada a un empadronado.")
    return Empadronado.objects.get(pk=empadronado_id)


class PropiosMixin:
    """Seguridad ve todo; el asociado solo lo de su empadronado."""

    def get_queryset(self):
        qs = super().get_queryset()
        if not es_personal(self.request.user, "SEGURIDAD"):
            qs = qs.filter(empadronado_id=empadronado_id_de(self.request.user))
        return qs


class SolicitudAccesoViewSet(PropiosMixin,
                             mixins.CreateModelMixin,
                             viewsets.ReadOnlyModelViewSet):
    queryset = SolicitudAcceso.objects.select_related("empadronado", "maestro_obra").all()
    serializer_class = SolicitudAccesoSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["tipo", "estado", "portico", "tipo_acceso", "empadronado"]
    search_fields = ["solicitado_por_nombre", "solicitado_por_padron", "empresa"]

    def get_permissions(self):
        if self.action in ("pendientes", "autorizar", "denegar"):
            return [EsSeguridad()]
        return super().get_permissions()

    def perform_create(self, serializer):
        datos = dict(serializer.validated_data)
        empadronado = datos.pop("empadronado", None)
        if empadronado is None or not es_personal(self.request.user, "SEGURIDAD"):
            empadronado = _empadronado_propio(self.request.user)
        tipo = datos.pop("tipo")
        serializer.instance = svc.crear_solicitud(tipo, empadronado, datos, usuario=self.request.user)

    @action(detail=False, methods=["get"])
    def pendientes(self, request):
        qs = svc.pendientes(request.query_params.get("portico"))
        return Response(self.get_serializer(qs, many=True).data)

    def _resolver(self, request, estado):
        ser = ResolucionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        solicitud = svc.resolver(self.get_object().pk, estado, usuario=request.user, observaciones=ser.validated_data["observaciones"])
        return Response(self.get_serializer(solicitud).data)

    @action(detail=True, methods=["post"])
    def autorizar(self, request, pk=None):
        return self._resolver(request, SolicitudAcceso.Estado.AUTORIZADO)

    @action(detail=True, methods=["post"])
    def denegar(self, request, pk=None):
        return self._resolver(request, SolicitudAcceso.Estado.DENEGADO)

    @action(detail=False, methods=["get"])
    def historial(self, request):
        empadronado_id = request.query_params.get("empadronado")
        if empadronado_id and es_personal(request.user, "SEGURIDAD"):
            empadronado = Empadronado.objects.get(pk=empadronado_id)
        else:
            empadronado = _empadronado_propio(request.user)
        page = self.paginate_queryset(svc.historial(empadronado))
        return self.get_paginated_response(self.get_serializer(page, many=True).data)


class MaestroObraViewSet(viewsets.ModelViewSet):
    """Registro de maestros de obra. DELETE los desactiva."""
    queryset = MaestroObra.objects.all()
    serializer_class = MaestroObraSerializer
    permission_classes = [ReadOnlyOrRole.of("SEGURIDAD")]
    filterset_fields = ["activo"]
    search_fields = ["nombre", "dni", "empresa"]

    def perform_create(self, serializer):
        serializer.instance = svc.crear_maestro_obra(serializer.validated_data, usuario=self.request.user)

    def perform_destroy(self, instance):
        instance.activo = False
        instance.save(update_fields=["activo", "updated_at"])


class FavoritoViewSet(viewsets.ModelViewSet):
    queryset = Favorito.objects.all()
    serializer_class = FavoritoSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["tipo"]

    def get_queryset(self):
        return super().get_queryset().filter(empadronado_id=empadronado_id_de(self.request.user))

    def perform_create(self, serializer):
        serializer.save(empadronado=_empadronado_propio(self.request.user))


class ListaTrabajadoresViewSet(PropiosMixin, viewsets.ModelViewSet):
    queryset = ListaTrabajadores.objects.select_related("maestro_obra").all()
    serializer_class = ListaTrabajadoresSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["activa", "maestro_obra"]
    http_method_names = ["get", "post", "delete", "head", "options"]

    def perform_create(self, serializer):
        serializer.instance = svc.crear_lista(
            _empadronado_propio(self.request.user), serializer.validated_data, usuario=self.request.user
        )

    def perform_destroy(self, instance):
        instance.activa = False
        instance.save(update_fields=["activa", "updated_at"])

    @action(detail=True, methods=["post"])
    def solicitar(self, request, pk=None):
        ser = SolicitarDesdeListaSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        solicitud = svc.solicitar_desde_lista(self.get_object(), usuario=request.user, portico=ser.validated_data["portico"])
        return Response(SolicitudAccesoSerializer(solicitud).data, status=status.HTTP_201_CREATED)
