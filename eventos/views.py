# eventos/views.py
from django.db import transaction
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from core.permissions import HasRole, ReadOnlyOrRole, empadronado_id_de, es_personal

from .models import Evento, Inscripcion, Promocion, Sesion
from .serializers import (
    AsistenciaSerializer, CotizacionSerializer, EstadoEventoSerializer, EventoSerializer,
    InscribirSerializer, InscripcionSerializer, PagoInscripcionSerializer,
)
from .services import inscripciones as svc

EsEconomia = HasRole.of("ECONOMIA")


class EventoViewSet(viewsets.ModelViewSet):
    queryset = Evento.objects.prefetch_related("sesiones", "promociones").all()
    serializer_class = EventoSerializer
    permission_classes = [ReadOnlyOrRole]
    filterset_fields = ["estado", "categoria"]
    search_fields = ["titulo", "descripcion", "instructor", "lugar"]

    def get_permissions(self):
        if self.action in ("inscribir", "cotizar"):
            return [permissions.IsAuthenticated()]
        if self.action == "estadisticas":
            return [EsEconomia()]
        return super().get_permissions()

    def perform_create(self, serializer):
        datos = dict(serializer.validated_data)
        sesiones = datos.pop("sesiones", [])
        promociones = datos.pop("promociones", [])
        serializer.instance = svc.crear_evento(datos, sesiones, promociones, usuario=self.request.user)

    @transaction.atomic
    def perform_update(self, serializer):
        datos = dict(serializer.validated_data)
        sesiones = datos.pop("sesiones", None)
        promociones = datos.pop("promociones", None)
        evento = svc.actualizar_evento(serializer.instance, datos, usuario=self.request.user)
        # las listas anidadas, si vienen, reemplazan a las actuales
        if sesiones is not None:
            evento.sesiones.filter(inscripciones__isnull=True).delete()
            for sesion in sesiones:
                Sesion.objects.create(evento=evento, **sesion)
        if promociones is not None:
            evento.promociones.all().delete()
            for promocion in promociones:
                Promocion.objects.create(evento=evento, **promocion)
        serializer.instance = Evento.objects.prefetch_related("sesiones", "promociones").get(pk=evento.pk)

    @action(detail=True, methods=["post"])
    def inscribir(self, request, pk=None):
        ser = InscribirSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        empadronado = getattr(getattr(request.user, "profile", None), "empadronado", None)
        if empadronado is None and not es_personal(request.user, "ECONOMIA"):
            raise PermissionDenied("Su cuenta no está vinculada a un empadronado.")
        inscripcion = svc.inscribir(
            self.get_object().pk,
            ser.validated_data["personas"],
            ser.validated_data["sesiones"],
            empadronado=empadronado,
            codigo=ser.validated_data["codigo"],
            observaciones=ser.validated_data["observaciones"],
            usuario=request.user,
        )
        return Response(InscripcionSerializer(inscripcion).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def cotizar(self, request, pk=None):
        evento = self.get_object()
        ser = CotizacionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        sesiones = evento.sesiones.filter(pk__in=ser.validated_data["sesiones"])
        precio = svc.calcular_precio(evento, list(sesiones), ser.validated_data["personas"], ser.validated_data["codigo"])
        promocion = precio.pop("promocion")
        return Response({**precio, "promocion": promocion.pk if promocion else None})

    @action(detail=True, methods=["post"])
    def estado(self, request, pk=None):
        ser = EstadoEventoSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        evento = svc.cambiar_estado(self.get_object(), ser.validated_data["estado"], usuario=request.user)
        return Response(self.get_serializer(evento).data)

    @action(detail=False, methods=["get"])
    def estadisticas(self, request):
        return Response(svc.estadisticas())


class InscripcionViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Inscripcion.objects.select_related("evento", "comprobante").prefetch_related("sesiones").all()
    serializer_class = InscripcionSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["evento", "estado", "pago_realizado", "empadronado"]
    search_fields = ["nombre", "dni"]

    def get_permissions(self):
        if self.action in ("pagar", "asistencia"):
            return [EsEconomia()]
        return super().get_permissions()

    def get_queryset(self):
        qs = super().get_queryset()
        if not es_personal(self.request.user, "ECONOMIA"):
            qs = qs.filter(empadronado_id=empadronado_id_de(self.request.user))
        return qs

    @action(detail=True, methods=["post"])
    def pagar(self, request, pk=None):
        ser = PagoInscripcionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        inscripcion = svc.registrar_pago_inscripcion(self.get_object().pk, usuario=request.user, **ser.validated_data)
        return Response(InscripcionSerializer(inscripcion).data)

    @action(detail=True, methods=["post"])
    def cancelar(self, request, pk=None):
        inscripcion = svc.cancelar_inscripcion(self.get_object().pk, usuario=request.user)
        return Response(InscripcionSerializer(inscripcion).data)

    @action(detail=True, methods=["post"])
    def asistencia(self, request, pk=None):
        ser = AsistenciaSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        inscripcion = svc.marcar_asistencia(self.get_object(), ser.validated_data["asistio"], usuario=request.user)
        return Response(InscripcionSerializer(inscripcion).data)
