# deportes/views.py
from django.utils.dateparse import parse_datetime
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from core.permissions import HasRole, ReadOnlyOrRole, empadronado_id_de, es_personal

from .models import Cancha, ConfiguracionDeportes, Reserva
from .serializers import (
    CancelacionSerializer, CanchaSerializer, ConfiguracionDeportesSerializer,
    PagoReservaSerializer, ReservaSerializer,
)
from .services import reservas as svc

EsEconomia = HasRole.of("ECONOMIA")


def _fecha(request, nombre, requerido=True):
    valor = request.query_params.get(nombre)
    fecha = parse_datetime(valor) if valor else None
    if requerido and fecha is None:
        raise ValidationError({nombre: "Fecha y hora ISO requerida."})
    return fecha


class CanchaViewSet(viewsets.ModelViewSet):
    queryset = Cancha.objects.all()
    serializer_class = CanchaSerializer
    permission_classes = [ReadOnlyOrRole]
    filterset_fields = ["tipo", "ubicacion", "activa"]

    @action(detail=True, methods=["get"])
    def disponibilidad(self, request, pk=None):
        inicio, fin = _fecha(request, "inicio"), _fecha(request, "fin")
        return Response({"disponible": svc.validar_disponibilidad(self.get_object(), inicio, fin)})

    @action(detail=True, methods=["get"])
    def precio(self, request, pk=None):
        inicio, fin = _fecha(request, "inicio"), _fecha(request, "fin")
        if fin <= inicio:
            raise ValidationError("La hora de fin debe ser posterior a la de inicio.")
        aportante = request.query_params.get("aportante") in ("1", "true")
        return Response(svc.calcular_precio(self.get_object(), svc.duracion_en_horas(inicio, fin), aportante))


class ConfiguracionDeportesView(APIView):
    permission_classes = [ReadOnlyOrRole]

    def get(self, request):
        return Response(ConfiguracionDeportesSerializer(ConfiguracionDeportes.get_solo()).data)

    def patch(self, request):
        ser = ConfiguracionDeportesSerializer(ConfiguracionDeportes.get_solo(), data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response(ser.data)


class ReservaViewSet(mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    queryset = Reserva.objects.select_related("cancha").all()
    serializer_class = ReservaSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["cancha", "estado", "empadronado", "dni"]
    search_fields = ["nombre_cliente", "dni", "telefono"]
    ordering_fields = ["fecha_inicio", "created_at"]

    def get_permissions(self):
        if self.action in ("pagar", "completar", "estadisticas", "procesar_no_shows"):
            return [EsEconomia()]
        return super().get_permissions()

    def get_queryset(self):
        qs = super().get_queryset()
        if not es_personal(self.request.user, "ECONOMIA"):
            qs = qs.filter(empadronado_id=empadronado_id_de(self.request.user))
        desde, hasta = _fecha(self.request, "desde", False), _fecha(self.request, "hasta", False)
        if desde:
            qs = qs.filter(fecha_inicio__gte=desde)
        if hasta:
            qs = qs.filter(fecha_inicio__lte=hasta)
        return qs

    def perform_create(self, serializer):
        datos = dict(serializer.validated_data)
        if not es_personal(self.request.user, "ECONOMIA"):
            empadronado_id = empadronado_id_de(self.request.user)
            if empadronado_id is None:
                raise PermissionDenied("Su cuenta no está vinculada a un empadronado.")
            datos["empadronado"] = self.request.user.profile.empadronado
        serializer.instance = svc.crear_reserva(datos, usuario=self.request.user)

    @action(detail=True, methods=["post"])
    def pagar(self, request, pk=None):
        ser = PagoReservaSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        reserva = svc.registrar_pago_reserva(self.get_object().pk, usuario=request.user, **ser.validated_data)
        return Response(ReservaSerializer(reserva).data)

    @action(detail=True, methods=["post"])
    def cancelar(self, request, pk=None):
        ser = CancelacionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        forzar = es_personal(request.user, "ECONOMIA")
        reserva = svc.cancelar_reserva(self.get_object().pk, ser.validated_data["motivo"], usuario=request.user, forzar=forzar)
        return Response(ReservaSerializer(reserva).data)

    @action(detail=True, methods=["post"])
    def completar(self, request, pk=None):
        return Response(ReservaSerializer(svc.completar_reserva(self.get_object().pk, usuario=request.user)).data)

    @action(detail=True, methods=["get"])
    def comprobante(self, request, pk=None):
        reserva = self.get_object()
        return Response({**svc.comprobante(reserva), "whatsapp": svc.enlace_whatsapp(reserva)})

    @action(detail=False, methods=["get"])
    def estadisticas(self, request):
        return Response(svc.estadisticas(_fecha(request, "desde", False), _fecha(request, "hasta", False)))

    @action(detail=False, methods=["post"])
    def procesar_no_shows(self, request):
        return Response({"no_shows": svc.procesar_no_shows()}, status=status.HTTP_200_OK)
