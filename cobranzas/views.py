# cobranzas/views.py
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from core.models import Empadronado
from core.permissions import HasRole, ReadOnlyOrRole, empadronado_id_de, es_personal

from .models import Cargo, ConfiguracionCobranza, MovimientoFinanciero, Pago, PeriodoGenerado
from .serializers import (
    CargoSerializer, ConfiguracionCobranzaSerializer, MovimientoFinancieroSerializer,
    PagoSerializer, PeriodoGeneradoSerializer, PeriodoSerializer, RegistrarPagoSerializer,
    RevisionPagoSerializer,
)
from .services import finanzas, ledger, pasarela, reportes

EsEconomia = HasRole.of("ECONOMIA")


class ConfiguracionCobranzaView(APIView):
    permission_classes = [ReadOnlyOrRole.of("ECONOMIA")]

    def get(self, request):
        return Response(ConfiguracionCobranzaSerializer(ConfiguracionCobranza.get_solo()).data)

    def patch(self, request):
        config = ConfiguracionCobranza.get_solo()
        ser = ConfiguracionCobranzaSerializer(config, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response(ser.data)


class CargoViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Cargos mensuales. Los asociados solo ven los de su empadronado;
    la generación y el cierre quedan para Economía.
    """
    queryset = Cargo.objects.select_related("empadronado").prefetch_related("pagos").all()
    serializer_class = CargoSerializer
    filterset_fields = ["periodo", "estado", "empadronado", "es_moroso"]
    ordering_fields = ["periodo", "saldo"]
    search_fields = ["empadronado__numero_padron", "empadronado__nombre", "empadronado__apellidos"]

    def get_permissions(self):
        if self.action in ("generar", "cierre", "periodos"):
            return [EsEconomia()]
        return [permissions.IsAuthenticated()]

    def get_queryset(self):
        qs = super().get_queryset()
        if not es_personal(self.request.user, "ECONOMIA"):
            qs = qs.filter(empadronado_id=empadronado_id_de(self.request.user))
        if self.request.query_params.get("con_saldo") == "1":
            qs = qs.filter(saldo__gt=0)
        return qs

    @action(detail=False, methods=["post"])
    def generar(self, request):
        ser = PeriodoSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        if ser.validated_data.get("periodo"):
            resultado = ledger.generar_periodo(ser.validated_data["periodo"], usuario=request.user)
        else:
            resultado = ledger.generar_historico(ser.validated_data["desde"], ser.validated_data["hasta"], usuario=request.user)
        return Response(resultado, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def periodos(self, request):
        return Response(PeriodoGeneradoSerializer(PeriodoGenerado.objects.all(), many=True).data)

    @action(detail=False, methods=["post"])
    def cierre(self, request):
        return Response(ledger.ejecutar_cierre_mensual(timezone.localdate(), usuario=request.user))

    @action(detail=True, methods=["post"])
    def preferencia(self, request, pk=None):
        return Response(pasarela.crear_preferencia(self.get_object()))


class PagoViewSet(mixins.CreateModelMixin, viewsets.ReadOnlyModelViewSet):
    queryset = Pago.objects.select_related("empadronado", "cargo", "revisado_por").all()
    serializer_class = PagoSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["estado", "periodo", "metodo_pago", "empadronado", "cargo"]
    search_fields = ["numero_operacion", "numero_comprobante", "empadronado__numero_padron"]

    def get_permissions(self):
        if self.action in ("aprobar", "rechazar"):
            return [EsEconomia()]
        return super().get_permissions()

    def get_queryset(self):
        qs = super().get_queryset()
        if not es_personal(self.request.user, "ECONOMIA"):
            qs = qs.filter(empadronado_id=empadronado_id_de(self.request.user))
        return qs

    def create(self, request, *args, **kwargs):
        ser = RegistrarPagoSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        cargo = data.pop("cargo")
        personal = es_personal(request.user, "ECONOMIA")
        if not personal and cargo.empadronado_id != empadronado_id_de(request.user):
            return Response({"detail": "Solo puede pagar sus propios cargos."}, status=status.HTTP_403_FORBIDDEN)
        # solo Economía registra pagos ya aprobados
        data["aprobado"] = data.get("aprobado", False) and personal
        pago = ledger.registrar_pago(cargo.pk, usuario=request.user, **data)
        return Response(PagoSerializer(pago).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def aprobar(self, request, pk=None):
        ser = RevisionPagoSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        pago = ledger.aprobar_pago(self.get_object().pk, usuario=request.user, comentario=ser.validated_data["comentario"])
        return Response(PagoSerializer(pago).data)

    @action(detail=True, methods=["post"])
    def rechazar(self, request, pk=None):
        ser = RevisionPagoSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        pago = ledger.rechazar_pago(self.get_object().pk, ser.validated_data["motivo"], usuario=request.user)
        return Response(PagoSerializer(pago).data)


class MovimientoFinancieroViewSet(viewsets.ModelViewSet):
    queryset = MovimientoFinanciero.objects.select_related("registrado_por").all()
    serializer_class = MovimientoFinancieroSerializer
    permission_classes = [EsEconomia]
    filterset_fields = ["tipo", "categoria", "fecha"]
    search_fields = ["descripcion", "beneficiario", "proveedor", "numero_comprobante"]

    def perform_create(self, serializer):
        datos = dict(serializer.validated_data)
        serializer.instance = finanzas.registrar_movimiento(
            datos.pop("tipo"), datos.pop("categoria"), datos.pop("monto"), datos.pop("descripcion"),
            fecha=datos.pop("fecha", None), usuario=self.request.user, **datos,
        )

    def perform_update(self, serializer):
        serializer.instance = finanzas.actualizar_movimiento(
            serializer.instance, serializer.validated_data, usuario=self.request.user
        )

    def perform_destroy(self, instance):
        finanzas.eliminar_movimiento(instance, usuario=self.request.user)

    @action(detail=False, methods=["get"])
    def resumen(self, request):
        return Response(finanzas.resumen_caja())

    @action(detail=False, methods=["get"])
    def estadisticas(self, request):
        return Response(finanzas.estadisticas_finanzas())


class EstadisticasCobranzaView(APIView):
    permission_classes = [EsEconomia]

    def get(self, request):
        return Response(reportes.estadisticas())


class DeudoresView(APIView):
    permission_classes = [EsEconomia]

    def get(self, request):
        return Response(reportes.reporte_deudores())


class MorosidadView(APIView):
    permission_classes = [EsEconomia]

    def get(self, request):
        anio = request.query_params.get("anio")
        if anio is not None and not anio.isdigit():
            return Response({"detail": "anio debe ser numérico"}, status=status.HTTP_400_BAD_REQUEST)
        return Response(reportes.morosidad(int(anio) if anio else None))


class EstadoCuentaView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, empadronado_id=None):
        if empadronado_id is None:
            empadronado_id = empadronado_id_de(request.user)
            if empadronado_id is None:
                return Response({"detail": "Su cuenta no está vinculada a un empadronado."}, status=status.HTTP_404_NOT_FOUND)
        elif not es_personal(request.user, "ECONOMIA") and empadronado_id != empadronado_id_de(request.user):
            return Response({"detail": "No tiene permiso para ver esta cuenta."}, status=status.HTTP_403_FORBIDDEN)
        empadronado = get_object_or_404(Empadronado, pk=empadronado_id)
        return Response(reportes.estado_cuenta(empadronado))


class MercadoPagoWebhookView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request, *args, **kwargs):
        pasarela.procesar_notificacion(request.data)
        return Response(status=status.HTTP_200_OK)
