# core/views.py
from django.contrib.auth import authenticate, get_user_model
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.tokens import RefreshToken

from .models import ActivityLog, Comprobante, Empadronado, Notification, Profile
from .permissions import IsAdmin, ReadOnlyOrRole, empadronado_id_de, es_personal
from .serializers import (
    ActivityLogSerializer, AdminUserWriteSerializer, ComprobanteSerializer, EmpadronadoSerializer,
    MotivoSerializer, NotificationSerializer, ProfileSerializer, UserWithProfileSerializer,
    VincularCuentaSerializer,
)
from .services import padron
from .services.auditoria import registrar_actividad

User = get_user_model()


class LoginView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        data = request.data
        identifier = (data.get("email") or data.get("username") or "").strip()
        password = (data.get("password") or "").strip()
        if not identifier or not password:
            return Response({"detail": "Faltan credenciales"}, status=status.HTTP_400_BAD_REQUEST)
        user_lookup = {"email__iexact": identifier} if "@" in identifier else {"username__iexact": identifier}
        user_obj = User.objects.filter(**user_lookup).first()
        user = authenticate(request, username=user_obj.username, password=password) if user_obj else None
        if not user:
            registrar_actividad(None, "USER_LOGIN_FAILED", "auth", details=identifier)
            return Response({"detail": "Credenciales inválidas"}, status=status.HTTP_401_UNAUTHORIZED)
        registrar_actividad(user, "USER_LOGIN_SUCCESS", "auth")
        refresh = RefreshToken.for_user(user)
        return Response({"access": str(refresh.access_token), "refresh": str(refresh)})


class LogoutView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        registrar_actividad(request.user, "USER_LOGOUT", "auth")
        return Response({"detail": "Sesión cerrada correctamente."})


class MeViewSet(viewsets.ViewSet):
    permission_classes = [permissions.IsAuthenticated]

    def list(self, request):
        return Response(UserWithProfileSerializer(request.user).data)

    @action(detail=False, methods=["patch"])
    def update_profile(self, request):
        prof, _ = Profile.objects.get_or_create(user=request.user)
        ser = ProfileSerializer(prof, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response(ser.data)


class UserViewSet(viewsets.ModelViewSet):
    queryset = User.objects.select_related("profile").all().order_by("id")
    permission_classes = [IsAdmin]
    search_fields = ["username", "email", "profile__full_name"]

    def get_serializer_class(self):
        return AdminUserWriteSerializer if self.action in ("create", "update", "partial_update") else UserWithProfileSerializer


class EmpadronadoViewSet(viewsets.ModelViewSet):
    """
    Padrón de asociados. Lectura para cualquier usuario autenticado,
    altas/bajas/cambios para administración. Las escrituras pasan por
    core.services.padron para quedar auditadas.
    """
    queryset = Empadronado.objects.select_related("cuenta__user").all()
    serializer_class = EmpadronadoSerializer
    permission_classes = [ReadOnlyOrRole]
    filterset_fields = ["habilitado", "vive", "estado_vivienda", "genero", "manzana"]
    search_fields = ["nombre", "apellidos", "numero_padron", "dni"]
    ordering_fields = ["numero_padron", "apellidos", "fecha_ingreso"]

    def perform_create(self, serializer):
        serializer.instance = padron.crear_empadronado(serializer.validated_data, usuario=self.request.user)

    def perform_update(self, serializer):
        serializer.instance = padron.actualizar_empadronado(serializer.instance, serializer.validated_data, usuario=self.request.user)

    def destroy(self, request, *args, **kwargs):
        ser = MotivoSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        padron.eliminar_empadronado(self.get_object(), ser.validated_data["motivo"], usuario=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"])
    def estadisticas(self, request):
        return Response(padron.estadisticas())

    @action(detail=False, methods=["get"])
    def buscar(self, request):
        dni = request.query_params.get("dni")
        numero = request.query_params.get("padron")
        if dni:
            empadronado = padron.obtener_por_dni(dni)
        elif numero:
            empadronado = padron.obtener_por_padron(numero)
        else:
            return Response({"detail": "Indique 'dni' o 'padron'."}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(empadronado).data)

    @action(detail=True, methods=["post"])
    def vincular(self, request, pk=None):
        ser = VincularCuentaSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        profile = padron.vincular_cuenta(self.get_object(), ser.validated_data["user"], usuario=request.user)
        return Response(ProfileSerializer(profile).data)

    @action(detail=True, methods=["post"])
    def desvincular(self, request, pk=None):
        padron.desvincular_cuenta(self.get_object(), usuario=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ActivityLogViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = ActivityLog.objects.select_related("user").all()
    serializer_class = ActivityLogSerializer
    permission_classes = [IsAdmin]
    filterset_fields = ["modulo", "action", "user", "objeto_id"]


class NotificationViewSet(
    mixins.ListModelMixin, mixins.RetrieveModelMixin, mixins.UpdateModelMixin,
    mixins.DestroyModelMixin, viewsets.GenericViewSet,
):
    """Avisos del usuario; los crean los servicios, aquí solo se leen y se marcan."""
    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return Notification.objects.filter(user=self.request.user)

    @action(detail=False, methods=["post"])
    def mark_all_as_read(self, request):
        self.get_queryset().update(is_read=True)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ComprobanteViewSet(viewsets.ReadOnlyModelViewSet):
    """Comprobantes emitidos (datos del recibo; la impresión la hace el cliente)."""
    queryset = Comprobante.objects.all()
    serializer_class = ComprobanteSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["tipo", "empadronado"]
    search_fields = ["codigo", "cliente_nombre", "referencia"]

    def get_queryset(self):
        qs = super().get_queryset()
        if not es_personal(self.request.user, "ECONOMIA"):
            qs = qs.filter(empadronado_id=empadronado_id_de(self.request.user))
        return qs
