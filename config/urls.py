# config/urls.py
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from acceso import views as acceso
from cobranzas import views as cobranzas
from core import views as v
from deportes import views as deportes
from eventos import views as eventos
from patrimonio import views as patrimonio

router = DefaultRouter()
router.register(r"me", v.MeViewSet, basename="me")
router.register(r"users", v.UserViewSet)
router.register(r"empadronados", v.EmpadronadoViewSet)
router.register(r"activity-logs", v.ActivityLogViewSet, basename="activitylog")
router.register(r"notifications", v.NotificationViewSet, basename="notification")
router.register(r"comprobantes", v.ComprobanteViewSet, basename="comprobante")
# Cobranzas y finanzas
router.register(r"cargos", cobranzas.CargoViewSet, basename="cargo")
router.register(r"pagos", cobranzas.PagoViewSet, basename="pago")
router.register(r"movimientos", cobranzas.MovimientoFinancieroViewSet)
# Deportes
router.register(r"canchas", deportes.CanchaViewSet)
router.register(r"reservas", deportes.ReservaViewSet, basename="reserva")
# Eventos
router.register(r"eventos", eventos.EventoViewSet)
router.register(r"inscripciones", eventos.InscripcionViewSet, basename="inscripcion")
# Patrimonio
router.register(r"patrimonio", patrimonio.ItemPatrimonioViewSet)
# Acceso
router.register(r"acceso/solicitudes", acceso.SolicitudAccesoViewSet, basename="solicitudacceso")
router.register(r"acceso/maestros-obra", acceso.MaestroObraViewSet)
router.register(r"acceso/favoritos", acceso.FavoritoViewSet, basename="favorito")
router.register(r"acceso/listas-trabajadores", acceso.ListaTrabajadoresViewSet, basename="listatrabajadores")

urlpatterns = [
    path("admin/", admin.site.urls),

    # Login propio
    path("api/auth/login/", v.LoginView.as_view()),
    path("api/auth/logout/", v.LogoutView.as_view(), name="auth-logout"),
    # Endpoints de SimpleJWT
    path("api/auth/token/", TokenObtainPairView.as_view()),
    path("api/auth/refresh/", TokenRefreshView.as_view()),

    path("api/cobranzas/configuracion/", cobranzas.ConfiguracionCobranzaView.as_view()),
    path("api/cobranzas/estadisticas/", cobranzas.EstadisticasCobranzaView.as_view()),
    path("api/cobranzas/deudores/", cobranzas.DeudoresView.as_view()),
    path("api/cobranzas/morosidad/", cobranzas.MorosidadView.as_view()),
    path("api/cobranzas/estado-cuenta/", cobranzas.EstadoCuentaView.as_view()),
    path("api/cobranzas/estado-cuenta/<int:empadronado_id>/", cobranzas.EstadoCuentaView.as_view()),
    path("api/mercadopago/webhook/", cobranzas.MercadoPagoWebhookView.as_view()),
    path("api/deportes/configuracion/", deportes.ConfiguracionDeportesView.as_view()),

    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema")),

    path("api/", include(router.urls)),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
