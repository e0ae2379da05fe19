from django.contrib import admin

from .models import ActivityLog, Comprobante, Correlativo, Empadronado, Notification, Profile


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "full_name", "phone", "role", "empadronado")
    list_filter = ("role",)
    search_fields = ("full_name", "user__username", "user__email")


@admin.register(Empadronado)
class EmpadronadoAdmin(admin.ModelAdmin):
    list_display = ("numero_padron", "nombre", "apellidos", "dni", "manzana", "lote", "habilitado", "vive")
    list_filter = ("habilitado", "vive", "estado_vivienda", "genero")
    search_fields = ("numero_padron", "nombre", "apellidos", "dni")


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "user", "action", "modulo", "objeto_id")
    list_filter = ("modulo", "action")
    search_fields = ("details", "user__username")


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "message", "is_read", "created_at")
    list_filter = ("is_read",)


@admin.register(Correlativo)
class CorrelativoAdmin(admin.ModelAdmin):
    list_display = ("clave", "prefijo", "siguiente", "relleno", "updated_at")


@admin.register(Comprobante)
class ComprobanteAdmin(admin.ModelAdmin):
    list_display = ("codigo", "tipo", "cliente_nombre", "total", "metodo_pago", "emitido_en")
    list_filter = ("tipo",)
    search_fields = ("codigo", "cliente_nombre", "referencia")
