from django.contrib import admin

from .models import Favorito, ListaTrabajadores, MaestroObra, SolicitudAcceso


@admin.register(SolicitudAcceso)
class SolicitudAccesoAdmin(admin.ModelAdmin):
    list_display = ("id", "tipo", "solicitado_por_padron", "portico", "tipo_acceso", "estado", "created_at")
    list_filter = ("tipo", "estado", "portico", "tipo_acceso")
    search_fields = ("solicitado_por_nombre", "solicitado_por_padron", "empresa")


@admin.register(MaestroObra)
class MaestroObraAdmin(admin.ModelAdmin):
    list_display = ("nombre", "dni", "empresa", "telefono", "activo")
    list_filter = ("activo",)
    search_fields = ("nombre", "dni", "empresa")


@admin.register(ListaTrabajadores)
class ListaTrabajadoresAdmin(admin.ModelAdmin):
    list_display = ("nombre_lista", "empadronado", "maestro_obra", "fecha_inicio", "fecha_fin", "activa")
    list_filter = ("activa",)


admin.site.register(Favorito)
