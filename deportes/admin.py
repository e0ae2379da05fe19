from django.contrib import admin

from .models import Cancha, ConfiguracionDeportes, Reserva


@admin.register(Cancha)
class CanchaAdmin(admin.ModelAdmin):
    list_display = ("id", "nombre", "tipo", "ubicacion", "precio_hora", "activa")
    list_filter = ("tipo", "ubicacion", "activa")


@admin.register(ConfiguracionDeportes)
class ConfiguracionDeportesAdmin(admin.ModelAdmin):
    list_display = ("id", "reservas_por_persona_por_dia", "horas_antes_para_cancelar", "horas_para_no_show")


@admin.register(Reserva)
class ReservaAdmin(admin.ModelAdmin):
    list_display = ("id", "cancha", "nombre_cliente", "fecha_inicio", "fecha_fin", "estado", "precio_total")
    list_filter = ("estado", "cancha")
    search_fields = ("nombre_cliente", "dni", "telefono")
