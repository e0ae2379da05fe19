from django.contrib import admin

from .models import Evento, Inscripcion, Promocion, Sesion


class SesionInline(admin.TabularInline):
    model = Sesion
    extra = 0


class PromocionInline(admin.StackedInline):
    model = Promocion
    extra = 0


@admin.register(Evento)
class EventoAdmin(admin.ModelAdmin):
    list_display = ("id", "titulo", "categoria", "fecha_inicio", "estado", "cupos_disponibles", "precio")
    list_filter = ("estado", "categoria")
    search_fields = ("titulo", "instructor", "lugar")
    inlines = [SesionInline, PromocionInline]


@admin.register(Inscripcion)
class InscripcionAdmin(admin.ModelAdmin):
    list_display = ("id", "evento", "nombre", "acompanantes", "monto_total", "estado", "pago_realizado")
    list_filter = ("estado", "pago_realizado")
    search_fields = ("nombre", "dni", "evento__titulo")
