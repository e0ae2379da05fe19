from django.contrib import admin

from .models import Cargo, ConfiguracionCobranza, MovimientoFinanciero, Pago, PeriodoGenerado


@admin.register(ConfiguracionCobranza)
class ConfiguracionCobranzaAdmin(admin.ModelAdmin):
    list_display = ("id", "monto_mensual", "dia_cierre", "dia_vencimiento", "porcentaje_pronto_pago", "porcentaje_morosidad")


@admin.register(PeriodoGenerado)
class PeriodoGeneradoAdmin(admin.ModelAdmin):
    list_display = ("periodo", "cargos_creados", "generado_por", "fecha_generacion")


@admin.register(Cargo)
class CargoAdmin(admin.ModelAdmin):
    list_display = ("id", "empadronado", "periodo", "monto_original", "monto_morosidad", "saldo", "estado", "fecha_vencimiento")
    list_filter = ("estado", "es_moroso", "periodo")
    search_fields = ("empadronado__numero_padron", "empadronado__apellidos")


@admin.register(Pago)
class PagoAdmin(admin.ModelAdmin):
    list_display = ("id", "cargo", "monto", "metodo_pago", "numero_operacion", "fecha_pago", "estado", "numero_comprobante")
    list_filter = ("estado", "metodo_pago")
    search_fields = ("numero_operacion", "numero_comprobante", "empadronado__numero_padron")


@admin.register(MovimientoFinanciero)
class MovimientoFinancieroAdmin(admin.ModelAdmin):
    list_display = ("id", "tipo", "categoria", "monto", "fecha", "origen", "descripcion")
    list_filter = ("tipo", "categoria", "origen")
    search_fields = ("descripcion", "beneficiario", "proveedor")
