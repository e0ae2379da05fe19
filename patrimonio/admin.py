from django.contrib import admin

from .models import ItemPatrimonio


@admin.register(ItemPatrimonio)
class ItemPatrimonioAdmin(admin.ModelAdmin):
    list_display = ("codigo", "nombre", "zona", "cantidad", "conservacion", "condicion", "valor_estimado", "activo")
    list_filter = ("conservacion", "condicion", "es_donacion", "requiere_mantenimiento", "activo")
    search_fields = ("codigo", "codigo_barras", "nombre", "descripcion", "responsable")
    readonly_fields = ("codigo", "codigo_barras")
