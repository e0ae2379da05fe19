import django_filters
from django.db.models import Q

from .models import ItemPatrimonio


class ItemPatrimonioFilter(django_filters.FilterSet):
    busqueda = django_filters.CharFilter(method="filtrar_busqueda")
    ubicacion = django_filters.CharFilter(field_name="zona", lookup_expr="icontains")
    responsable = django_filters.CharFilter(lookup_expr="icontains")

    class Meta:
        model = ItemPatrimonio
        fields = ["conservacion", "condicion", "es_donacion", "requiere_mantenimiento"]

    def filtrar_busqueda(self, queryset, name, value):
        return queryset.filter(
            Q(nombre__icontains=value) | Q(descripcion__icontains=value)
            | Q(codigo__icontains=value) | Q(zona__icontains=value)
        )
