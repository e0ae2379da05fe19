from rest_framework import serializers

from .models import ItemPatrimonio


class ItemPatrimonioSerializer(serializers.ModelSerializer):
    valor_patrimonial = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = ItemPatrimonio
        exclude = ["registrado_por"]
        read_only_fields = ["codigo", "codigo_barras", "activo", "created_at", "updated_at"]

    def validate(self, data):
        es_donacion = data.get("es_donacion", getattr(self.instance, "es_donacion", False))
        if es_donacion and not data.get("donante", getattr(self.instance, "donante", "")):
            raise serializers.ValidationError({"donante": "Indique quién hizo la donación."})
        for campo in ("archivos", "fotos"):
            if campo in data and not all(isinstance(u, str) for u in data[campo]):
                raise serializers.ValidationError({campo: "Debe ser una lista de URLs."})
        return data


class BajaSerializer(serializers.Serializer):
    motivo = serializers.CharField(required=False, allow_blank=True, default="")
