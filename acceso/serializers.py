from rest_framework import serializers

from core.models import Empadronado

from .models import Favorito, ListaTrabajadores, MaestroObra, SolicitudAcceso


class PersonaAccesoSerializer(serializers.Serializer):
    nombre = serializers.CharField(max_length=150)
    dni = serializers.CharField(max_length=12, required=False, allow_blank=True, default="")
    es_menor = serializers.BooleanField(required=False, default=False)
    es_maestro_obra = serializers.BooleanField(required=False, default=False)


class MaestroTemporalSerializer(serializers.Serializer):
    nombre = serializers.CharField(max_length=150)
    dni = serializers.CharField(max_length=12, required=False, allow_blank=True, default="")


class MaestroObraSerializer(serializers.ModelSerializer):
    class Meta:
        model = MaestroObra
        exclude = ["creado_por"]
        read_only_fields = ["created_at", "updated_at"]


class SolicitudAccesoSerializer(serializers.ModelSerializer):
    empadronado = serializers.PrimaryKeyRelatedField(queryset=Empadronado.objects.all(), required=False)
    personas = PersonaAccesoSerializer(many=True, required=False)
    maestro_obra_temporal = MaestroTemporalSerializer(required=False, allow_null=True)
    placas = serializers.ListField(child=serializers.CharField(max_length=12), required=False)
    maestro_obra_nombre = serializers.CharField(source="maestro_obra.nombre", read_only=True, default=None)

    class Meta:
        model = SolicitudAcceso
        fields = "__all__"
        read_only_fields = [
            "menores", "lista", "estado", "solicitado_por_nombre", "solicitado_por_padron",
            "resuelto_por", "fecha_resolucion", "created_at",
        ]


class ResolucionSerializer(serializers.Serializer):
    observaciones = serializers.CharField(required=False, allow_blank=True, default="")


class FavoritoSerializer(serializers.ModelSerializer):
    class Meta:
        model = Favorito
        fields = "__all__"
        read_only_fields = ["empadronado", "created_at"]


class ListaTrabajadoresSerializer(serializers.ModelSerializer):
    trabajadores = PersonaAccesoSerializer(many=True)
    placas = serializers.ListField(child=serializers.CharField(max_length=12), required=False)

    class Meta:
        model = ListaTrabajadores
        fields = "__all__"
        read_only_fields = ["empadronado", "activa", "created_at", "updated_at"]

    def validate(self, data):
        if data.get("tipo_acceso") == "vehicular" and not data.get("placas"):
            raise serializers.ValidationError({"placas": "El acceso vehicular requiere al menos una placa."})
        return data


class SolicitarDesdeListaSerializer(serializers.Serializer):
    portico = serializers.CharField(max_length=30, required=False, default="principal")
