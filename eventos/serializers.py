from rest_framework import serializers

from cobranzas.models import MetodoPago

from .models import Evento, Inscripcion, Promocion, Sesion


class SesionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Sesion
        fields = ["id", "lugar", "fecha", "hora_inicio", "hora_fin", "precio"]

    def validate(self, data):
        if data["hora_fin"] <= data["hora_inicio"]:
            raise serializers.ValidationError("La hora de fin debe ser posterior a la de inicio.")
        return data


class PromocionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Promocion
        exclude = ["evento"]

    def validate(self, data):
        if data.get("tipo") == "codigo" and not data.get("codigo"):
            raise serializers.ValidationError({"codigo": "Requerido para promociones por código."})
        if data.get("tipo") == "early_bird" and not data.get("fecha_vencimiento"):
            raise serializers.ValidationError({"fecha_vencimiento": "Requerida para early bird."})
        if data.get("tipo_descuento") == "fijo" and data.get("precio_final") is None:
            raise serializers.ValidationError({"precio_final": "Requerido para descuentos de precio fijo."})
        if data.get("tipo_descuento", "porcentaje") == "porcentaje":
            porcentaje = data.get("monto_descuento")
            if porcentaje is None or not 0 < porcentaje <= 100:
                raise serializers.ValidationError({"monto_descuento": "Debe estar entre 0 y 100."})
        if data.get("codigo"):
            data["codigo"] = data["codigo"].strip().upper()
        return data


class EventoSerializer(serializers.ModelSerializer):
    sesiones = SesionSerializer(many=True, required=False)
    promociones = PromocionSerializer(many=True, required=False)

    class Meta:
        model = Evento
        fields = [
            "id", "titulo", "descripcion", "categoria", "fecha_inicio", "fecha_fin", "hora_inicio",
            "hora_fin", "lugar", "instructor", "cupos_ilimitados", "cupos_maximos", "cupos_disponibles",
            "precio", "imagen", "requisitos", "materiales_incluidos", "estado", "sesiones",
            "promociones", "created_at",
        ]
        read_only_fields = ["cupos_disponibles", "created_at"]


class PersonaSerializer(serializers.Serializer):
    nombre = serializers.CharField()
    dni = serializers.CharField()


class InscribirSerializer(serializers.Serializer):
    personas = PersonaSerializer(many=True)
    sesiones = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
    codigo = serializers.CharField(required=False, allow_blank=True, default="")
    observaciones = serializers.CharField(required=False, allow_blank=True, default="")


class CotizacionSerializer(serializers.Serializer):
    personas = serializers.IntegerField(min_value=1, max_value=10)
    sesiones = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
    codigo = serializers.CharField(required=False, allow_blank=True, default="")


class InscripcionSerializer(serializers.ModelSerializer):
    evento_titulo = serializers.CharField(source="evento.titulo", read_only=True)
    comprobante_codigo = serializers.CharField(source="comprobante.codigo", read_only=True, default=None)

    class Meta:
        model = Inscripcion
        fields = [
            "id", "evento", "evento_titulo", "empadronado", "nombre", "dni", "acompanantes",
            "personas", "sesiones", "promocion", "subtotal", "descuento", "monto_total", "estado",
            "observaciones", "pago_realizado", "fecha_pago", "monto_pagado", "metodo_pago",
            "comprobante", "comprobante_codigo", "created_at",
        ]
        read_only_fields = fields


class PagoInscripcionSerializer(serializers.Serializer):
    metodo_pago = serializers.ChoiceField(choices=MetodoPago.choices, default=MetodoPago.TRANSFERENCIA)
    monto = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)


class AsistenciaSerializer(serializers.Serializer):
    asistio = serializers.BooleanField()


class EstadoEventoSerializer(serializers.Serializer):
    estado = serializers.ChoiceField(choices=Evento.Estado.choices)
