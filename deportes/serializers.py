from rest_framework import serializers

from cobranzas.models import MetodoPago

from .models import Cancha, ConfiguracionDeportes, Reserva


class CanchaSerializer(serializers.ModelSerializer):
    class Meta:
        model = Cancha
        fields = "__all__"

    def validate(self, data):
        minima = data.get("hora_minima", getattr(self.instance, "hora_minima", None))
        maxima = data.get("hora_maxima", getattr(self.instance, "hora_maxima", None))
        if minima is not None and maxima is not None and minima > maxima:
            raise serializers.ValidationError("La duración mínima no puede superar a la máxima.")
        return data


class ConfiguracionDeportesSerializer(serializers.ModelSerializer):
    class Meta:
        model = ConfiguracionDeportes
        exclude = ["id"]


class ReservaSerializer(serializers.ModelSerializer):
    cancha_nombre = serializers.CharField(source="cancha.nombre", read_only=True)
    numero_comprobante = serializers.CharField(read_only=True)

    class Meta:
        model = Reserva
        fields = [
            "id", "cancha", "cancha_nombre", "empadronado", "nombre_cliente", "dni", "telefono",
            "fecha_inicio", "fecha_fin", "duracion_horas", "estado", "es_aportante",
            "precio_base", "precio_luz", "descuento_aportante", "precio_total",
            "metodo_pago", "numero_operacion", "voucher_url", "fecha_pago", "es_prepago",
            "monto_pagado", "saldo_pendiente", "frecuencia", "recurrente_hasta", "reserva_padre",
            "observaciones", "motivo_cancelacion", "numero_comprobante", "created_at",
        ]
        read_only_fields = [
            "duracion_horas", "estado", "precio_base", "precio_luz", "descuento_aportante",
            "precio_total", "metodo_pago", "numero_operacion", "voucher_url", "fecha_pago",
            "es_prepago", "monto_pagado", "saldo_pendiente", "reserva_padre",
            "motivo_cancelacion", "created_at",
        ]


class PagoReservaSerializer(serializers.Serializer):
    metodo_pago = serializers.ChoiceField(choices=MetodoPago.choices)
    numero_operacion = serializers.CharField(required=False, allow_blank=True, default="")
    voucher_url = serializers.URLField(required=False, allow_blank=True, default="")
    es_prepago = serializers.BooleanField(required=False, default=False)
    monto_prepago = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, allow_null=True)


class CancelacionSerializer(serializers.Serializer):
    motivo = serializers.CharField(required=False, allow_blank=True, default="")
