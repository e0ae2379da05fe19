from django.utils import timezone
from rest_framework import serializers

from .models import Cargo, ConfiguracionCobranza, MetodoPago, MovimientoFinanciero, Pago, PeriodoGenerado
from .services.finanzas import validar_categoria
from .services.periodos import validar_periodo


class ConfiguracionCobranzaSerializer(serializers.ModelSerializer):
    class Meta:
        model = ConfiguracionCobranza
        exclude = ["id"]
        read_only_fields = ["updated_at"]

    def validate(self, data):
        for campo in ("dia_cierre", "dia_vencimiento"):
            if campo in data and not 1 <= data[campo] <= 31:
                raise serializers.ValidationError({campo: "Debe estar entre 1 y 31."})
        return data


class PeriodoGeneradoSerializer(serializers.ModelSerializer):
    generado_por_username = serializers.CharField(source="generado_por.username", read_only=True)

    class Meta:
        model = PeriodoGenerado
        fields = ["id", "periodo", "generado_por", "generado_por_username", "fecha_generacion", "cargos_creados"]


class PagoSerializer(serializers.ModelSerializer):
    numero_padron = serializers.CharField(source="empadronado.numero_padron", read_only=True)
    empadronado_nombre = serializers.CharField(source="empadronado.nombre_completo", read_only=True)
    revisado_por_username = serializers.CharField(source="revisado_por.username", read_only=True)

    class Meta:
        model = Pago
        fields = [
            "id", "cargo", "empadronado", "numero_padron", "empadronado_nombre", "periodo",
            "monto_recibido", "descuento_pronto_pago", "monto", "metodo_pago", "numero_operacion",
            "fecha_pago", "observaciones", "archivo_comprobante", "estado", "motivo_rechazo",
            "comentario_aprobacion", "numero_comprobante", "revisado_por", "revisado_por_username",
            "fecha_revision", "created_at",
        ]
        read_only_fields = fields


class RegistrarPagoSerializer(serializers.Serializer):
    """Entrada de POST /pagos/: se aplica vía services.ledger.registrar_pago."""
    cargo = serializers.PrimaryKeyRelatedField(queryset=Cargo.objects.all())
    monto = serializers.DecimalField(max_digits=10, decimal_places=2)
    metodo_pago = serializers.ChoiceField(choices=MetodoPago.choices)
    numero_operacion = serializers.CharField(required=False, allow_blank=True, default="")
    fecha_pago = serializers.DateField()
    observaciones = serializers.CharField(required=False, allow_blank=True, default="")
    archivo_comprobante = serializers.URLField(required=False, allow_blank=True, default="")
    aprobado = serializers.BooleanField(required=False, default=False)

    def validate(self, data):
        if data["metodo_pago"] != MetodoPago.EFECTIVO and not data.get("numero_operacion"):
            raise serializers.ValidationError({"numero_operacion": "Es obligatorio para pagos que no son en efectivo."})
        if data["fecha_pago"] > timezone.localdate():
            raise serializers.ValidationError({"fecha_pago": "No puede ser posterior a hoy."})
        return data


class RevisionPagoSerializer(serializers.Serializer):
    comentario = serializers.CharField(required=False, allow_blank=True, default="")
    motivo = serializers.CharField(required=False, allow_blank=True, default="")


class CargoSerializer(serializers.ModelSerializer):
    numero_padron = serializers.CharField(source="empadronado.numero_padron", read_only=True)
    empadronado_nombre = serializers.CharField(source="empadronado.nombre_completo", read_only=True)
    pagos = PagoSerializer(many=True, read_only=True)

    class Meta:
        model = Cargo
        fields = [
            "id", "empadronado", "numero_padron", "empadronado_nombre", "periodo",
            "monto_original", "monto_morosidad", "monto_pagado", "saldo", "fecha_vencimiento",
            "estado", "es_moroso", "created_at", "pagos",
        ]
        read_only_fields = fields


class PeriodoSerializer(serializers.Serializer):
    periodo = serializers.CharField(required=False)
    desde = serializers.CharField(required=False)
    hasta = serializers.CharField(required=False)

    def validate(self, data):
        for campo in ("periodo", "desde", "hasta"):
            if data.get(campo):
                try:
                    validar_periodo(data[campo])
                except ValueError as exc:
                    raise serializers.ValidationError({campo: str(exc)})
        if not data.get("periodo") and not (data.get("desde") and data.get("hasta")):
            raise serializers.ValidationError("Indique 'periodo' o el rango 'desde'/'hasta'.")
        return data


class MovimientoFinancieroSerializer(serializers.ModelSerializer):
    registrado_por_username = serializers.CharField(source="registrado_por.username", read_only=True)

    class Meta:
        model = MovimientoFinanciero
        fields = [
            "id", "tipo", "categoria", "monto", "descripcion", "fecha", "metodo_pago",
            "numero_operacion", "numero_comprobante", "beneficiario", "proveedor",
            "observaciones", "origen", "registrado_por", "registrado_por_username", "created_at",
        ]
        read_only_fields = ["origen", "registrado_por", "created_at"]

    def validate(self, data):
        tipo = data.get("tipo", getattr(self.instance, "tipo", None))
        categoria = data.get("categoria", getattr(self.instance, "categoria", None))
        try:
            validar_categoria(tipo, categoria)
        except ValueError as exc:
            raise serializers.ValidationError({"categoria": str(exc)})
        if "monto" in data and data["monto"] <= 0:
            raise serializers.ValidationError({"monto": "Debe ser mayor a cero."})
        return data
