from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import serializers

from .models import ActivityLog, Comprobante, Empadronado, Notification, Profile

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ["id", "username", "email", "first_name", "last_name", "is_active", "is_staff", "date_joined"]


class ProfileSerializer(serializers.ModelSerializer):
    numero_padron = serializers.CharField(source="empadronado.numero_padron", read_only=True, allow_null=True)

    class Meta:
        model = Profile
        fields = ["full_name", "phone", "role", "empadronado", "numero_padron"]
        read_only_fields = ["role", "empadronado"]


class UserWithProfileSerializer(UserSerializer):
    profile = ProfileSerializer(read_only=True)

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ["profile"]


class AdminUserWriteSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(write_only=True, required=False, allow_blank=True)
    phone = serializers.CharField(write_only=True, required=False, allow_blank=True)
    role = serializers.ChoiceField(write_only=True, choices=Profile.ROLE_CHOICES, required=False)
    password = serializers.CharField(write_only=True, required=False, allow_blank=True, min_length=6)

    class Meta:
        model = User
        fields = ["id", "username", "email", "password", "full_name", "phone", "role", "is_active"]
        extra_kwargs = {
            "username": {"required": False},
            "email": {"required": False},
        }

    @transaction.atomic
    def create(self, validated_data):
        profile_data = {
            "full_name": validated_data.pop("full_name", ""),
            "phone": validated_data.pop("phone", ""),
            "role": validated_data.pop("role", "ASOCIADO"),
        }
        password = validated_data.pop("password", None)
        user_instance = User.objects.create_user(**validated_data, password=password)
        Profile.objects.create(user=user_instance, **profile_data)
        return user_instance

    @transaction.atomic
    def update(self, instance, validated_data):
        instance.username = validated_data.get("username", instance.username)
        instance.email = validated_data.get("email", instance.email)
        instance.is_active = validated_data.get("is_active", instance.is_active)
        password = validated_data.get("password")
        if password:
            instance.set_password(password)
        instance.save()

        profile_instance, _ = Profile.objects.get_or_create(user=instance)
        profile_instance.full_name = validated_data.get("full_name", profile_instance.full_name)
        profile_instance.phone = validated_data.get("phone", profile_instance.phone)
        profile_instance.role = validated_data.get("role", profile_instance.role)
        profile_instance.save()
        return instance


class EmpadronadoSerializer(serializers.ModelSerializer):
    nombre_completo = serializers.CharField(read_only=True)
    cuenta_username = serializers.CharField(source="cuenta.user.username", read_only=True, default=None)

    class Meta:
        model = Empadronado
        fields = [
            "id", "numero_padron", "nombre", "apellidos", "nombre_completo", "dni", "familia",
            "manzana", "lote", "placas_vehiculares", "habilitado", "telefono1", "telefono2",
            "telefono3", "fecha_ingreso", "direccion", "genero", "vive", "estado_vivienda",
            "cumpleanos", "observaciones", "hijos", "cuenta_username", "created_at", "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]
        # la unicidad del padrón la valida core.services.padron
        extra_kwargs = {"numero_padron": {"validators": []}}

    def validate_hijos(self, value):
        if not isinstance(value, list) or not all(isinstance(h, str) for h in value):
            raise serializers.ValidationError("Debe ser una lista de nombres.")
        return [h.strip() for h in value if h.strip()]

    def validate_dni(self, value):
        value = value.strip()
        if not value.isdigit():
            raise serializers.ValidationError("El DNI solo debe contener dígitos.")
        return value


class MotivoSerializer(serializers.Serializer):
    motivo = serializers.CharField()


class VincularCuentaSerializer(serializers.Serializer):
    user = serializers.IntegerField()


class ActivityLogSerializer(serializers.ModelSerializer):
    user_username = serializers.CharField(source="user.username", read_only=True)

    class Meta:
        model = ActivityLog
        fields = ["id", "user", "user_username", "action", "modulo", "objeto_id", "timestamp", "details", "datos"]
        read_only_fields = fields


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ["id", "message", "is_read", "created_at", "link"]
        read_only_fields = ["id", "message", "created_at", "link"]


class ComprobanteSerializer(serializers.ModelSerializer):
    class Meta:
        model = Comprobante
        fields = [
            "id", "codigo", "tipo", "empadronado", "cliente_nombre", "items",
            "total", "moneda", "metodo_pago", "referencia", "emitido_en",
        ]
        read_only_fields = fields
