from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

User = settings.AUTH_USER_MODEL


class Profile(models.Model):
    ROLE_CHOICES = [
        ("ADMIN", "Administrador"),
        ("ECONOMIA", "Economía"),
        ("SEGURIDAD", "Seguridad"),
        ("ASOCIADO", "Asociado"),
    ]
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="profile")
    full_name = models.CharField(max_length=150, blank=True)
    phone = models.CharField(max_length=30, blank=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default="ASOCIADO")
    empadronado = models.OneToOneField(
        "Empadronado", on_delete=models.SET_NULL, null=True, blank=True, related_name="cuenta"
    )
    def __str__(self): return f"{self.full_name or self.user.username} ({self.role})"


class Empadronado(models.Model):
    GENERO_CHOICES = [("masculino", "Masculino"), ("femenino", "Femenino")]
    VIVIENDA_CHOICES = [("construida", "Construida"), ("construccion", "En construcción"), ("terreno", "Terreno")]

    numero_padron = models.CharField(max_length=20, unique=True)
    nombre = models.CharField(max_length=100)
    apellidos = models.CharField(max_length=150)
    dni = models.CharField(max_length=12, db_index=True)
    familia = models.CharField(max_length=150, blank=True)
    manzana = models.CharField(max_length=10, blank=True)
    lote = models.CharField(max_length=10, blank=True)
    placas_vehiculares = models.CharField(max_length=100, blank=True)
    habilitado = models.BooleanField(default=True)
    telefono1 = models.CharField(max_length=30, blank=True)
    telefono2 = models.CharField(max_length=30, blank=True)
    telefono3 = models.CharField(max_length=30, blank=True)
    fecha_ingreso = models.DateField()
    direccion = models.CharField(max_length=255, blank=True)
    genero = models.CharField(max_length=10, choices=GENERO_CHOICES)
    vive = models.BooleanField(default=False)
    estado_vivienda = models.CharField(max_length=12, choices=VIVIENDA_CHOICES, default="terreno")
    cumpleanos = models.DateField(null=True, blank=True)
    observaciones = models.TextField(blank=True)
    hijos = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    creado_por = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    modificado_por = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")

    class Meta:
        ordering = ["numero_padron"]

    @property
    def nombre_completo(self): return f"{self.nombre} {self.apellidos}".strip()

    def __str__(self): return f"{self.numero_padron} - {self.nombre_completo}"


class ActivityLog(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=255)
    modulo = models.CharField(max_length=50, blank=True)
    objeto_id = models.CharField(max_length=50, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)
    details = models.TextField(blank=True, null=True)
    datos = models.JSONField(default=dict, blank=True, encoder=DjangoJSONEncoder)

    class Meta:
        ordering = ['-timestamp']
    def __str__(self):
        actor = self.user.username if self.user else "sistema"
        return f'{actor} - {self.action} at {self.timestamp.strftime("%Y-%m-%d %H:%M")}'


class Notification(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="notifications")
    message = models.CharField(max_length=255)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    link = models.CharField(max_length=255, blank=True, null=True, help_text="URL a la que debe dirigir la notificación")
    class Meta:
        ordering = ['-created_at']
    def __str__(self): return f"Notificación para {self.user.username}: {self.message}"


class Correlativo(models.Model):
    clave = models.CharField(max_length=50, unique=True)
    prefijo = models.CharField(max_length=20, blank=True)
    siguiente = models.PositiveIntegerField(default=1)
    relleno = models.PositiveSmallIntegerField(default=6)
    updated_at = models.DateTimeField(auto_now=True)
    def __str__(self): return f"{self.clave} ({self.prefijo}-{self.siguiente})"


class Comprobante(models.Model):
    TIPO_CHOICES = [("cuota", "Cuota"), ("evento", "Evento"), ("reserva", "Reserva deportiva")]
    codigo = models.CharField(max_length=40, unique=True)
    tipo = models.CharField(max_length=10, choices=TIPO_CHOICES)
    empadronado = models.ForeignKey(Empadronado, on_delete=models.SET_NULL, null=True, blank=True, related_name="comprobantes")
    cliente_nombre = models.CharField(max_length=200)
    items = models.JSONField(default=list, encoder=DjangoJSONEncoder)
    total = models.DecimalField(max_digits=10, decimal_places=2)
    moneda = models.CharField(max_length=3, default="PEN")
    metodo_pago = models.CharField(max_length=20, blank=True)
    referencia = models.CharField(max_length=100, blank=True)
    emitido_en = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-emitido_en"]
    def __str__(self): return self.codigo
