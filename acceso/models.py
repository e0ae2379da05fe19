from django.conf import settings
from django.db import models

User = settings.AUTH_USER_MODEL

TIPO_ACCESO_CHOICES = [("peatonal", "Peatonal"), ("vehicular", "Vehicular")]


class MaestroObra(models.Model):
    nombre = models.CharField(max_length=150)
    dni = models.CharField(max_length=12, blank=True)
    telefono = models.CharField(max_length=30, blank=True)
    empresa = models.CharField(max_length=150, blank=True)
    notas = models.TextField(blank=True)
    activo = models.BooleanField(default=True)
    creado_por = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "maestros de obra"
    def __str__(self): return self.nombre


class ListaTrabajadores(models.Model):
    empadronado = models.ForeignKey("core.Empadronado", on_delete=models.CASCADE, related_name="listas_trabajadores")
    nombre_lista = models.CharField(max_length=100)
    maestro_obra = models.ForeignKey(MaestroObra, on_delete=models.PROTECT, related_name="listas")
    tipo_acceso = models.CharField(max_length=10, choices=TIPO_ACCESO_CHOICES, default="peatonal")
    placas = models.JSONField(default=list, blank=True)
    trabajadores = models.JSONField(default=list, help_text="[{nombre, dni}]")
    fecha_inicio = models.DateField()
    fecha_fin = models.DateField(help_text="Máximo 30 días después del inicio")
    activa = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
    def __str__(self): return f"{self.nombre_lista} ({self.fecha_inicio} - {self.fecha_fin})"


class SolicitudAcceso(models.Model):
    class Tipo(models.TextChoices):
        VISITA = "visita", "Visita"
        TRABAJADORES = "trabajadores", "Trabajadores"
        PROVEEDOR = "proveedor", "Proveedor"

    class Estado(models.TextChoices):
        PENDIENTE = "pendiente", "Pendiente"
        AUTORIZADO = "autorizado", "Autorizado"
        DENEGADO = "denegado", "Denegado"

    SERVICIO_CHOICES = [("gas", "Gas"), ("delivery", "Delivery"), ("bodega", "Bodega"), ("otro", "Otro")]

    tipo = models.CharField(max_length=12, choices=Tipo.choices)
    empadronado = models.ForeignKey("core.Empadronado", on_delete=models.CASCADE, related_name="solicitudes_acceso")
    portico = models.CharField(max_length=30, default="principal")
    tipo_acceso = models.CharField(max_length=10, choices=TIPO_ACCESO_CHOICES, default="peatonal")
    placas = models.JSONField(default=list, blank=True)
    personas = models.JSONField(default=list, blank=True, help_text="Visitantes o trabajadores: [{nombre, dni}]")
    menores = models.PositiveSmallIntegerField(default=0)
    maestro_obra = models.ForeignKey(MaestroObra, on_delete=models.SET_NULL, null=True, blank=True, related_name="solicitudes")
    maestro_obra_temporal = models.JSONField(null=True, blank=True, help_text="{nombre, dni} si no está registrado")
    lista = models.ForeignKey(ListaTrabajadores, on_delete=models.SET_NULL, null=True, blank=True, related_name="solicitudes")
    empresa = models.CharField(max_length=150, blank=True)
    tipo_servicio = models.CharField(max_length=10, choices=SERVICIO_CHOICES, blank=True)
    estado = models.CharField(max_length=10, choices=Estado.choices, default=Estado.PENDIENTE)
    solicitado_por_nombre = models.CharField(max_length=200, blank=True)
    solicitado_por_padron = models.CharField(max_length=20, blank=True)
    resuelto_por = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    fecha_resolucion = models.DateTimeField(null=True, blank=True)
    observaciones = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["portico", "estado"])]
    def __str__(self): return f"{self.get_tipo_display()} de {self.solicitado_por_padron} ({self.estado})"


class Favorito(models.Model):
    TIPO_CHOICES = [("visitante", "Visitante"), ("trabajador", "Trabajador"), ("proveedor", "Proveedor")]

    empadronado = models.ForeignKey("core.Empadronado", on_delete=models.CASCADE, related_name="favoritos_acceso")
    tipo = models.CharField(max_length=10, choices=TIPO_CHOICES)
    nombre = models.CharField(max_length=150)
    datos = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
    def __str__(self): return f"{self.nombre} ({self.tipo})"
