from decimal import Decimal

from django.conf import settings
from django.db import models

User = settings.AUTH_USER_MODEL


class ItemPatrimonio(models.Model):
    CONSERVACION_CHOICES = [("bueno", "Bueno"), ("regular", "Regular"), ("malo", "Malo")]
    CONDICION_CHOICES = [("nuevo", "Nuevo"), ("segunda", "Segunda")]
    DOCUMENTO_CHOICES = [
        ("factura", "Factura"), ("boleta", "Boleta"), ("contrato", "Contrato"),
        ("garantia", "Garantía"), ("otro", "Otro"),
    ]

    codigo = models.CharField(max_length=20, unique=True, editable=False)
    codigo_barras = models.CharField(max_length=13, unique=True, editable=False)
    nombre = models.CharField(max_length=150)
    descripcion = models.TextField(blank=True)
    zona = models.CharField(max_length=100)
    referencia_interna = models.CharField(max_length=50, blank=True)
    cantidad = models.PositiveIntegerField(default=1)
    conservacion = models.CharField(max_length=10, choices=CONSERVACION_CHOICES, default="bueno")
    condicion = models.CharField(max_length=10, choices=CONDICION_CHOICES, default="nuevo")
    observaciones_estado = models.TextField(blank=True)
    fecha_adquisicion = models.DateField(null=True, blank=True)
    comprador = models.CharField(max_length=150, blank=True)
    valor_estimado = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    responsable = models.CharField(max_length=150, blank=True)
    requiere_mantenimiento = models.BooleanField(default=False)
    encargado_mantenimiento = models.CharField(max_length=150, blank=True)
    ultimo_mantenimiento = models.DateField(null=True, blank=True)
    proximo_mantenimiento = models.DateField(null=True, blank=True)
    tipo_documento = models.CharField(max_length=10, choices=DOCUMENTO_CHOICES, blank=True)
    numero_documento = models.CharField(max_length=60, blank=True)
    archivos = models.JSONField(default=list, blank=True, help_text="URLs de documentos")
    fotos = models.JSONField(default=list, blank=True, help_text="URLs de fotos")
    es_donacion = models.BooleanField(default=False)
    valor_aproximado_donacion = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    donante = models.CharField(max_length=150, blank=True)
    observaciones = models.TextField(blank=True)
    activo = models.BooleanField(default=True)
    registrado_por = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "bien patrimonial"
        verbose_name_plural = "bienes patrimoniales"

    @property
    def valor_patrimonial(self):
        if self.es_donacion:
            return self.valor_aproximado_donacion or Decimal("0")
        return self.valor_estimado

    def __str__(self): return f"{self.codigo} - {self.nombre}"
