from datetime import time
from decimal import Decimal

from django.conf import settings
from django.db import models

from cobranzas.models import MetodoPago

User = settings.AUTH_USER_MODEL


class Cancha(models.Model):
    TIPO_CHOICES = [("futbol", "Fútbol"), ("voley", "Vóley")]
    UBICACION_CHOICES = [("boulevard", "Boulevard"), ("quinta_llana", "Quinta Llana")]

    nombre = models.CharField(max_length=100)
    tipo = models.CharField(max_length=10, choices=TIPO_CHOICES)
    ubicacion = models.CharField(max_length=20, choices=UBICACION_CHOICES)
    activa = models.BooleanField(default=True)
    precio_hora = models.DecimalField(max_digits=8, decimal_places=2)
    luz_1h = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0"))
    luz_2h = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0"))
    luz_3h = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0"), help_text="Recargo de luz para más de 2 horas")
    tarifa_aportante = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0"), help_text="Descuento % para aportantes")
    hora_minima = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal("1"))
    hora_maxima = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal("3"))
    buffer_minutos = models.PositiveSmallIntegerField(default=0)
    horario_inicio = models.TimeField(default=time(6, 0))
    horario_fin = models.TimeField(default=time(22, 0))

    class Meta:
        ordering = ["nombre"]
    def __str__(self): return f"{self.nombre} ({self.get_tipo_display()})"


class ConfiguracionDeportes(models.Model):
    reservas_por_persona_por_dia = models.PositiveSmallIntegerField(default=2)
    horas_antes_para_cancelar = models.PositiveSmallIntegerField(default=2)
    horas_para_no_show = models.PositiveSmallIntegerField(default=1)
    apertura = models.TimeField(default=time(6, 0))
    cierre = models.TimeField(default=time(22, 0))
    ultima_reserva = models.TimeField(default=time(21, 0))
    whatsapp_template = models.TextField(
        default="Hola {nombre}, tu reserva para {cancha} el {fecha} de {hora_inicio} a {hora_fin} está confirmada. Total: S/{total}"
    )

    class Meta:
        verbose_name = "configuración de deportes"

    @classmethod
    def get_solo(cls):
        config, _ = cls.objects.get_or_create(pk=1)
        return config

    def __str__(self): return "Configuración de deportes"


class Reserva(models.Model):
    class Estado(models.TextChoices):
        PENDIENTE = "pendiente", "Pendiente"
        PAGADO = "pagado", "Pagado"
        CANCELADO = "cancelado", "Cancelado"
        NO_SHOW = "no_show", "No se presentó"
        COMPLETADO = "completado", "Completado"

    FRECUENCIA_CHOICES = [("semanal", "Semanal"), ("quincenal", "Quincenal"), ("mensual", "Mensual")]

    cancha = models.ForeignKey(Cancha, on_delete=models.PROTECT, related_name="reservas")
    empadronado = models.ForeignKey("core.Empadronado", on_delete=models.SET_NULL, null=True, blank=True, related_name="reservas")
    nombre_cliente = models.CharField(max_length=150)
    dni = models.CharField(max_length=12, blank=True, db_index=True)
    telefono = models.CharField(max_length=30)
    fecha_inicio = models.DateTimeField()
    fecha_fin = models.DateTimeField()
    duracion_horas = models.DecimalField(max_digits=4, decimal_places=2)
    estado = models.CharField(max_length=12, choices=Estado.choices, default=Estado.PENDIENTE)
    es_aportante = models.BooleanField(default=False)

    precio_base = models.DecimalField(max_digits=8, decimal_places=2)
    precio_luz = models.DecimalField(max_digits=8, decimal_places=2)
    descuento_aportante = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0"))
    precio_total = models.DecimalField(max_digits=8, decimal_places=2)

    metodo_pago = models.CharField(max_length=15, choices=MetodoPago.choices, blank=True)
    numero_operacion = models.CharField(max_length=60, blank=True)
    voucher_url = models.URLField(blank=True)
    fecha_pago = models.DateTimeField(null=True, blank=True)
    es_prepago = models.BooleanField(default=False)
    monto_pagado = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0"))
    saldo_pendiente = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0"))
    ingreso = models.ForeignKey("cobranzas.MovimientoFinanciero", on_delete=models.SET_NULL, null=True, blank=True, related_name="+")

    frecuencia = models.CharField(max_length=10, choices=FRECUENCIA_CHOICES, blank=True)
    recurrente_hasta = models.DateField(null=True, blank=True)
    reserva_padre = models.ForeignKey("self", on_delete=models.SET_NULL, null=True, blank=True, related_name="reservas_generadas")

    observaciones = models.TextField(blank=True)
    motivo_cancelacion = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-fecha_inicio"]
        indexes = [models.Index(fields=["cancha", "fecha_inicio"])]

    @property
    def numero_comprobante(self): return f"DEP-{self.pk:08d}"

    def __str__(self): return f"{self.cancha} {self.fecha_inicio:%Y-%m-%d %H:%M} - {self.nombre_cliente}"
