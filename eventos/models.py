from decimal import Decimal

from django.conf import settings
from django.db import models

from cobranzas.models import MetodoPago

User = settings.AUTH_USER_MODEL


class Evento(models.Model):
    CATEGORIA_CHOICES = [
        ("deportivo", "Deportivo"), ("cultural", "Cultural"), ("educativo", "Educativo"),
        ("social", "Social"), ("recreativo", "Recreativo"), ("otro", "Otro"),
    ]

    class Estado(models.TextChoices):
        ACTIVO = "activo", "Activo"
        INACTIVO = "inactivo", "Inactivo"
        FINALIZADO = "finalizado", "Finalizado"
        CANCELADO = "cancelado", "Cancelado"

    titulo = models.CharField(max_length=200)
    descripcion = models.TextField(blank=True)
    categoria = models.CharField(max_length=12, choices=CATEGORIA_CHOICES, default="otro")
    fecha_inicio = models.DateField()
    fecha_fin = models.DateField()
    hora_inicio = models.TimeField(null=True, blank=True)
    hora_fin = models.TimeField(null=True, blank=True)
    lugar = models.CharField(max_length=200, blank=True)
    instructor = models.CharField(max_length=150, blank=True)
    cupos_ilimitados = models.BooleanField(default=False)
    cupos_maximos = models.PositiveIntegerField(null=True, blank=True)
    cupos_disponibles = models.PositiveIntegerField(null=True, blank=True)
    precio = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("0"))
    imagen = models.URLField(blank=True)
    requisitos = models.TextField(blank=True)
    materiales_incluidos = models.TextField(blank=True)
    estado = models.CharField(max_length=10, choices=Estado.choices, default=Estado.ACTIVO)
    creado_por = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    modificado_por = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-fecha_inicio"]
    def __str__(self): return self.titulo


class Sesion(models.Model):
    evento = models.ForeignKey(Evento, on_delete=models.CASCADE, related_name="sesiones")
    lugar = models.CharField(max_length=200, blank=True)
    fecha = models.DateField()
    hora_inicio = models.TimeField()
    hora_fin = models.TimeField()
    precio = models.DecimalField(max_digits=8, decimal_places=2)

    class Meta:
        ordering = ["fecha", "hora_inicio"]
    def __str__(self): return f"{self.evento} {self.fecha} {self.hora_inicio:%H:%M}"


class Promocion(models.Model):
    TIPO_CHOICES = [
        ("codigo", "Código promocional"),
        ("acompanantes", "Descuento por acompañantes"),
        ("early_bird", "Inscripción anticipada"),
        ("grupal", "Descuento grupal"),
        ("porcentaje", "Descuento porcentual"),
        ("custom", "Condición personalizada"),
    ]
    TIPO_DESCUENTO_CHOICES = [("porcentaje", "Porcentaje"), ("fijo", "Precio final fijo")]

    evento = models.ForeignKey(Evento, on_delete=models.CASCADE, related_name="promociones")
    tipo = models.CharField(max_length=12, choices=TIPO_CHOICES)
    activa = models.BooleanField(default=True)
    codigo = models.CharField(max_length=30, blank=True)
    minimo_acompanantes = models.PositiveSmallIntegerField(null=True, blank=True)
    maximo_acompanantes = models.PositiveSmallIntegerField(null=True, blank=True)
    fecha_vencimiento = models.DateField(null=True, blank=True)
    minimo_inscripciones = models.PositiveSmallIntegerField(null=True, blank=True)
    condicion_custom = models.CharField(max_length=255, blank=True)
    tipo_descuento = models.CharField(max_length=10, choices=TIPO_DESCUENTO_CHOICES, default="porcentaje")
    monto_descuento = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True, help_text="Porcentaje de descuento")
    precio_final = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)

    def __str__(self): return f"{self.get_tipo_display()} - {self.evento}"


class Inscripcion(models.Model):
    class Estado(models.TextChoices):
        INSCRITO = "inscrito", "Inscrito"
        CONFIRMADO = "confirmado", "Confirmado"
        CANCELADO = "cancelado", "Cancelado"
        ASISTIO = "asistio", "Asistió"
        NO_ASISTIO = "no_asistio", "No asistió"

    evento = models.ForeignKey(Evento, on_delete=models.CASCADE, related_name="inscripciones")
    empadronado = models.ForeignKey("core.Empadronado", on_delete=models.SET_NULL, null=True, blank=True, related_name="inscripciones")
    nombre = models.CharField(max_length=150)
    dni = models.CharField(max_length=12, blank=True)
    acompanantes = models.PositiveSmallIntegerField(default=0)
    personas = models.JSONField(default=list, blank=True, help_text="[{nombre, dni}] de todos los inscritos")
    sesiones = models.ManyToManyField(Sesion, blank=True, related_name="inscripciones")
    promocion = models.ForeignKey(Promocion, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    descuento = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    monto_total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    estado = models.CharField(max_length=12, choices=Estado.choices, default=Estado.INSCRITO)
    observaciones = models.TextField(blank=True)
    pago_realizado = models.BooleanField(default=False)
    fecha_pago = models.DateTimeField(null=True, blank=True)
    monto_pagado = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    metodo_pago = models.CharField(max_length=15, choices=MetodoPago.choices, blank=True)
    comprobante = models.ForeignKey("core.Comprobante", on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    @property
    def cupos(self): return 1 + self.acompanantes

    def __str__(self): return f"{self.nombre} en {self.evento}"
