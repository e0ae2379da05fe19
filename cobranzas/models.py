from datetime import date
from decimal import Decimal

from django.conf import settings
from django.db import models

User = settings.AUTH_USER_MODEL


class MetodoPago(models.TextChoices):
    EFECTIVO = "efectivo", "Efectivo"
    TRANSFERENCIA = "transferencia", "Transferencia"
    YAPE = "yape", "Yape"
    PLIN = "plin", "Plin"


class ConfiguracionCobranza(models.Model):
    monto_mensual = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("50.00"))
    dia_cierre = models.PositiveSmallIntegerField(default=14)
    dia_vencimiento = models.PositiveSmallIntegerField(default=15)
    dias_pronto_pago = models.PositiveSmallIntegerField(default=3)
    porcentaje_pronto_pago = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("5.00"))
    porcentaje_morosidad = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("10.00"))
    fecha_inicio_cobro = models.DateField(default=date(2025, 1, 15), help_text="Fecha de política: quienes ingresaron antes pagan desde ese mes")
    serie_comprobantes = models.CharField(max_length=10, default="001")
    numero_comprobante_actual = models.PositiveIntegerField(default=1)
    sede = models.CharField(max_length=30, default="JPUSAP")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "configuración de cobranza"

    @classmethod
    def get_solo(cls):
        config, _ = cls.objects.get_or_create(pk=1)
        return config

    def __str__(self): return f"Cobranza S/{self.monto_mensual} (cierre {self.dia_cierre}, vence {self.dia_vencimiento})"


class PeriodoGenerado(models.Model):
    periodo = models.CharField(max_length=6, unique=True)
    generado_por = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    fecha_generacion = models.DateTimeField(auto_now_add=True)
    cargos_creados = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["-periodo"]
    def __str__(self): return self.periodo


class Cargo(models.Model):
    class Estado(models.TextChoices):
        PENDIENTE = "pendiente", "Pendiente"
        PAGADO = "pagado", "Pagado"
        MOROSO = "moroso", "Moroso"

    empadronado = models.ForeignKey("core.Empadronado", on_delete=models.CASCADE, related_name="cargos")
    periodo = models.CharField(max_length=6)
    monto_original = models.DecimalField(max_digits=10, decimal_places=2)
    monto_pagado = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    monto_morosidad = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    saldo = models.DecimalField(max_digits=10, decimal_places=2)
    fecha_vencimiento = models.DateField()
    estado = models.CharField(max_length=10, choices=Estado.choices, default=Estado.PENDIENTE)
    es_moroso = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("empadronado", "periodo")
        ordering = ["-periodo", "empadronado_id"]
        indexes = [models.Index(fields=["periodo", "estado"])]

    @property
    def total_exigible(self): return self.monto_original + self.monto_morosidad

    def __str__(self): return f"{self.empadronado_id} {self.periodo} saldo {self.saldo}"


class Pago(models.Model):
    class Estado(models.TextChoices):
        PENDIENTE = "pendiente", "Pendiente"
        APROBADO = "aprobado", "Aprobado"
        RECHAZADO = "rechazado", "Rechazado"

    cargo = models.ForeignKey(Cargo, on_delete=models.CASCADE, related_name="pagos")
    empadronado = models.ForeignKey("core.Empadronado", on_delete=models.CASCADE, related_name="pagos")
    periodo = models.CharField(max_length=6)
    monto_recibido = models.DecimalField(max_digits=10, decimal_places=2)
    descuento_pronto_pago = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    monto = models.DecimalField(max_digits=10, decimal_places=2, help_text="Monto acreditado al cargo (recibido + descuento)")
    metodo_pago = models.CharField(max_length=15, choices=MetodoPago.choices)
    numero_operacion = models.CharField(max_length=60, blank=True)
    fecha_pago = models.DateField(help_text="Fecha en que el asociado indica que pagó")
    observaciones = models.TextField(blank=True)
    archivo_comprobante = models.URLField(blank=True)
    estado = models.CharField(max_length=10, choices=Estado.choices, default=Estado.PENDIENTE)
    motivo_rechazo = models.TextField(blank=True)
    comentario_aprobacion = models.TextField(blank=True)
    numero_comprobante = models.CharField(max_length=30, blank=True)
    registrado_por = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="pagos_registrados")
    revisado_por = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name="pagos_revisados")
    fecha_revision = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-fecha_pago", "-created_at"]
        indexes = [models.Index(fields=["metodo_pago", "numero_operacion"])]

    def __str__(self): return f"Pago {self.pk} {self.periodo} S/{self.monto} ({self.estado})"


class MovimientoFinanciero(models.Model):
    class Tipo(models.TextChoices):
        INGRESO = "ingreso", "Ingreso"
        EGRESO = "egreso", "Egreso"

    class Origen(models.TextChoices):
        MANUAL = "manual", "Registro manual"
        RESERVA = "reserva", "Reserva deportiva"
        EVENTO = "evento", "Inscripción a evento"

    CATEGORIAS_INGRESO = ["cuotas", "donacion", "multa_externa", "evento", "alquiler", "intereses", "otro"]
    CATEGORIAS_EGRESO = ["mantenimiento", "servicios", "personal", "seguridad", "compras", "eventos", "reparaciones", "otro"]

    tipo = models.CharField(max_length=7, choices=Tipo.choices)
    categoria = models.CharField(max_length=20)
    monto = models.DecimalField(max_digits=12, decimal_places=2)
    descripcion = models.CharField(max_length=255)
    fecha = models.DateField()
    metodo_pago = models.CharField(max_length=15, choices=MetodoPago.choices, blank=True)
    numero_operacion = models.CharField(max_length=60, blank=True)
    numero_comprobante = models.CharField(max_length=40, blank=True)
    beneficiario = models.CharField(max_length=150, blank=True)
    proveedor = models.CharField(max_length=150, blank=True)
    origen = models.CharField(max_length=10, choices=Origen.choices, default=Origen.MANUAL)
    observaciones = models.TextField(blank=True)
    registrado_por = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-fecha", "-created_at"]
        indexes = [models.Index(fields=["tipo", "fecha"])]

    @classmethod
    def categorias_de(cls, tipo):
        return cls.CATEGORIAS_INGRESO if tipo == cls.Tipo.INGRESO else cls.CATEGORIAS_EGRESO

    def __str__(self): return f"{self.tipo} {self.categoria} S/{self.monto} ({self.fecha})"
