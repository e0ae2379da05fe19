from django.apps import AppConfig


class AccesoConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "acceso"
    verbose_name = "Control de acceso"
