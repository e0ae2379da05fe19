from django.apps import AppConfig


class DeportesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "deportes"
    verbose_name = "Reservas deportivas"
