from django.core.management.base import BaseCommand

from deportes.services.reservas import procesar_no_shows


class Command(BaseCommand):
    help = "Marca como no-show las reservas pendientes cuyo inicio pasó la tolerancia configurada."

    def handle(self, *args, **options):
        total = procesar_no_shows()
        self.stdout.write(self.style.SUCCESS(f"Proceso completado. {total} reservas marcadas como no-show."))
