from datetime import date

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from cobranzas.services import ledger


class Command(BaseCommand):
    help = "Marca como morosos los cargos vencidos con saldo y aplica el recargo por morosidad."

    def add_arguments(self, parser):
        parser.add_argument("--fecha", help="Fecha de corte YYYY-MM-DD (por defecto hoy)")

    def handle(self, *args, **options):
        try:
            hoy = date.fromisoformat(options["fecha"]) if options["fecha"] else timezone.localdate()
        except ValueError as exc:
            raise CommandError("--fecha debe ser 'YYYY-MM-DD'") from exc
        resultado = ledger.ejecutar_cierre_mensual(hoy)
        self.stdout.write(self.style.SUCCESS(
            f'Cierre al {hoy}: {resultado["cargos_morosos"]} cargos morosos, recargo S/{resultado["total_morosidad"]}.'
        ))
