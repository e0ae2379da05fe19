from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from cobranzas.services import ledger
from cobranzas.services.periodos import periodo_de


class Command(BaseCommand):
    help = "Genera los cargos mensuales del periodo indicado (por defecto el mes en curso)."

    def add_arguments(self, parser):
        parser.add_argument("--periodo", help="Periodo YYYYMM a generar")
        parser.add_argument("--desde", help="Genera el histórico desde este periodo YYYYMM hasta --periodo o el mes en curso")

    def handle(self, *args, **options):
        periodo = options["periodo"] or periodo_de(timezone.localdate())
        try:
            if options["desde"]:
                resultado = ledger.generar_historico(options["desde"], periodo)
                for fila in resultado["periodos"]:
                    self.stdout.write(f'  - {fila["periodo"]}: {fila["cargos_creados"]} cargos')
            else:
                resultado = ledger.generar_periodo(periodo)
        except ValueError as exc:
            raise CommandError(str(exc)) from exc
        self.stdout.write(self.style.SUCCESS(f'Proceso completado. Se crearon {resultado["cargos_creados"]} cargos.'))
