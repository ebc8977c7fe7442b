import logging
from django.core.management.base import BaseCommand
from payments.services import EarningService

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Move pending earnings whose hold period has passed to available (run hourly)."

    def add_arguments(self, parser):
        parser.add_argument('--check', action='store_true', help='Only report how many earnings are ready for release')

    def handle(self, *args, **options):
        needed, count = EarningService.is_maintenance_needed()
        if options['check']:
            self.stdout.write(f"{count} pending earnings ready for release.")
            return
        if not needed:
            self.stdout.write(self.style.SUCCESS("No pending earnings ready for release."))
            return

        result = EarningService.release_matured_earnings(triggered_by='management_command')
        self.stdout.write(self.style.SUCCESS(
            f"Released {result['pending_updated']} earnings ({result['total_amount_released']}) "
            f"for {result['artists_affected']} artists in {result['execution_time']}s."
        ))
