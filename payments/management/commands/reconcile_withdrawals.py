import logging
from datetime import timedelta
from django.core.management.base import BaseCommand
from payments.services import SettlementService

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Reconcile withdrawals left approved by an interrupted settlement and completed withdrawals with unconsumed earnings."

    def add_arguments(self, parser):
        parser.add_argument('--minutes', type=int, default=30, help='Only approved withdrawals reviewed at least this many minutes ago')

    def handle(self, *args, **options):
        results = SettlementService.reconcile_stuck_withdrawals(older_than=timedelta(minutes=options['minutes']))
        if not results:
            self.stdout.write(self.style.SUCCESS("Nothing to reconcile."))
            return

        for withdrawal_id, status in results.items():
            line = f"{withdrawal_id}: {status}"
            if status == 'error':
                self.stdout.write(self.style.ERROR(line))
            else:
                self.stdout.write(line)
        errors = sum(1 for status in results.values() if status == 'error')
        logger.info(f"Reconciled {len(results)} withdrawals, {errors} errors")
        self.stdout.write(self.style.SUCCESS(f"Reconciled {len(results) - errors} of {len(results)} withdrawals."))
