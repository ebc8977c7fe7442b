import random
import logging
from decimal import Decimal
from django.conf import settings
from django.utils import timezone

from payments.gateways.instapay import InstaPayGateway
from payments.utils import quantize_amount

logger = logging.getLogger(__name__)


SIMULATED_MINIMUM = Decimal('1000')
SIMULATED_DAILY_LIMIT = Decimal('150000')


class SimulatedGateway(InstaPayGateway):
    """Development stand-in for InstaPay that never touches the network."""

    # Shared across instances so a later status check can find the transfer
    _transfers = {}

    def __init__(self, failure_rate=None, rng=None):
        super().__init__()
        if failure_rate is None:
            failure_rate = getattr(settings, 'SIMULATED_GATEWAY_FAILURE_RATE', 0.05)
        self.failure_rate = float(failure_rate)
        self.rng = rng or random.Random()

    def _failed(self, message):
        return {
            'success': False,
            'transaction_id': None,
            'message': message,
            'status': 'failed',
            'raw_response': {'simulated': True, 'message': message},
        }

    def initiate_transfer(self, amount, phone, reference, description) -> dict:
        amount = quantize_amount(amount)
        if amount < SIMULATED_MINIMUM:
            return self._failed('Minimum withdrawal amount is KSh 1,000')
        if amount > SIMULATED_DAILY_LIMIT:
            return self._failed('Withdrawal amount exceeds daily limit')
        if self.rng.random() < self.failure_rate:
            return self._failed('Withdrawal failed. Please try again later.')

        now = timezone.now()
        transaction_id = f"WTH_{int(now.timestamp() * 1000)}_{self.rng.getrandbits(36):09x}"
        self._transfers[transaction_id] = {'amount': amount, 'timestamp': now.isoformat()}
        logger.info(f"Simulated transfer {transaction_id} of {amount} to {self.format_phone_number(phone)} ({reference})")
        return {
            'success': True,
            'transaction_id': transaction_id,
            'message': 'Withdrawal completed successfully',
            'status': 'completed',
            'raw_response': {
                'simulated': True,
                'transaction_id': transaction_id,
                'reference': reference,
                'description': description,
            },
        }

    def check_status(self, transaction_id) -> dict:
        transfer = self._transfers.get(transaction_id)
        if transfer is None:
            return {
                'transaction_id': transaction_id,
                'status': 'unknown',
                'amount': Decimal('0.00'),
                'currency': 'KES',
                'timestamp': timezone.now().isoformat(),
                'failure_reason': 'Unknown transaction',
            }
        return {
            'transaction_id': transaction_id,
            'status': 'completed',
            'amount': transfer['amount'],
            'currency': 'KES',
            'timestamp': transfer['timestamp'],
            'failure_reason': None,
        }
