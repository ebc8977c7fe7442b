import re
import logging
import requests
from decimal import Decimal
from django.conf import settings
from django.utils import timezone

from payments.utils import quantize_amount

logger = logging.getLogger(__name__)


FEE_RATES = {
    'mpesa': Decimal('0.015'),
    'card': Decimal('0.025'),
    'bank': Decimal('0.01'),
}
DEFAULT_FEE_RATE = Decimal('0.025')

GATEWAY_PHONE_PATTERN = re.compile(r'^254[17]\d{8}$')


class InstaPayGateway:
    """
    M-Pesa B2C transfers through the InstaPay API.

    Every call returns a plain dict. Transport and HTTP errors are reported
    as ``success=False`` rather than raised, so the settlement engine only
    ever has to branch on the result.
    """

    def __init__(self, api_key=None, base_url=None, environment=None, timeout=None):
        self.api_key = api_key or getattr(settings, 'INSTAPAY_API_KEY', '')
        self.base_url = (base_url or getattr(settings, 'INSTAPAY_BASE_URL', 'https://api.instapay.co.ke')).rstrip('/')
        self.environment = environment or getattr(settings, 'INSTAPAY_ENVIRONMENT', 'sandbox')
        self.timeout = timeout or getattr(settings, 'INSTAPAY_TIMEOUT', 30)

    def _headers(self):
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "X-Environment": self.environment,
        }

    def _post(self, endpoint, payload):
        response = requests.post(
            f"{self.base_url}{endpoint}",
            json=payload,
            headers=self._headers(),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def _get(self, endpoint):
        response = requests.get(
            f"{self.base_url}{endpoint}",
            headers=self._headers(),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def initiate_transfer(self, amount, phone, reference, description) -> dict:
        """
        Send ``amount`` to an M-Pesa number.

        Returns:
            {
                'success': bool,
                'transaction_id': str or None,
                'message': str,
                'status': str,
                'raw_response': dict
            }
        """
        payload = {
            "amount": float(amount),
            "phone_number": self.format_phone_number(phone),
            "reference": reference,
            "description": description,
            "occasion": "Artist Withdrawal",
        }
        try:
            data = self._post('/v1/payments/mpesa/b2c', payload)
        except requests.exceptions.Timeout:
            logger.error(f"InstaPay transfer {reference} timed out")
            return {
                'success': False,
                'transaction_id': None,
                'message': 'Request timed out',
                'status': 'failed',
                'raw_response': {},
            }
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"InstaPay transfer {reference} failed: {e}")
            return {
                'success': False,
                'transaction_id': None,
                'message': 'Failed to initiate withdrawal. Please try again.',
                'status': 'failed',
                'raw_response': {'error': str(e)},
            }

        success = bool(data.get('success'))
        return {
            'success': success,
            'transaction_id': data.get('transaction_id'),
            'message': data.get('message') or ('Withdrawal initiated successfully' if success else 'Withdrawal failed'),
            'status': 'pending' if success else 'failed',
            'raw_response': data,
        }

    def check_status(self, transaction_id) -> dict:
        """
        Look up a transfer by the gateway's transaction id.

        ``status`` is ``unknown`` when the gateway could not be reached, which
        callers must not read as a failed transfer.
        """
        try:
            data = self._get(f'/v1/payments/status/{transaction_id}')
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"InstaPay status check for {transaction_id} failed: {e}")
            return {
                'transaction_id': transaction_id,
                'status': 'unknown',
                'amount': Decimal('0.00'),
                'currency': 'KES',
                'timestamp': timezone.now().isoformat(),
                'failure_reason': 'Failed to check status',
            }

        return {
            'transaction_id': data.get('transaction_id', transaction_id),
            'status': data.get('status', 'unknown'),
            'amount': quantize_amount(data.get('amount') or 0),
            'currency': data.get('currency') or 'KES',
            'timestamp': data.get('timestamp'),
            'failure_reason': data.get('failure_reason'),
        }

    @staticmethod
    def format_phone_number(phone):
        """Gateway format is 2547XXXXXXXX, without the plus sign."""
        cleaned = re.sub(r'\D', '', str(phone or ''))
        if cleaned.startswith('254'):
            return cleaned
        if cleaned.startswith('0'):
            return f"254{cleaned[1:]}"
        if len(cleaned) == 9:
            return f"254{cleaned}"
        return cleaned

    def validate_phone_number(self, phone):
        return bool(GATEWAY_PHONE_PATTERN.match(self.format_phone_number(phone)))

    @staticmethod
    def calculate_fees(amount, payment_method='mpesa'):
        """Informational only. Withdrawals are always sent with zero fees."""
        rate = FEE_RATES.get(payment_method, DEFAULT_FEE_RATE)
        return quantize_amount(Decimal(str(amount)) * rate)
