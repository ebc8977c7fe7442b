import re
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP, getcontext
from django.conf import settings


getcontext().prec = 28

CENT = Decimal('0.01')

_LEDGER_DEFAULTS = {
    'MINIMUM_WITHDRAWAL': '1000',
    'PLATFORM_FEE_RATE': '0.05',
    'WITHDRAWAL_HOLD_DAYS': 7,
    'WITHDRAWAL_CURRENCY': 'KES',
}


def ledger_setting(name):
    """Read a ledger option from Django settings, falling back to the built-in default."""
    return getattr(settings, name, _LEDGER_DEFAULTS.get(name))


def minimum_withdrawal():
    return quantize_amount(ledger_setting('MINIMUM_WITHDRAWAL'))


def platform_fee_rate():
    return Decimal(str(ledger_setting('PLATFORM_FEE_RATE')))


def hold_period():
    return timedelta(days=int(ledger_setting('WITHDRAWAL_HOLD_DAYS')))


def quantize_amount(amount):
    return Decimal(str(amount)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_platform_fee(gross_amount, fee_rate=None):
    """
    Platform fee charged on a gross earning.

    Args:
        gross_amount (int, float, or Decimal): The gross amount.
        fee_rate (Decimal, optional): Defaults to PLATFORM_FEE_RATE.

    Returns:
        Decimal: The fee, rounded to cents.
    """
    rate = platform_fee_rate() if fee_rate is None else Decimal(str(fee_rate))
    return quantize_amount(Decimal(str(gross_amount)) * rate)


def calculate_net_amount(gross_amount, fee_rate=None):
    gross = quantize_amount(gross_amount)
    return gross - calculate_platform_fee(gross, fee_rate)


def split_amounts_from_net(net_amount, fee_rate=None):
    """
    Back-computes (gross, fee, net) for a given net amount so that
    net == gross - fee holds exactly after rounding.
    """
    rate = platform_fee_rate() if fee_rate is None else Decimal(str(fee_rate))
    net = quantize_amount(net_amount)
    gross = quantize_amount(net / (Decimal('1') - rate))
    return gross, gross - net, net


def normalize_mpesa_phone(phone):
    """
    Normalizes an M-Pesa number to +254XXXXXXXXX.

    Accepts 254XXXXXXXXX, 0XXXXXXXXX and bare 9-digit numbers, with any
    punctuation. Returns None when the number matches none of them.
    """
    cleaned = re.sub(r'\D', '', phone or '')
    if cleaned.startswith('254') and len(cleaned) == 12:
        return f"+{cleaned}"
    if cleaned.startswith('0') and len(cleaned) == 10:
        return f"+254{cleaned[1:]}"
    if len(cleaned) == 9:
        return f"+254{cleaned}"
    return None


def format_amount(amount):
    return f"KSh {quantize_amount(amount):,}"
