from django.conf import settings

from .instapay import InstaPayGateway
from .simulated import SimulatedGateway


GATEWAYS = {
    'instapay': InstaPayGateway,
    'simulated': SimulatedGateway,
}


def get_payment_gateway():
    name = getattr(settings, 'PAYMENT_GATEWAY', 'instapay')
    try:
        return GATEWAYS[name]()
    except KeyError:
        raise ValueError(f"Unknown payment gateway '{name}'. Expected one of: {', '.join(GATEWAYS)}")


__all__ = [
    'InstaPayGateway',
    'SimulatedGateway',
    'get_payment_gateway',
]
