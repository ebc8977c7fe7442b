from datetime import timedelta
from decimal import Decimal
from itertools import count
from unittest.mock import Mock
from django.utils import timezone

from payments.models import ArtistEarning
from payments.utils import split_amounts_from_net
from users.models import User, UserType

_phone_suffix = count(1)


def make_user(user_type=UserType.ARTIST, **extra):
    n = next(_phone_suffix)
    return User.objects.create_user(
        username=extra.pop('username', f'{user_type}_{n}'),
        phone_number=extra.pop('phone_number', f'+2547110{n:05d}'),
        user_type=user_type,
        password='pass12345',
        **extra,
    )


def make_artist(**extra):
    return make_user(UserType.ARTIST, **extra)


def make_admin(**extra):
    return make_user(UserType.ADMIN, is_staff=True, **extra)


def make_earning(artist, net_amount, status=ArtistEarning.EarningStatus.AVAILABLE, created_at=None, available_at=None):
    now = timezone.now()
    gross, fee, net = split_amounts_from_net(Decimal(str(net_amount)))
    return ArtistEarning.objects.create(
        artist=artist,
        gross_amount=gross,
        platform_fee=fee,
        net_amount=net,
        status=status,
        available_for_withdrawal_at=available_at or now - timedelta(days=1),
        created_at=created_at or now - timedelta(days=10),
    )


def gateway_double(success=True, transaction_id='WTH_TEST_1', message=None):
    gateway = Mock()
    gateway.initiate_transfer.return_value = {
        'success': success,
        'transaction_id': transaction_id if success else None,
        'message': message or ('Withdrawal completed successfully' if success else 'Insufficient float'),
        'status': 'completed' if success else 'failed',
        'raw_response': {'code': 0 if success else 17},
    }
    return gateway
