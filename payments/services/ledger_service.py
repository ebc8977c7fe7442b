import logging
from decimal import Decimal
from django.db import transaction as db_transaction
from django.db.models import Sum
from django.utils import timezone

from users.models import ArtistProfile
from payments.models import ArtistEarning
from payments.services.audit_service import PaymentAuditService
from payments.services.balance_service import BalanceService
from payments.utils import quantize_amount, split_amounts_from_net

logger = logging.getLogger(__name__)


class EarningsLedger:
    @staticmethod
    def consumed_amount(withdrawal):
        return ArtistEarning.objects.filter(
            withdrawal=withdrawal,
            status=ArtistEarning.EarningStatus.WITHDRAWN,
        ).aggregate(total=Sum('net_amount'))['total'] or Decimal('0.00')

    @staticmethod
    def consume(artist, amount, withdrawal, now=None):
        """
        Marks the artist's oldest withdrawable earnings as withdrawn until
        ``amount`` is covered. When one earning is larger than what is left,
        it is cut down to the remaining amount and a sibling row keeps the
        leftover available.

        Safe to call again for the same withdrawal: only the part of
        ``amount`` not yet attributed to it is consumed.

        Returns the earnings marked withdrawn by this call.
        """
        now = now or timezone.now()
        consumed = []
        with db_transaction.atomic():
            ArtistProfile.objects.get_or_create(user=artist)
            # Serializes consumption and request creation for one artist
            ArtistProfile.objects.select_for_update().get(user=artist)

            remaining = quantize_amount(amount) - EarningsLedger.consumed_amount(withdrawal)
            if remaining <= 0:
                logger.info(f"Withdrawal {withdrawal.id} already fully consumed")
                return consumed

            earnings = BalanceService.withdrawable_earnings(artist, now).select_for_update().order_by('created_at', 'id')

            for earning in earnings:
                if remaining <= 0:
                    break

                if earning.net_amount <= remaining:
                    remaining -= earning.net_amount
                else:
                    leftover = earning.net_amount - remaining
                    leftover_gross, leftover_fee, leftover_net = split_amounts_from_net(leftover)
                    sibling = ArtistEarning.objects.create(
                        artist=earning.artist,
                        order_reference=earning.order_reference,
                        product_reference=earning.product_reference,
                        earning_type=earning.earning_type,
                        gross_amount=leftover_gross,
                        platform_fee=leftover_fee,
                        net_amount=leftover_net,
                        status=ArtistEarning.EarningStatus.AVAILABLE,
                        available_for_withdrawal_at=earning.available_for_withdrawal_at,
                        created_at=earning.created_at,
                    )
                    gross, fee, net = split_amounts_from_net(remaining)
                    earning.gross_amount = gross
                    earning.platform_fee = fee
                    earning.net_amount = net
                    logger.debug(f"Split earning {earning.id}: {net} withdrawn, {leftover_net} kept as {sibling.id}")
                    remaining = Decimal('0.00')

                earning.status = ArtistEarning.EarningStatus.WITHDRAWN
                earning.withdrawn_at = now
                earning.withdrawal = withdrawal
                earning.save(update_fields=[
                    'gross_amount', 'platform_fee', 'net_amount',
                    'status', 'withdrawn_at', 'withdrawal', 'updated_at',
                ])
                consumed.append(earning)

            if remaining > 0:
                logger.warning(
                    f"Withdrawal {withdrawal.id} for artist {artist.pk} is short by {remaining}: "
                    f"not enough available earnings to consume"
                )

            EarningsLedger.update_artist_total_earnings(artist)

            total = sum((e.net_amount for e in consumed), Decimal('0.00'))
            PaymentAuditService.audit(
                None,
                'earnings_consumed',
                total,
                target_id=withdrawal.id,
                description=f"Consumed {len(consumed)} earnings totalling {total} for withdrawal {withdrawal.reference}",
            )
        return consumed

    @staticmethod
    def update_artist_total_earnings(artist):
        """``total_earnings`` is available plus withdrawn net earnings."""
        artist_id = getattr(artist, 'pk', artist)
        total = ArtistEarning.objects.filter(
            artist_id=artist_id,
            status__in=[ArtistEarning.EarningStatus.AVAILABLE, ArtistEarning.EarningStatus.WITHDRAWN],
        ).aggregate(total=Sum('net_amount'))['total'] or Decimal('0.00')
        ArtistProfile.objects.update_or_create(user_id=artist_id, defaults={'total_earnings': total})
        return total
