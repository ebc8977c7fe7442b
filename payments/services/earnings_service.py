import time
import logging
from decimal import Decimal
from django.db import transaction as db_transaction
from django.db.models import Count, Sum
from django.utils import timezone

from payments.models import ArtistEarning, EarningsMaintenanceLog, WithdrawalRequest
from payments.services.audit_service import PaymentAuditService
from payments.services.ledger_service import EarningsLedger
from payments.utils import calculate_platform_fee, hold_period, quantize_amount

logger = logging.getLogger(__name__)


class EarningService:
    @staticmethod
    def record_earning(artist, gross_amount, earning_type=ArtistEarning.EarningType.SALE,
                       order_reference='', product_reference='', now=None):
        """Books a new earning on hold until the withdrawal hold period has passed."""
        now = now or timezone.now()
        gross = quantize_amount(gross_amount)
        if gross < 0:
            raise ValueError("Earning amount cannot be negative")
        fee = calculate_platform_fee(gross)
        earning = ArtistEarning.objects.create(
            artist=artist,
            order_reference=order_reference or '',
            product_reference=product_reference or '',
            earning_type=earning_type,
            gross_amount=gross,
            platform_fee=fee,
            net_amount=gross - fee,
            status=ArtistEarning.EarningStatus.PENDING,
            available_for_withdrawal_at=now + hold_period(),
            created_at=now,
        )
        PaymentAuditService.audit(
            artist,
            'earning_recorded',
            earning.net_amount,
            target_type='ArtistEarning',
            target_id=earning.id,
        )
        logger.info(f"Recorded {earning_type} earning {earning.id} for artist {artist.pk}: net {earning.net_amount}")
        return earning

    @staticmethod
    def get_pending_earnings_ready_for_release(now=None):
        now = now or timezone.now()
        return ArtistEarning.objects.filter(
            status=ArtistEarning.EarningStatus.PENDING,
            available_for_withdrawal_at__lte=now,
        ).select_related('artist').order_by('available_for_withdrawal_at')

    @staticmethod
    def is_maintenance_needed(now=None):
        count = EarningService.get_pending_earnings_ready_for_release(now).count()
        return count > 0, count

    @staticmethod
    def release_matured_earnings(now=None, triggered_by='scheduler'):
        """
        Moves pending earnings past their hold date to available and
        refreshes the totals of every artist touched.
        """
        started = time.monotonic()
        now = now or timezone.now()
        with db_transaction.atomic():
            matured = list(
                ArtistEarning.objects.select_for_update().filter(
                    status=ArtistEarning.EarningStatus.PENDING,
                    available_for_withdrawal_at__lte=now,
                ).values('id', 'artist_id', 'net_amount')
            )
            earning_ids = [row['id'] for row in matured]
            artist_ids = {row['artist_id'] for row in matured}
            total_released = sum((row['net_amount'] for row in matured), Decimal('0.00'))

            if earning_ids:
                ArtistEarning.objects.filter(
                    id__in=earning_ids,
                    status=ArtistEarning.EarningStatus.PENDING,
                ).update(status=ArtistEarning.EarningStatus.AVAILABLE, updated_at=now)

            for artist_id in artist_ids:
                EarningsLedger.update_artist_total_earnings(artist_id)

            EarningsMaintenanceLog.objects.create(
                executed_at=now,
                pending_updated=len(earning_ids),
                artists_affected=len(artist_ids),
                total_amount_released=total_released,
                triggered_by=triggered_by,
            )

        execution_time = round(time.monotonic() - started, 3)
        logger.info(
            f"Released {len(earning_ids)} earnings ({total_released}) for {len(artist_ids)} artists in {execution_time}s"
        )
        return {
            'pending_updated': len(earning_ids),
            'artists_affected': len(artist_ids),
            'total_amount_released': total_released,
            'execution_time': execution_time,
        }

    @staticmethod
    def get_earnings_statistics():
        by_status = {
            row['status']: row
            for row in ArtistEarning.objects.values('status').annotate(count=Count('id'), total=Sum('net_amount'))
        }

        def total_for(status):
            row = by_status.get(status)
            return (row['total'] if row else None) or Decimal('0.00')

        def count_for(status):
            row = by_status.get(status)
            return row['count'] if row else 0

        statuses = ArtistEarning.EarningStatus
        return {
            'total_earnings': sum((total_for(s) for s in statuses.values), Decimal('0.00')),
            'pending_earnings': total_for(statuses.PENDING),
            'available_earnings': total_for(statuses.AVAILABLE),
            'withdrawn_earnings': total_for(statuses.WITHDRAWN),
            'on_hold_earnings': total_for(statuses.ON_HOLD),
            'earnings_count': {s: count_for(s) for s in statuses.values},
            'pending_withdrawals': WithdrawalRequest.objects.filter(
                status__in=WithdrawalRequest.RESERVING_STATUSES,
            ).aggregate(total=Sum('amount'))['total'] or Decimal('0.00'),
            'completed_withdrawals': WithdrawalRequest.objects.filter(
                status=WithdrawalRequest.RequestStatus.COMPLETED,
            ).aggregate(total=Sum('amount'))['total'] or Decimal('0.00'),
            'artists_with_earnings': ArtistEarning.objects.values('artist').distinct().count(),
        }

    @staticmethod
    def get_recent_activity(limit=20):
        return ArtistEarning.objects.select_related('artist').order_by('-updated_at')[:limit]

    @staticmethod
    def get_maintenance_log(limit=50):
        return EarningsMaintenanceLog.objects.order_by('-executed_at')[:limit]
