from decimal import Decimal
from django.db.models import DecimalField, F, Min, Q, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone
from payments.models import ArtistEarning, WithdrawalRequest
from payments.utils import minimum_withdrawal


class BalanceService:
    @staticmethod
    def withdrawable_earnings(artist, now=None):
        """Available earnings whose hold period has passed. A missing date means no hold."""
        now = now or timezone.now()
        return ArtistEarning.objects.filter(
            artist=artist,
            status=ArtistEarning.EarningStatus.AVAILABLE,
        ).filter(
            Q(available_for_withdrawal_at__lte=now) | Q(available_for_withdrawal_at__isnull=True)
        )

    @staticmethod
    def get_available_balance(artist, now=None):
        return BalanceService.withdrawable_earnings(artist, now).aggregate(
            total=Sum('net_amount')
        )['total'] or Decimal('0.00')

    @staticmethod
    def get_reserved_amount(artist):
        return WithdrawalRequest.objects.filter(
            artist=artist,
            status__in=WithdrawalRequest.RESERVING_STATUSES,
        ).aggregate(total=Sum('amount'))['total'] or Decimal('0.00')

    @staticmethod
    def unconsumed_completed_withdrawals(artist=None):
        """Completed requests whose payout is not yet fully matched by withdrawn earnings."""
        consumed = Coalesce(
            Sum('earnings__net_amount', filter=Q(earnings__status=ArtistEarning.EarningStatus.WITHDRAWN)),
            Value(Decimal('0.00')),
            output_field=DecimalField(max_digits=12, decimal_places=2),
        )
        withdrawals = WithdrawalRequest.objects.filter(status=WithdrawalRequest.RequestStatus.COMPLETED)
        if artist is not None:
            withdrawals = withdrawals.filter(artist=artist)
        return withdrawals.annotate(consumed=consumed).filter(consumed__lt=F('amount'))

    @staticmethod
    def get_unconsumed_paid_amount(artist):
        # Paid out but still counted in the available balance until consumption catches up
        return sum(
            (amount - consumed for amount, consumed in
             BalanceService.unconsumed_completed_withdrawals(artist).values_list('amount', 'consumed')),
            Decimal('0.00'),
        )

    @staticmethod
    def get_total_withdrawn(artist):
        return WithdrawalRequest.objects.filter(
            artist=artist,
            status=WithdrawalRequest.RequestStatus.COMPLETED,
        ).aggregate(total=Sum('amount'))['total'] or Decimal('0.00')

    @staticmethod
    def get_next_available_date(artist):
        return ArtistEarning.objects.filter(
            artist=artist,
            status=ArtistEarning.EarningStatus.PENDING,
        ).aggregate(next_date=Min('available_for_withdrawal_at'))['next_date']

    @staticmethod
    def get_spendable_balance(artist, now=None):
        """What a new request may still draw on once open and unsettled requests are set aside."""
        spendable = (
            BalanceService.get_available_balance(artist, now)
            - BalanceService.get_reserved_amount(artist)
            - BalanceService.get_unconsumed_paid_amount(artist)
        )
        return max(spendable, Decimal('0.00'))

    @staticmethod
    def get_withdrawal_summary(artist, now=None):
        """
        Returns the artist's withdrawal summary:
        - available_balance: net of available earnings past their hold date
        - pending_withdrawals: requests still pending or approved
        - total_withdrawn: completed requests
        - minimum_withdrawal: configured minimum
        - next_available_date: earliest release date of a pending earning, or None
        """
        return {
            'available_balance': BalanceService.get_available_balance(artist, now),
            'pending_withdrawals': BalanceService.get_reserved_amount(artist),
            'total_withdrawn': BalanceService.get_total_withdrawn(artist),
            'minimum_withdrawal': minimum_withdrawal(),
            'next_available_date': BalanceService.get_next_available_date(artist),
        }
