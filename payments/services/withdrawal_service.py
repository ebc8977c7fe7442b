import logging
from django.db import DatabaseError, transaction as db_transaction
from django.utils import timezone

from users.models import ArtistProfile
from payments.models import WithdrawalRequest
from payments.exceptions import (
    BelowMinimum,
    InsufficientBalance,
    InvalidPhone,
    InvalidTransition,
    PersistenceFailure,
    WithdrawalError,
    WithdrawalNotFound,
)
from payments.services.audit_service import PaymentAuditService
from payments.services.balance_service import BalanceService
from payments.services.settlement_service import SettlementService
from payments.utils import (
    format_amount,
    minimum_withdrawal,
    normalize_mpesa_phone,
    quantize_amount,
)

logger = logging.getLogger(__name__)


class WithdrawalService:
    @staticmethod
    def create_withdrawal_request(artist, amount, mpesa_phone, notes=None):
        amount = quantize_amount(amount)
        minimum = minimum_withdrawal()
        if amount < minimum:
            raise BelowMinimum(f"Minimum withdrawal amount is {format_amount(minimum)}")

        try:
            with db_transaction.atomic():
                ArtistProfile.objects.get_or_create(user=artist)
                ArtistProfile.objects.select_for_update().get(user=artist)

                spendable = BalanceService.get_spendable_balance(artist)
                if amount > spendable:
                    raise InsufficientBalance(f"Insufficient balance. Available: {format_amount(spendable)}")

                phone = normalize_mpesa_phone(mpesa_phone)
                if phone is None:
                    raise InvalidPhone()

                withdrawal_request = WithdrawalRequest.objects.create(
                    artist=artist,
                    amount=amount,
                    mpesa_phone=phone,
                    request_notes=notes or '',
                    status=WithdrawalRequest.RequestStatus.PENDING,
                )
                PaymentAuditService.audit(
                    artist,
                    'withdrawal_request_created',
                    amount,
                    target_id=withdrawal_request.id,
                    description=f"Artist requested withdrawal of {amount}",
                )
        except DatabaseError as e:
            logger.error(f"Failed to save withdrawal request for artist {artist.pk}: {e}")
            raise PersistenceFailure()

        logger.info(f"Withdrawal request {withdrawal_request.id} created for artist {artist.pk}: {amount}")
        return withdrawal_request

    @staticmethod
    def get_withdrawal_history(artist, limit=20):
        return (
            WithdrawalRequest.objects.filter(artist=artist)
            .prefetch_related('transactions')
            .order_by('-requested_at')[:limit]
        )

    @staticmethod
    def get_pending_withdrawals():
        return (
            WithdrawalRequest.objects.filter(status=WithdrawalRequest.RequestStatus.PENDING)
            .select_related('artist')
            .order_by('requested_at')
        )

    @staticmethod
    def approve_withdrawal(withdrawal_id, admin_user, notes=None, gateway=None):
        """Moves a pending request to approved and settles it right away."""
        now = timezone.now()
        updated = WithdrawalRequest.objects.filter(
            id=withdrawal_id,
            status=WithdrawalRequest.RequestStatus.PENDING,
        ).update(
            status=WithdrawalRequest.RequestStatus.APPROVED,
            reviewed_by=admin_user,
            reviewed_at=now,
            admin_notes=notes or '',
            updated_at=now,
        )
        if not updated:
            WithdrawalService._raise_transition_error(withdrawal_id)

        PaymentAuditService.audit(
            admin_user,
            'withdrawal_request_approved',
            None,
            target_id=withdrawal_id,
            description=f"Admin approved withdrawal {withdrawal_id}",
        )
        logger.info(f"Withdrawal {withdrawal_id} approved by {admin_user}")
        return SettlementService.settle(withdrawal_id, gateway=gateway)

    @staticmethod
    def reject_withdrawal(withdrawal_id, admin_user, reason):
        reason = (reason or '').strip()
        if not reason:
            raise WithdrawalError("A rejection reason is required")

        now = timezone.now()
        updated = WithdrawalRequest.objects.filter(
            id=withdrawal_id,
            status=WithdrawalRequest.RequestStatus.PENDING,
        ).update(
            status=WithdrawalRequest.RequestStatus.REJECTED,
            reviewed_by=admin_user,
            reviewed_at=now,
            admin_notes=reason,
            failure_reason=reason,
            updated_at=now,
        )
        if not updated:
            WithdrawalService._raise_transition_error(withdrawal_id)

        PaymentAuditService.audit(
            admin_user,
            'withdrawal_request_rejected',
            None,
            target_id=withdrawal_id,
            description=f"Admin rejected withdrawal {withdrawal_id}: {reason}",
        )
        logger.info(f"Withdrawal {withdrawal_id} rejected by {admin_user}")
        return WithdrawalRequest.objects.get(id=withdrawal_id)

    @staticmethod
    def _raise_transition_error(withdrawal_id):
        if not WithdrawalRequest.objects.filter(id=withdrawal_id).exists():
            raise WithdrawalNotFound()
        raise InvalidTransition()
