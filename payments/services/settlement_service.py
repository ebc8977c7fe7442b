import logging
from datetime import timedelta
from decimal import Decimal
from django.db import DatabaseError, transaction as db_transaction
from django.utils import timezone

from payments.models import WithdrawalRequest, WithdrawalTransaction
from payments.exceptions import InvalidTransition, WithdrawalNotFound
from payments.gateways import get_payment_gateway
from payments.services.audit_service import PaymentAuditService
from payments.services.balance_service import BalanceService
from payments.services.ledger_service import EarningsLedger
from payments.utils import format_amount, ledger_setting

logger = logging.getLogger(__name__)


GENERIC_FAILURE_REASON = "Withdrawal processing failed"
INTERRUPTED_FAILURE_REASON = "Settlement interrupted before transfer was confirmed"

# An approved request younger than this may still have a settlement in flight
STUCK_AFTER = timedelta(minutes=30)

Status = WithdrawalRequest.RequestStatus
TxStatus = WithdrawalTransaction.TransactionStatus


class SettlementService:
    @staticmethod
    def settle(withdrawal_id, gateway=None):
        """
        Pays out an approved withdrawal and brings the ledger in line.

        Gateway failures and unexpected errors never propagate: the request
        ends up ``failed`` (or stays ``completed`` if the transfer already
        went through) and the refreshed request is returned.
        """
        try:
            withdrawal = WithdrawalRequest.objects.select_related('artist').get(id=withdrawal_id)
        except WithdrawalRequest.DoesNotExist:
            raise WithdrawalNotFound()
        if withdrawal.status != Status.APPROVED:
            raise InvalidTransition("Withdrawal request is not approved")

        transaction = None
        try:
            gateway = gateway or get_payment_gateway()
            transaction = WithdrawalTransaction.objects.create(
                withdrawal=withdrawal,
                transaction_type=WithdrawalTransaction.TransactionType.MPESA_TRANSFER,
                amount=withdrawal.amount,
                currency=ledger_setting('WITHDRAWAL_CURRENCY'),
                fees=Decimal('0.00'),
                net_amount=withdrawal.amount,
                status=TxStatus.PENDING,
            )

            # No DB transaction is held open across the network call
            result = gateway.initiate_transfer(
                amount=withdrawal.amount,
                phone=withdrawal.mpesa_phone,
                reference=withdrawal.reference,
                description=f"Withdrawal payment - {format_amount(withdrawal.amount)}",
            )

            if result.get('success'):
                external_id = result.get('transaction_id') or ''
                # Recorded before completion so reconciliation can find the transfer after a crash
                WithdrawalTransaction.objects.filter(id=transaction.id).update(
                    status=TxStatus.PROCESSING,
                    external_transaction_id=external_id,
                    updated_at=timezone.now(),
                )
                SettlementService._complete(withdrawal, transaction, external_id, result)
            else:
                SettlementService._fail(withdrawal, transaction, result.get('message'), result.get('raw_response') or result)
        except Exception:
            logger.exception(f"Settlement of withdrawal {withdrawal_id} failed unexpectedly")
            SettlementService._force_failed(withdrawal_id, transaction)

        withdrawal.refresh_from_db()
        return withdrawal

    @staticmethod
    def _complete(withdrawal, transaction, external_id, provider_response):
        now = timezone.now()
        with db_transaction.atomic():
            updated = WithdrawalRequest.objects.filter(
                id=withdrawal.id,
                status=Status.APPROVED,
            ).update(
                status=Status.COMPLETED,
                completed_at=now,
                transaction_id=external_id,
                updated_at=now,
            )
            if not updated:
                raise InvalidTransition("Withdrawal request is no longer approved")
            WithdrawalTransaction.objects.filter(id=transaction.id).update(
                status=TxStatus.COMPLETED,
                external_transaction_id=external_id,
                processed_at=now,
                provider_response=provider_response,
                updated_at=now,
            )
            PaymentAuditService.audit(
                None,
                'withdrawal_settled',
                withdrawal.amount,
                target_id=withdrawal.id,
                description=f"Paid {format_amount(withdrawal.amount)} to {withdrawal.mpesa_phone} ({external_id})",
            )
        logger.info(f"Withdrawal {withdrawal.id} completed, gateway transaction {external_id}")

        EarningsLedger.consume(withdrawal.artist, withdrawal.amount, withdrawal, now=now)

    @staticmethod
    def _fail(withdrawal, transaction, message, provider_response):
        now = timezone.now()
        reason = message or "Payment failed"
        with db_transaction.atomic():
            WithdrawalRequest.objects.filter(
                id=withdrawal.id,
                status=Status.APPROVED,
            ).update(
                status=Status.FAILED,
                failure_reason=reason,
                updated_at=now,
            )
            WithdrawalTransaction.objects.filter(id=transaction.id).update(
                status=TxStatus.FAILED,
                provider_response=provider_response,
                processed_at=now,
                updated_at=now,
            )
            PaymentAuditService.audit(
                None,
                'withdrawal_settlement_failed',
                withdrawal.amount,
                target_id=withdrawal.id,
                description=f"Transfer for withdrawal {withdrawal.reference} failed: {reason}",
            )
        logger.warning(f"Withdrawal {withdrawal.id} failed at the gateway: {reason}")

    @staticmethod
    def _force_failed(withdrawal_id, transaction, reason=GENERIC_FAILURE_REASON):
        # Only an approved request may be failed here; a completed one stays completed
        now = timezone.now()
        try:
            WithdrawalRequest.objects.filter(
                id=withdrawal_id,
                status=Status.APPROVED,
            ).update(
                status=Status.FAILED,
                failure_reason=reason,
                updated_at=now,
            )
            if transaction is not None:
                WithdrawalTransaction.objects.filter(
                    id=transaction.id,
                    status=TxStatus.PENDING,
                ).update(
                    status=TxStatus.FAILED,
                    processed_at=now,
                    updated_at=now,
                )
        except DatabaseError:
            logger.exception(f"Could not mark withdrawal {withdrawal_id} as failed")

    @staticmethod
    def reconcile(withdrawal_id, gateway=None, older_than=STUCK_AFTER, now=None):
        """
        Drives a withdrawal left behind by an interrupted settlement to a
        consistent state.

        - approved with an acknowledged transfer: ask the gateway and
          complete or fail accordingly
        - approved with no acknowledged transfer: fail it
        - completed with earnings not fully consumed: replay consumption

        Approved requests reviewed less than ``older_than`` ago are left
        alone, since their settlement may still be waiting on the gateway.
        """
        now = now or timezone.now()
        try:
            withdrawal = WithdrawalRequest.objects.select_related('artist').get(id=withdrawal_id)
        except WithdrawalRequest.DoesNotExist:
            raise WithdrawalNotFound()

        if withdrawal.status == Status.COMPLETED:
            outstanding = withdrawal.amount - EarningsLedger.consumed_amount(withdrawal)
            if outstanding > 0:
                logger.info(f"Replaying consumption of {outstanding} for withdrawal {withdrawal.id}")
                EarningsLedger.consume(withdrawal.artist, withdrawal.amount, withdrawal)
            return withdrawal

        if withdrawal.status != Status.APPROVED:
            return withdrawal

        if withdrawal.reviewed_at and withdrawal.reviewed_at > now - older_than:
            logger.info(f"Withdrawal {withdrawal.id} was approved recently, leaving it to the running settlement")
            return withdrawal

        transaction = withdrawal.transactions.order_by('-created_at').first()
        if transaction is None or not transaction.external_transaction_id:
            logger.warning(f"Withdrawal {withdrawal.id} has no confirmed transfer, marking failed")
            SettlementService._force_failed(withdrawal.id, transaction, reason=INTERRUPTED_FAILURE_REASON)
            withdrawal.refresh_from_db()
            return withdrawal

        gateway = gateway or get_payment_gateway()
        status_result = gateway.check_status(transaction.external_transaction_id)
        state = status_result.get('status')

        if state == 'completed':
            SettlementService._complete(withdrawal, transaction, transaction.external_transaction_id, status_result)
        elif state in ('failed', 'cancelled'):
            SettlementService._fail(withdrawal, transaction, status_result.get('failure_reason'), status_result)
        else:
            logger.info(f"Transfer {transaction.external_transaction_id} for withdrawal {withdrawal.id} is still {state}")

        withdrawal.refresh_from_db()
        return withdrawal

    @staticmethod
    def get_unconsumed_completed_withdrawals():
        return BalanceService.unconsumed_completed_withdrawals()

    @staticmethod
    def reconcile_stuck_withdrawals(older_than=STUCK_AFTER, gateway=None, now=None):
        now = now or timezone.now()
        cutoff = now - older_than
        stuck_ids = list(
            WithdrawalRequest.objects.filter(
                status=Status.APPROVED,
                reviewed_at__lte=cutoff,
            ).values_list('id', flat=True)
        )
        unconsumed_ids = list(
            SettlementService.get_unconsumed_completed_withdrawals().values_list('id', flat=True)
        )

        results = {}
        for withdrawal_id in stuck_ids + unconsumed_ids:
            try:
                withdrawal = SettlementService.reconcile(withdrawal_id, gateway=gateway, older_than=older_than, now=now)
                results[str(withdrawal_id)] = withdrawal.status
            except Exception:
                logger.exception(f"Reconciliation of withdrawal {withdrawal_id} failed")
                results[str(withdrawal_id)] = 'error'
        return results
