import uuid
from django.db import models
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class WithdrawalRequest(models.Model):
    class RequestStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        APPROVED = 'approved', 'Approved'
        REJECTED = 'rejected', 'Rejected'
        COMPLETED = 'completed', 'Completed'
        FAILED = 'failed', 'Failed'

    TERMINAL_STATUSES = (
        RequestStatus.REJECTED,
        RequestStatus.COMPLETED,
        RequestStatus.FAILED,
    )
    # Requests that still hold a claim on the artist's available earnings
    RESERVING_STATUSES = (
        RequestStatus.PENDING,
        RequestStatus.APPROVED,
    )

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False)
    artist = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='withdrawal_requests')
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2)
    mpesa_phone = models.CharField(
        max_length=16,
        help_text="Normalized as +254XXXXXXXXX")
    status = models.CharField(
        max_length=20,
        choices=RequestStatus.choices,
        default=RequestStatus.PENDING)
    request_notes = models.TextField(blank=True, default='')
    admin_notes = models.TextField(blank=True, default='')
    requested_at = models.DateTimeField(default=timezone.now)
    reviewed_at = models.DateTimeField(null=True, blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_withdrawals')
    completed_at = models.DateTimeField(null=True, blank=True)
    transaction_id = models.CharField(max_length=100, blank=True, default='')
    failure_reason = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-requested_at']
        verbose_name = _('Withdrawal Request')
        verbose_name_plural = _('Withdrawal Requests')
        indexes = [
            models.Index(fields=['artist', 'status'], name='payments_wr_artist_status_idx'),
            models.Index(fields=['status', 'requested_at'], name='payments_wr_status_req_idx'),
        ]

    def __str__(self):
        return f"Withdrawal {self.id} for {self.artist}"

    @property
    def reference(self):
        return f"WD-{self.id}"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES


class WithdrawalTransaction(models.Model):
    """One external settlement attempt for a withdrawal request."""

    class TransactionType(models.TextChoices):
        MPESA_TRANSFER = 'mpesa_transfer', 'M-Pesa Transfer'
        BANK_TRANSFER = 'bank_transfer', 'Bank Transfer'
        MANUAL = 'manual', 'Manual'

    class TransactionStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PROCESSING = 'processing', 'Processing'
        COMPLETED = 'completed', 'Completed'
        FAILED = 'failed', 'Failed'
        CANCELLED = 'cancelled', 'Cancelled'

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False)
    withdrawal = models.ForeignKey(
        WithdrawalRequest,
        on_delete=models.CASCADE,
        related_name='transactions')
    transaction_type = models.CharField(
        max_length=20,
        choices=TransactionType.choices,
        default=TransactionType.MPESA_TRANSFER)
    external_transaction_id = models.CharField(max_length=100, blank=True, default='')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='KES')
    fees = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    net_amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(
        max_length=20,
        choices=TransactionStatus.choices,
        default=TransactionStatus.PENDING)
    provider_response = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    processed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = _('Withdrawal Transaction')
        verbose_name_plural = _('Withdrawal Transactions')

    def __str__(self):
        return f"{self.get_transaction_type_display()} {self.amount} {self.currency} ({self.status})"
