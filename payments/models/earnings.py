import uuid
from django.db import models
from django.conf import settings
from django.core.exceptions import ValidationError
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class ArtistEarning(models.Model):
    class EarningType(models.TextChoices):
        SALE = 'sale', 'Sale'
        COMMISSION = 'commission', 'Commission'
        BONUS = 'bonus', 'Bonus'
        REFUND = 'refund', 'Refund'

    class EarningStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        AVAILABLE = 'available', 'Available'
        WITHDRAWN = 'withdrawn', 'Withdrawn'
        ON_HOLD = 'on_hold', 'On Hold'

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False)
    artist = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='earnings')
    order_reference = models.CharField(max_length=100, blank=True, default='')
    product_reference = models.CharField(max_length=100, blank=True, default='')
    earning_type = models.CharField(
        max_length=20,
        choices=EarningType.choices,
        default=EarningType.SALE)
    gross_amount = models.DecimalField(max_digits=12, decimal_places=2)
    platform_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    net_amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(
        max_length=20,
        choices=EarningStatus.choices,
        default=EarningStatus.PENDING)
    available_for_withdrawal_at = models.DateTimeField(null=True, blank=True)
    withdrawn_at = models.DateTimeField(null=True, blank=True)
    withdrawal = models.ForeignKey(
        'payments.WithdrawalRequest',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='earnings')
    # Not auto_now_add: a split remainder keeps the original's FIFO position
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at']
        verbose_name = _('Artist Earning')
        verbose_name_plural = _('Artist Earnings')
        indexes = [
            models.Index(fields=['artist', 'status', 'available_for_withdrawal_at'], name='payments_ae_artist_avail_idx'),
            models.Index(fields=['status', 'available_for_withdrawal_at'], name='payments_ae_status_avail_idx'),
        ]

    def __str__(self):
        return f"{self.get_earning_type_display()} earning {self.net_amount} for {self.artist} ({self.status})"

    def clean(self):
        for field in ('gross_amount', 'platform_fee', 'net_amount'):
            if getattr(self, field) is not None and getattr(self, field) < 0:
                raise ValidationError({field: "Amount cannot be negative"})
        if self.gross_amount is not None and self.platform_fee is not None and self.net_amount is not None:
            if self.net_amount != self.gross_amount - self.platform_fee:
                raise ValidationError("Net amount must equal gross amount minus platform fee")


class EarningsMaintenanceLog(models.Model):
    executed_at = models.DateTimeField(default=timezone.now)
    pending_updated = models.PositiveIntegerField(default=0)
    artists_affected = models.PositiveIntegerField(default=0)
    total_amount_released = models.DecimalField(max_digits=14, decimal_places=2, default=0)
    triggered_by = models.CharField(max_length=50, default='scheduler')

    class Meta:
        ordering = ['-executed_at']
        verbose_name = _('Earnings Maintenance Run')
        verbose_name_plural = _('Earnings Maintenance Runs')

    def __str__(self):
        return f"Released {self.pending_updated} earnings at {self.executed_at:%Y-%m-%d %H:%M}"
