from rest_framework import serializers
from payments.models import (
    ArtistEarning,
    EarningsMaintenanceLog,
    WithdrawalRequest,
    WithdrawalTransaction,
)


class WithdrawalSummarySerializer(serializers.Serializer):
    available_balance = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=True)
    pending_withdrawals = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=True)
    total_withdrawn = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=True)
    minimum_withdrawal = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=True)
    next_available_date = serializers.DateTimeField(allow_null=True)


class WithdrawalCreateSerializer(serializers.Serializer):
    # Business rules (minimum, balance, phone format) are checked by WithdrawalService
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    mpesa_phone = serializers.CharField(max_length=32)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class WithdrawalTransactionSerializer(serializers.ModelSerializer):
    type_display = serializers.CharField(source='get_transaction_type_display', read_only=True)

    class Meta:
        model = WithdrawalTransaction
        fields = [
            'id', 'transaction_type', 'type_display', 'external_transaction_id',
            'amount', 'currency', 'fees', 'net_amount', 'status', 'processed_at', 'created_at',
        ]


class WithdrawalRequestSerializer(serializers.ModelSerializer):
    reference = serializers.CharField(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    transactions = WithdrawalTransactionSerializer(many=True, read_only=True)

    class Meta:
        model = WithdrawalRequest
        fields = [
            'id', 'reference', 'amount', 'mpesa_phone', 'status', 'status_display',
            'request_notes', 'admin_notes', 'requested_at', 'reviewed_at', 'completed_at',
            'transaction_id', 'failure_reason', 'transactions',
        ]


class AdminWithdrawalSerializer(serializers.ModelSerializer):
    artist_id = serializers.IntegerField(source='artist.id', read_only=True)
    artist_name = serializers.CharField(source='artist.display_name', read_only=True)
    artist_phone = serializers.CharField(source='artist.phone_number', read_only=True)

    class Meta:
        model = WithdrawalRequest
        fields = [
            'id', 'artist_id', 'artist_name', 'artist_phone', 'amount', 'mpesa_phone',
            'status', 'request_notes', 'requested_at',
        ]


class ApproveWithdrawalSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class RejectWithdrawalSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=1000)


class ArtistEarningSerializer(serializers.ModelSerializer):
    earning_type_display = serializers.CharField(source='get_earning_type_display', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    withdrawal_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = ArtistEarning
        fields = [
            'id', 'order_reference', 'product_reference', 'earning_type', 'earning_type_display',
            'gross_amount', 'platform_fee', 'net_amount', 'status', 'status_display',
            'available_for_withdrawal_at', 'withdrawn_at', 'withdrawal_id', 'created_at',
        ]


class EarningActivitySerializer(ArtistEarningSerializer):
    artist_name = serializers.CharField(source='artist.display_name', read_only=True)

    class Meta(ArtistEarningSerializer.Meta):
        fields = ArtistEarningSerializer.Meta.fields + ['artist_name', 'updated_at']


class EarningsMaintenanceLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = EarningsMaintenanceLog
        fields = ['executed_at', 'pending_updated', 'artists_affected', 'total_amount_released', 'triggered_by']
