from django.contrib import admin
from django.contrib import messages
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.admin.helpers import ACTION_CHECKBOX_NAME
from django.shortcuts import render, redirect
from django.utils.html import format_html
from django.utils.translation import ngettext

from payments.forms.admin_form import RejectWithdrawalForm
from payments.services import WithdrawalService, EarningService, SettlementService
from payments.models import (
    ArtistEarning,
    EarningsMaintenanceLog,
    WithdrawalRequest,
    WithdrawalTransaction,
    AuditLog,
)
from users.forms import LedgerUserCreationForm
from users.models import User, ArtistProfile


ADMIN_REJECTION_REASON = "Rejected by administrator"

STATUS_COLORS = {
    'pending': '#f0ad4e',
    'approved': '#5bc0de',
    'available': '#5cb85c',
    'completed': '#5cb85c',
    'withdrawn': '#777777',
    'rejected': '#d9534f',
    'failed': '#d9534f',
    'on_hold': '#f0ad4e',
}


def status_badge(status, label):
    return format_html(
        '<span style="background:{};color:#fff;padding:2px 8px;border-radius:8px;">{}</span>',
        STATUS_COLORS.get(status, '#999999'),
        label,
    )


class LedgerAdminSite(admin.AdminSite):
    site_header = "Artist Ledger Admin"
    site_title = "Artist Ledger Admin Portal"
    index_title = "Earnings & Withdrawals"


admin_site = LedgerAdminSite(name='ledger_admin')


class ArtistProfileInline(admin.StackedInline):
    model = ArtistProfile
    extra = 0
    readonly_fields = ('total_earnings', 'created_at', 'updated_at')


class UserAdmin(BaseUserAdmin):
    add_form = LedgerUserCreationForm
    fieldsets = (
        (None, {'fields': ('username', 'password')}),
        (('Personal info'), {'fields': ('full_name', 'first_name', 'last_name', 'email', 'phone_number', 'user_type')}),
        (('Permissions'), {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
        }),
        (('Important dates'), {'fields': ('last_login', 'date_joined')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('phone_number', 'username', 'user_type', 'password1', 'password2'),
        }),
    )
    list_display = ('username', 'phone_number', 'user_type', 'is_staff', 'is_active')
    search_fields = ('username', 'full_name', 'email', 'phone_number')
    list_filter = ('is_staff', 'is_superuser', 'is_active', 'user_type')
    ordering = ('-date_joined',)
    readonly_fields = ('last_login', 'date_joined')
    inlines = [ArtistProfileInline]
    actions = ['activate_users', 'deactivate_users']

    def activate_users(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f"{updated} users activated.")

    def deactivate_users(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f"{updated} users deactivated.")

admin_site.register(User, UserAdmin)


class ArtistProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'total_earnings', 'completed_orders', 'rating', 'is_verified')
    list_filter = ('is_verified',)
    search_fields = ('user__username', 'user__full_name', 'user__phone_number')
    readonly_fields = ('total_earnings', 'created_at', 'updated_at')
    list_select_related = ('user',)

admin_site.register(ArtistProfile, ArtistProfileAdmin)


class ArtistEarningAdmin(admin.ModelAdmin):
    list_display = ('id', 'artist', 'earning_type', 'gross_amount', 'platform_fee', 'net_amount', 'status_badge', 'available_for_withdrawal_at', 'created_at')
    list_filter = ('status', 'earning_type', 'available_for_withdrawal_at')
    search_fields = ('artist__username', 'order_reference', 'product_reference')
    readonly_fields = ('id', 'withdrawal', 'withdrawn_at', 'created_at', 'updated_at')
    list_select_related = ('artist',)
    ordering = ['created_at']
    actions = ['release_matured_earnings']

    def status_badge(self, obj):
        return status_badge(obj.status, obj.get_status_display())
    status_badge.short_description = 'Status'

    @admin.action(description='Release all matured pending earnings')
    def release_matured_earnings(self, request, queryset):
        result = EarningService.release_matured_earnings(triggered_by=f'admin:{request.user.username}')
        self.message_user(
            request,
            ngettext(
                'Released %(count)d earning for %(artists)d artists.',
                'Released %(count)d earnings for %(artists)d artists.',
                result['pending_updated'],
            ) % {'count': result['pending_updated'], 'artists': result['artists_affected']},
            messages.SUCCESS,
        )

admin_site.register(ArtistEarning, ArtistEarningAdmin)


class WithdrawalTransactionInline(admin.TabularInline):
    model = WithdrawalTransaction
    extra = 0
    can_delete = False
    readonly_fields = ('transaction_type', 'external_transaction_id', 'amount', 'currency', 'fees', 'net_amount', 'status', 'processed_at', 'created_at')
    fields = readonly_fields

    def has_add_permission(self, request, obj=None):
        return False


class WithdrawalRequestAdmin(admin.ModelAdmin):
    list_display = ('id', 'artist', 'amount', 'mpesa_phone', 'status_badge', 'requested_at', 'reviewed_at', 'completed_at')
    list_filter = ('status', 'requested_at', 'reviewed_at', 'completed_at')
    search_fields = ('artist__username', 'mpesa_phone', 'transaction_id')
    readonly_fields = (
        'id', 'artist', 'amount', 'mpesa_phone', 'status', 'request_notes', 'requested_at',
        'reviewed_by', 'reviewed_at', 'completed_at', 'transaction_id', 'failure_reason',
    )
    list_select_related = ('artist',)
    ordering = ['requested_at']
    inlines = [WithdrawalTransactionInline]
    actions = ['approve_withdrawals', 'reject_withdrawals', 'reconcile_withdrawals']

    def status_badge(self, obj):
        return status_badge(obj.status, obj.get_status_display())
    status_badge.short_description = 'Status'

    def approve_withdrawals(self, request, queryset):
        approved_count = 0
        for withdrawal in queryset.filter(status=WithdrawalRequest.RequestStatus.PENDING):
            try:
                result = WithdrawalService.approve_withdrawal(withdrawal.id, request.user)
                approved_count += 1
                if result.status == WithdrawalRequest.RequestStatus.FAILED:
                    self.message_user(request, f"Payout for {withdrawal.id} failed: {result.failure_reason}", level=messages.WARNING)
            except ValueError as e:
                self.message_user(request, f"Failed to approve {withdrawal.id}: {e}", level=messages.ERROR)
        if approved_count > 0:
            self.message_user(request, f"Approved {approved_count} withdrawal requests.", level=messages.SUCCESS)
        else:
            self.message_user(request, "No pending withdrawals to approve.", level=messages.WARNING)

    approve_withdrawals.short_description = "Approve and pay out selected pending withdrawals"

    def reject_withdrawals(self, request, queryset):
        pending = queryset.filter(status=WithdrawalRequest.RequestStatus.PENDING)

        if 'apply' in request.POST:
            form = RejectWithdrawalForm(request.POST)
            if form.is_valid():
                reason = form.cleaned_data['rejection_reason'].strip() or ADMIN_REJECTION_REASON
                rejected_count = 0
                for withdrawal in pending:
                    try:
                        WithdrawalService.reject_withdrawal(withdrawal.id, request.user, reason)
                        rejected_count += 1
                    except ValueError as e:
                        self.message_user(request, f"Failed to reject {withdrawal.id}: {e}", level=messages.ERROR)
                if rejected_count > 0:
                    self.message_user(request, f"Rejected {rejected_count} withdrawal requests.", level=messages.SUCCESS)
                else:
                    self.message_user(request, "No pending withdrawals to reject.", level=messages.WARNING)
                return redirect(request.get_full_path())
        else:
            form = RejectWithdrawalForm(initial={
                '_selected_action': request.POST.getlist(ACTION_CHECKBOX_NAME)
            })

        return render(request, 'admin/payments/reject_withdrawals.html', {
            **self.admin_site.each_context(request),
            'form': form,
            'withdrawals': pending,
            'title': 'Reject Selected Withdrawals',
        })

    reject_withdrawals.short_description = "Reject selected pending withdrawals"

    def reconcile_withdrawals(self, request, queryset):
        reconciled = 0
        for withdrawal in queryset.filter(status__in=[WithdrawalRequest.RequestStatus.APPROVED, WithdrawalRequest.RequestStatus.COMPLETED]):
            try:
                SettlementService.reconcile(withdrawal.id)
                reconciled += 1
            except ValueError as e:
                self.message_user(request, f"Failed to reconcile {withdrawal.id}: {e}", level=messages.ERROR)
        self.message_user(request, f"Reconciled {reconciled} withdrawal requests.", level=messages.SUCCESS)

    reconcile_withdrawals.short_description = "Reconcile selected approved or completed withdrawals"

admin_site.register(WithdrawalRequest, WithdrawalRequestAdmin)


class WithdrawalTransactionAdmin(admin.ModelAdmin):
    list_display = ('id', 'withdrawal', 'transaction_type', 'amount', 'currency', 'status', 'external_transaction_id', 'processed_at')
    list_filter = ('status', 'transaction_type', 'processed_at')
    search_fields = ('external_transaction_id', 'withdrawal__id')
    readonly_fields = ('id', 'withdrawal', 'provider_response', 'created_at', 'updated_at')
    list_select_related = ('withdrawal',)

admin_site.register(WithdrawalTransaction, WithdrawalTransactionAdmin)


class EarningsMaintenanceLogAdmin(admin.ModelAdmin):
    list_display = ('executed_at', 'pending_updated', 'artists_affected', 'total_amount_released', 'triggered_by')
    list_filter = ('triggered_by',)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

admin_site.register(EarningsMaintenanceLog, EarningsMaintenanceLogAdmin)


class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('action_type', 'target_type', 'target_id', 'timestamp')
    list_filter = ('action_type', 'target_type', 'timestamp')
    search_fields = ('user__username', 'target_id', 'description')
    readonly_fields = ('timestamp',)
    list_select_related = ('user',)

admin_site.register(AuditLog, AuditLogAdmin)
