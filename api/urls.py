from django.urls import path
from api.views.withdrawals import (
    WithdrawalSummaryAPIView,
    WithdrawalRequestAPIView,
    WithdrawalHistoryAPIView,
    AdminPendingWithdrawalsAPIView,
    AdminApproveWithdrawalAPIView,
    AdminRejectWithdrawalAPIView,
)
from api.views.earnings import (
    ArtistEarningListAPIView,
    EarningsMaintenanceAPIView,
    EarningsStatisticsAPIView,
)


urlpatterns = [

    # Artist withdrawals
    path('withdrawals/summary/', WithdrawalSummaryAPIView.as_view(), name='api_withdrawal_summary'),
    path('withdrawals/request/', WithdrawalRequestAPIView.as_view(), name='api_withdrawal_request'),
    path('withdrawals/history/', WithdrawalHistoryAPIView.as_view(), name='api_withdrawal_history'),

    # Earnings
    path('earnings/', ArtistEarningListAPIView.as_view(), name='api_earnings'),
    path('earnings/statistics/', EarningsStatisticsAPIView.as_view(), name='api_earnings_statistics'),

    # Cron endpoint protected with header
    path('earnings/maintenance/', EarningsMaintenanceAPIView.as_view(), name='api_earnings_maintenance'),

    # Admin review
    path('admin/withdrawals/pending/', AdminPendingWithdrawalsAPIView.as_view(), name='api_admin_pending_withdrawals'),
    path('admin/withdrawals/<uuid:pk>/approve/', AdminApproveWithdrawalAPIView.as_view(), name='api_admin_approve_withdrawal'),
    path('admin/withdrawals/<uuid:pk>/reject/', AdminRejectWithdrawalAPIView.as_view(), name='api_admin_reject_withdrawal'),
]
