from .withdrawals import WithdrawalRequest, WithdrawalTransaction
from .earnings import ArtistEarning, EarningsMaintenanceLog
from .audit import AuditLog

__all__ = [
    'WithdrawalRequest',
    'WithdrawalTransaction',
    'ArtistEarning',
    'EarningsMaintenanceLog',
    'AuditLog',
]
