from .audit_service import PaymentAuditService
from .balance_service import BalanceService
from .ledger_service import EarningsLedger
from .settlement_service import SettlementService
from .withdrawal_service import WithdrawalService
from .earnings_service import EarningService

__all__ = [
    'PaymentAuditService',
    'BalanceService',
    'EarningsLedger',
    'SettlementService',
    'WithdrawalService',
    'EarningService',
]
