class WithdrawalError(ValueError):
    """Base class for ledger errors. The message is what the artist or admin sees."""
    default_message = "Withdrawal could not be processed"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class BelowMinimum(WithdrawalError):
    default_message = "Withdrawal amount is below the minimum"


class InsufficientBalance(WithdrawalError):
    default_message = "Insufficient balance"


class InvalidPhone(WithdrawalError):
    default_message = "Invalid M-Pesa phone number format"


class PersistenceFailure(WithdrawalError):
    default_message = "Failed to save withdrawal request"


class InvalidTransition(WithdrawalError):
    default_message = "Withdrawal request is not pending"


class WithdrawalNotFound(WithdrawalError):
    default_message = "Withdrawal not found"
