import uuid
from payments.models import AuditLog


class PaymentAuditService:
    @staticmethod
    def audit(user, action_type, amount, target_type='WithdrawalRequest', target_id=None, description=None):
        return AuditLog.objects.create(
            user=user,
            action_type=action_type,
            target_type=target_type,
            target_id=str(target_id) if target_id else str(uuid.uuid4()),
            description=description or f'{action_type} of {amount}',
        )
