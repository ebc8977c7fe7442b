import logging
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response

from payments.exceptions import PersistenceFailure, WithdrawalError, WithdrawalNotFound
from payments.services import BalanceService, WithdrawalService
from api.permissions.payments import IsArtistUser, IsLedgerAdmin
from api.serializers.payments import (
    AdminWithdrawalSerializer,
    ApproveWithdrawalSerializer,
    RejectWithdrawalSerializer,
    WithdrawalCreateSerializer,
    WithdrawalRequestSerializer,
    WithdrawalSummarySerializer,
)

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 20
MAX_HISTORY_LIMIT = 100


def withdrawal_error_response(error):
    if isinstance(error, WithdrawalNotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, PersistenceFailure):
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        code = status.HTTP_400_BAD_REQUEST
    return Response({'error': str(error)}, status=code)


class WithdrawalSummaryAPIView(APIView):
    permission_classes = [IsArtistUser]

    def get(self, request):
        summary = BalanceService.get_withdrawal_summary(request.user)
        return Response(WithdrawalSummarySerializer(summary).data, status=status.HTTP_200_OK)


class WithdrawalRequestAPIView(APIView):
    permission_classes = [IsArtistUser]

    def post(self, request):
        serializer = WithdrawalCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        user = request.user
        try:
            withdrawal = WithdrawalService.create_withdrawal_request(
                artist=user,
                amount=serializer.validated_data['amount'],
                mpesa_phone=serializer.validated_data['mpesa_phone'],
                notes=serializer.validated_data.get('notes'),
            )
        except WithdrawalError as e:
            logger.info(f"Withdrawal request from {user} refused: {e}")
            return withdrawal_error_response(e)

        summary = BalanceService.get_withdrawal_summary(user)
        return Response({
            'message': 'Withdrawal request submitted',
            'withdrawal': WithdrawalRequestSerializer(withdrawal).data,
            'summary': WithdrawalSummarySerializer(summary).data,
        }, status=status.HTTP_201_CREATED)


class WithdrawalHistoryAPIView(APIView):
    permission_classes = [IsArtistUser]

    def get(self, request):
        try:
            limit = int(request.query_params.get('limit', DEFAULT_HISTORY_LIMIT))
        except (TypeError, ValueError):
            return Response({'error': 'limit must be an integer'}, status=status.HTTP_400_BAD_REQUEST)
        limit = max(1, min(limit, MAX_HISTORY_LIMIT))

        withdrawals = WithdrawalService.get_withdrawal_history(request.user, limit=limit)
        return Response(WithdrawalRequestSerializer(withdrawals, many=True).data, status=status.HTTP_200_OK)


class AdminPendingWithdrawalsAPIView(APIView):
    permission_classes = [IsLedgerAdmin]

    def get(self, request):
        withdrawals = WithdrawalService.get_pending_withdrawals()
        return Response(AdminWithdrawalSerializer(withdrawals, many=True).data, status=status.HTTP_200_OK)


class AdminApproveWithdrawalAPIView(APIView):
    permission_classes = [IsLedgerAdmin]

    def post(self, request, pk):
        serializer = ApproveWithdrawalSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            withdrawal = WithdrawalService.approve_withdrawal(
                pk,
                request.user,
                notes=serializer.validated_data.get('notes'),
            )
        except WithdrawalError as e:
            return withdrawal_error_response(e)

        # Settlement outcome is reported in the body; a failed payout is still a handled request
        return Response(WithdrawalRequestSerializer(withdrawal).data, status=status.HTTP_200_OK)


class AdminRejectWithdrawalAPIView(APIView):
    permission_classes = [IsLedgerAdmin]

    def post(self, request, pk):
        serializer = RejectWithdrawalSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            withdrawal = WithdrawalService.reject_withdrawal(pk, request.user, serializer.validated_data['reason'])
        except WithdrawalError as e:
            return withdrawal_error_response(e)
        return Response(WithdrawalRequestSerializer(withdrawal).data, status=status.HTTP_200_OK)
