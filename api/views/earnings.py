import logging
from decimal import Decimal
from django.conf import settings
from django.utils import timezone
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, status, permissions
from rest_framework.views import APIView
from rest_framework.response import Response

from payments.models import ArtistEarning
from payments.services import EarningService
from api.permissions.payments import IsArtistUser, IsLedgerAdmin
from api.serializers.payments import (
    ArtistEarningSerializer,
    EarningActivitySerializer,
    EarningsMaintenanceLogSerializer,
)

logger = logging.getLogger(__name__)

MAINTENANCE_KEY_HEADER = "X-API-Key"


class ArtistEarningListAPIView(generics.ListAPIView):
    """
    The artist's own earning records, newest first. Filter with ?status= or ?earning_type=.
    """
    serializer_class = ArtistEarningSerializer
    permission_classes = [IsArtistUser]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['status', 'earning_type']

    def get_queryset(self):
        return ArtistEarning.objects.filter(artist=self.request.user).order_by('-created_at')


class EarningsMaintenanceAPIView(APIView):
    permission_classes = [permissions.AllowAny]

    def _authorized(self, request):
        expected = getattr(settings, 'MAINTENANCE_API_KEY', '')
        if expected:
            provided = request.headers.get(MAINTENANCE_KEY_HEADER) or request.headers.get('Authorization')
            return provided == expected
        # No key configured: only administrators may trigger a run
        return request.user.is_authenticated and request.user.is_ledger_admin

    def post(self, request, *args, **kwargs):
        if not self._authorized(request):
            logger.warning("Earnings maintenance call rejected: invalid API key")
            return Response(
                {"error": "Unauthorized. Invalid API key."},
                status=status.HTTP_401_UNAUTHORIZED
            )

        result = EarningService.release_matured_earnings(triggered_by='api')
        return Response({
            'success': True,
            'result': {
                'pending_updated': result['pending_updated'],
                'artists_affected': result['artists_affected'],
                'total_amount_released': str(result['total_amount_released']),
                'execution_time': result['execution_time'],
            },
            'timestamp': timezone.now().isoformat(),
        }, status=status.HTTP_200_OK)


class EarningsStatisticsAPIView(APIView):
    permission_classes = [IsLedgerAdmin]

    def get(self, request):
        statistics = EarningService.get_earnings_statistics()
        needed, count = EarningService.is_maintenance_needed()

        data = {
            'success': True,
            'statistics': {
                key: str(value) if isinstance(value, Decimal) else value
                for key, value in statistics.items()
            },
            'maintenance_status': {
                'needed': needed,
                'pending_count': count,
            },
            'timestamp': timezone.now().isoformat(),
        }

        if request.query_params.get('include_activity') == 'true':
            try:
                limit = int(request.query_params.get('limit', 10))
            except ValueError:
                limit = 10
            activity = EarningService.get_recent_activity(limit=max(1, min(limit, 100)))
            data['recent_activity'] = EarningActivitySerializer(activity, many=True).data

        if request.query_params.get('include_log') == 'true':
            runs = EarningService.get_maintenance_log(limit=20)
            data['maintenance_log'] = EarningsMaintenanceLogSerializer(runs, many=True).data

        return Response(data, status=status.HTTP_200_OK)
