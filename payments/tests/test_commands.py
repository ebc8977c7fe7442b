from datetime import timedelta
from io import StringIO
from unittest.mock import patch
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone

from payments.models import ArtistEarning, EarningsMaintenanceLog, WithdrawalRequest
from payments.tests.helpers import make_admin, make_artist, make_earning


class TestReleaseMaturedEarningsCommand(TestCase):
    def setUp(self):
        self.artist = make_artist()

    def test_check_only_reports(self):
        make_earning(self.artist, '100.00', status=ArtistEarning.EarningStatus.PENDING,
                     available_at=timezone.now() - timedelta(hours=1))
        out = StringIO()

        call_command('release_matured_earnings', '--check', stdout=out)

        self.assertIn('1 pending earnings ready for release', out.getvalue())
        self.assertFalse(EarningsMaintenanceLog.objects.exists())

    def test_releases_matured_earnings(self):
        earning = make_earning(self.artist, '100.00', status=ArtistEarning.EarningStatus.PENDING,
                               available_at=timezone.now() - timedelta(hours=1))
        out = StringIO()

        call_command('release_matured_earnings', stdout=out)

        earning.refresh_from_db()
        self.assertEqual(earning.status, ArtistEarning.EarningStatus.AVAILABLE)
        self.assertIn('Released 1 earnings', out.getvalue())
        self.assertEqual(EarningsMaintenanceLog.objects.get().triggered_by, 'management_command')

    def test_nothing_to_release(self):
        out = StringIO()

        call_command('release_matured_earnings', stdout=out)

        self.assertIn('No pending earnings ready for release', out.getvalue())


class TestReconcileWithdrawalsCommand(TestCase):
    def test_nothing_to_reconcile(self):
        out = StringIO()

        call_command('reconcile_withdrawals', stdout=out)

        self.assertIn('Nothing to reconcile', out.getvalue())

    def test_stuck_request_without_transfer_is_failed(self):
        artist = make_artist()
        make_earning(artist, '5000.00')
        withdrawal = WithdrawalRequest.objects.create(
            artist=artist,
            amount='2000.00',
            mpesa_phone='+254712345678',
            status=WithdrawalRequest.RequestStatus.APPROVED,
            reviewed_by=make_admin(),
            reviewed_at=timezone.now() - timedelta(minutes=45),
        )
        out = StringIO()

        with patch('payments.services.settlement_service.get_payment_gateway') as mock_gateway:
            call_command('reconcile_withdrawals', '--minutes', '30', stdout=out)

        mock_gateway.assert_not_called()
        withdrawal.refresh_from_db()
        self.assertEqual(withdrawal.status, WithdrawalRequest.RequestStatus.FAILED)
        self.assertIn(f"{withdrawal.id}: failed", out.getvalue())
        self.assertIn('Reconciled 1 of 1 withdrawals', out.getvalue())
