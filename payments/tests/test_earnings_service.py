from datetime import timedelta
from decimal import Decimal
from django.test import TestCase, override_settings
from django.utils import timezone

from payments.models import ArtistEarning, AuditLog, EarningsMaintenanceLog, WithdrawalRequest
from payments.services import EarningService
from payments.tests.helpers import make_artist, make_earning
from users.models import ArtistProfile

EarningStatus = ArtistEarning.EarningStatus


class TestRecordEarning(TestCase):
    def setUp(self):
        self.artist = make_artist()

    def test_new_earning_is_pending_for_the_hold_period(self):
        now = timezone.now()
        earning = EarningService.record_earning(self.artist, '1000', order_reference='ORD-1', now=now)

        self.assertEqual(earning.status, EarningStatus.PENDING)
        self.assertEqual(earning.gross_amount, Decimal('1000.00'))
        self.assertEqual(earning.platform_fee, Decimal('50.00'))
        self.assertEqual(earning.net_amount, Decimal('950.00'))
        self.assertEqual(earning.available_for_withdrawal_at, now + timedelta(days=7))
        self.assertTrue(AuditLog.objects.filter(action_type='earning_recorded', target_id=str(earning.id)).exists())

    @override_settings(PLATFORM_FEE_RATE='0.10', WITHDRAWAL_HOLD_DAYS=3)
    def test_fee_and_hold_follow_settings(self):
        now = timezone.now()
        earning = EarningService.record_earning(self.artist, '250.00', now=now)

        self.assertEqual(earning.platform_fee, Decimal('25.00'))
        self.assertEqual(earning.net_amount, Decimal('225.00'))
        self.assertEqual(earning.available_for_withdrawal_at, now + timedelta(days=3))

    def test_negative_amount_is_refused(self):
        with self.assertRaises(ValueError):
            EarningService.record_earning(self.artist, '-5')
        self.assertFalse(ArtistEarning.objects.exists())


class TestReleaseMaturedEarnings(TestCase):
    def setUp(self):
        self.now = timezone.now()
        self.first = make_artist()
        self.second = make_artist()

    def test_only_matured_pending_earnings_are_released(self):
        matured = make_earning(self.first, '300.00', status=EarningStatus.PENDING, available_at=self.now - timedelta(hours=1))
        other = make_earning(self.second, '200.00', status=EarningStatus.PENDING, available_at=self.now - timedelta(days=1))
        waiting = make_earning(self.first, '900.00', status=EarningStatus.PENDING, available_at=self.now + timedelta(days=2))

        result = EarningService.release_matured_earnings(now=self.now, triggered_by='test')

        self.assertEqual(result['pending_updated'], 2)
        self.assertEqual(result['artists_affected'], 2)
        self.assertEqual(result['total_amount_released'], Decimal('500.00'))
        self.assertIsInstance(result['execution_time'], float)

        for earning in (matured, other, waiting):
            earning.refresh_from_db()
        self.assertEqual(matured.status, EarningStatus.AVAILABLE)
        self.assertEqual(other.status, EarningStatus.AVAILABLE)
        self.assertEqual(waiting.status, EarningStatus.PENDING)

        self.assertEqual(ArtistProfile.objects.get(user=self.first).total_earnings, Decimal('300.00'))
        self.assertEqual(ArtistProfile.objects.get(user=self.second).total_earnings, Decimal('200.00'))

        log = EarningsMaintenanceLog.objects.get()
        self.assertEqual(log.pending_updated, 2)
        self.assertEqual(log.triggered_by, 'test')

    def test_run_with_nothing_to_release_is_still_logged(self):
        result = EarningService.release_matured_earnings(now=self.now)

        self.assertEqual(result['pending_updated'], 0)
        self.assertEqual(result['total_amount_released'], Decimal('0.00'))
        self.assertEqual(EarningsMaintenanceLog.objects.count(), 1)

    def test_maintenance_needed_reports_matured_count(self):
        self.assertEqual(EarningService.is_maintenance_needed(self.now), (False, 0))

        make_earning(self.first, '100.00', status=EarningStatus.PENDING, available_at=self.now - timedelta(minutes=5))
        make_earning(self.first, '100.00', status=EarningStatus.PENDING, available_at=self.now + timedelta(days=1))

        self.assertEqual(EarningService.is_maintenance_needed(self.now), (True, 1))


class TestEarningsReporting(TestCase):
    def setUp(self):
        self.artist = make_artist()
        self.other = make_artist()

    def test_statistics_totals_by_status(self):
        make_earning(self.artist, '1000.00')
        make_earning(self.other, '250.00')
        make_earning(self.artist, '400.00', status=EarningStatus.PENDING, available_at=timezone.now() + timedelta(days=5))
        make_earning(self.artist, '100.00', status=EarningStatus.WITHDRAWN)
        WithdrawalRequest.objects.create(artist=self.artist, amount=Decimal('1000.00'), mpesa_phone='+254712345678')

        stats = EarningService.get_earnings_statistics()

        self.assertEqual(stats['total_earnings'], Decimal('1750.00'))
        self.assertEqual(stats['available_earnings'], Decimal('1250.00'))
        self.assertEqual(stats['pending_earnings'], Decimal('400.00'))
        self.assertEqual(stats['withdrawn_earnings'], Decimal('100.00'))
        self.assertEqual(stats['on_hold_earnings'], Decimal('0.00'))
        self.assertEqual(stats['earnings_count']['available'], 2)
        self.assertEqual(stats['earnings_count']['on_hold'], 0)
        self.assertEqual(stats['pending_withdrawals'], Decimal('1000.00'))
        self.assertEqual(stats['completed_withdrawals'], Decimal('0.00'))
        self.assertEqual(stats['artists_with_earnings'], 2)

    def test_recent_activity_is_limited(self):
        for amount in ('10.00', '20.00', '30.00'):
            make_earning(self.artist, amount)

        activity = list(EarningService.get_recent_activity(limit=2))

        self.assertEqual(len(activity), 2)

    def test_maintenance_log_newest_first(self):
        now = timezone.now()
        EarningService.release_matured_earnings(now=now - timedelta(hours=2))
        EarningService.release_matured_earnings(now=now)

        runs = list(EarningService.get_maintenance_log())

        self.assertEqual(runs[0].executed_at, now)
        self.assertEqual(len(runs), 2)
