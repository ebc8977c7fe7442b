import random
from decimal import Decimal
from unittest.mock import Mock, patch
import requests
from django.test import SimpleTestCase, override_settings

from payments.gateways import InstaPayGateway, SimulatedGateway, get_payment_gateway


def json_response(payload, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    else:
        response.raise_for_status.return_value = None
    return response


class TestInstaPayTransfer(SimpleTestCase):
    def setUp(self):
        self.gateway = InstaPayGateway(api_key='key_123', base_url='https://pay.example.com/', environment='sandbox', timeout=5)

    @patch('payments.gateways.instapay.requests.post')
    def test_successful_transfer(self, mock_post):
        mock_post.return_value = json_response({'success': True, 'transaction_id': 'IP_1', 'message': 'Accepted'})

        result = self.gateway.initiate_transfer(Decimal('1500.00'), '+254712345678', 'WD-1', 'Withdrawal payment')

        self.assertTrue(result['success'])
        self.assertEqual(result['transaction_id'], 'IP_1')
        self.assertEqual(result['message'], 'Accepted')
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], 'https://pay.example.com/v1/payments/mpesa/b2c')
        self.assertEqual(kwargs['json']['phone_number'], '254712345678')
        self.assertEqual(kwargs['json']['amount'], 1500.0)
        self.assertEqual(kwargs['json']['reference'], 'WD-1')
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer key_123')
        self.assertEqual(kwargs['timeout'], 5)

    @patch('payments.gateways.instapay.requests.post')
    def test_declined_transfer(self, mock_post):
        mock_post.return_value = json_response({'success': False, 'message': 'Invalid recipient'})

        result = self.gateway.initiate_transfer(Decimal('1500.00'), '0712345678', 'WD-2', 'Withdrawal payment')

        self.assertFalse(result['success'])
        self.assertEqual(result['message'], 'Invalid recipient')
        self.assertEqual(result['raw_response'], {'success': False, 'message': 'Invalid recipient'})

    @patch('payments.gateways.instapay.requests.post')
    def test_timeout_is_reported_not_raised(self, mock_post):
        mock_post.side_effect = requests.exceptions.Timeout()

        with self.assertLogs('payments.gateways.instapay', level='ERROR'):
            result = self.gateway.initiate_transfer(Decimal('1500.00'), '0712345678', 'WD-3', 'Withdrawal payment')

        self.assertFalse(result['success'])
        self.assertEqual(result['message'], 'Request timed out')
        self.assertIsNone(result['transaction_id'])

    @patch('payments.gateways.instapay.requests.post')
    def test_http_error_is_reported_not_raised(self, mock_post):
        mock_post.return_value = json_response({}, status_code=502)

        with self.assertLogs('payments.gateways.instapay', level='ERROR'):
            result = self.gateway.initiate_transfer(Decimal('1500.00'), '0712345678', 'WD-4', 'Withdrawal payment')

        self.assertFalse(result['success'])
        self.assertIn('error', result['raw_response'])


class TestInstaPayStatus(SimpleTestCase):
    def setUp(self):
        self.gateway = InstaPayGateway(api_key='key_123', base_url='https://pay.example.com')

    @patch('payments.gateways.instapay.requests.get')
    def test_status_lookup(self, mock_get):
        mock_get.return_value = json_response({
            'transaction_id': 'IP_1',
            'status': 'completed',
            'amount': '1500',
            'currency': 'KES',
            'timestamp': '2024-05-01T10:00:00Z',
        })

        result = self.gateway.check_status('IP_1')

        self.assertEqual(mock_get.call_args[0][0], 'https://pay.example.com/v1/payments/status/IP_1')
        self.assertEqual(result['status'], 'completed')
        self.assertEqual(result['amount'], Decimal('1500.00'))
        self.assertIsNone(result['failure_reason'])

    @patch('payments.gateways.instapay.requests.get')
    def test_unreachable_gateway_reports_unknown(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError()

        with self.assertLogs('payments.gateways.instapay', level='ERROR'):
            result = self.gateway.check_status('IP_1')

        self.assertEqual(result['status'], 'unknown')
        self.assertEqual(result['failure_reason'], 'Failed to check status')


class TestInstaPayHelpers(SimpleTestCase):
    def setUp(self):
        self.gateway = InstaPayGateway(api_key='key_123')

    def test_format_phone_number(self):
        self.assertEqual(InstaPayGateway.format_phone_number('+254 712 345 678'), '254712345678')
        self.assertEqual(InstaPayGateway.format_phone_number('0712345678'), '254712345678')
        self.assertEqual(InstaPayGateway.format_phone_number('712345678'), '254712345678')

    def test_validate_phone_number(self):
        self.assertTrue(self.gateway.validate_phone_number('0712345678'))
        self.assertTrue(self.gateway.validate_phone_number('+254110345678'))
        self.assertFalse(self.gateway.validate_phone_number('0812345678'))
        self.assertFalse(self.gateway.validate_phone_number('12345'))

    def test_calculate_fees(self):
        self.assertEqual(InstaPayGateway.calculate_fees(Decimal('1000')), Decimal('15.00'))
        self.assertEqual(InstaPayGateway.calculate_fees(Decimal('1000'), 'card'), Decimal('25.00'))
        self.assertEqual(InstaPayGateway.calculate_fees(Decimal('1000'), 'bank'), Decimal('10.00'))
        self.assertEqual(InstaPayGateway.calculate_fees(Decimal('1000'), 'paypal'), Decimal('25.00'))


class TestSimulatedGateway(SimpleTestCase):
    def gateway(self, failure_rate=0):
        return SimulatedGateway(failure_rate=failure_rate, rng=random.Random(7))

    def test_transfer_succeeds_and_can_be_looked_up(self):
        gateway = self.gateway()

        result = gateway.initiate_transfer(Decimal('2500'), '0712345678', 'WD-1', 'Withdrawal payment')

        self.assertTrue(result['success'])
        self.assertRegex(result['transaction_id'], r'^WTH_\d+_[0-9a-f]{9}$')
        status = gateway.check_status(result['transaction_id'])
        self.assertEqual(status['status'], 'completed')
        self.assertEqual(status['amount'], Decimal('2500.00'))

    def test_amount_limits(self):
        gateway = self.gateway()

        self.assertFalse(gateway.initiate_transfer(Decimal('999.99'), '0712345678', 'WD-2', '')['success'])
        self.assertFalse(gateway.initiate_transfer(Decimal('150000.01'), '0712345678', 'WD-3', '')['success'])
        self.assertTrue(gateway.initiate_transfer(Decimal('150000'), '0712345678', 'WD-4', '')['success'])

    def test_failure_rate_of_one_always_fails(self):
        result = self.gateway(failure_rate=1).initiate_transfer(Decimal('5000'), '0712345678', 'WD-5', '')

        self.assertFalse(result['success'])
        self.assertIsNone(result['transaction_id'])

    def test_unknown_transaction_status(self):
        self.assertEqual(self.gateway().check_status('WTH_missing')['status'], 'unknown')

    def test_status_is_visible_from_a_new_instance(self):
        result = self.gateway().initiate_transfer(Decimal('3000'), '0712345678', 'WD-6', '')

        status = SimulatedGateway().check_status(result['transaction_id'])

        self.assertEqual(status['status'], 'completed')
        self.assertEqual(status['amount'], Decimal('3000.00'))


class TestGatewaySelection(SimpleTestCase):
    @override_settings(PAYMENT_GATEWAY='simulated')
    def test_simulated(self):
        self.assertIsInstance(get_payment_gateway(), SimulatedGateway)

    @override_settings(PAYMENT_GATEWAY='instapay')
    def test_instapay(self):
        gateway = get_payment_gateway()
        self.assertIsInstance(gateway, InstaPayGateway)
        self.assertNotIsInstance(gateway, SimulatedGateway)

    @override_settings(PAYMENT_GATEWAY='carrier-pigeon')
    def test_unknown_name(self):
        with self.assertRaises(ValueError):
            get_payment_gateway()
