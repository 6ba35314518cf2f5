"""Tests for SmtpMailSender with smtplib mocked out."""

import smtplib
import unittest
from unittest.mock import patch

from adapter.email.smtp_sender import SmtpMailSender
from domain.model.errors import DeliveryError


class TestSmtpMailSender(unittest.TestCase):

    @patch('adapter.email.smtp_sender.smtplib.SMTP')
    def test_sends_message_with_login(self, mock_smtp):
        smtp = mock_smtp.return_value.__enter__.return_value
        sender = SmtpMailSender(host='mail.test', port=587, username='u', password='p', sender='from@test')

        sender.send('to@test', 'Subject', 'Body')

        mock_smtp.assert_called_once_with('mail.test', 587, timeout=10)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with('u', 'p')
        message = smtp.send_message.call_args[0][0]
        self.assertEqual(message['To'], 'to@test')
        self.assertEqual(message['Subject'], 'Subject')
        self.assertIn('Body', message.get_content())

    @patch('adapter.email.smtp_sender.smtplib.SMTP')
    def test_no_login_without_credentials(self, mock_smtp):
        smtp = mock_smtp.return_value.__enter__.return_value

        SmtpMailSender(host='mail.test', port=25, username=None, password=None).send('to@test', 'S', 'B')

        smtp.login.assert_not_called()
        smtp.send_message.assert_called_once()

    @patch('adapter.email.smtp_sender.smtplib.SMTP')
    def test_transport_failure_raises_delivery_error(self, mock_smtp):
        mock_smtp.side_effect = smtplib.SMTPConnectError(421, 'unavailable')

        with self.assertRaises(DeliveryError):
            SmtpMailSender(host='mail.test', port=25).send('to@test', 'S', 'B')

    @patch('adapter.email.smtp_sender.smtplib.SMTP')
    def test_network_failure_raises_delivery_error(self, mock_smtp):
        mock_smtp.side_effect = ConnectionRefusedError()

        with self.assertRaises(DeliveryError):
            SmtpMailSender(host='mail.test', port=25).send('to@test', 'S', 'B')


if __name__ == '__main__':
    unittest.main()
