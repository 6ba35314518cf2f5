"""Tests for signup, login and password lifecycle routes."""

import asyncio
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from fastapi.testclient import TestClient

from api.main import app
from api.dependencies import get_mail_sender, get_user_repo
from adapter.fake.mail_sender import FakeMailSender
from adapter.fake.user_repository import FakeUserRepository
from services.credentials import hash_password, verify_password
from services.token_service import issue_access_token

RESET_PREFIX = "http://testserver/api/v1/users/reset-password/"


class AuthRoutesTestCase(unittest.TestCase):
    """Routes wired to in-memory fakes."""

    def setUp(self):
        patcher = patch('services.credentials.BCRYPT_ROUNDS', 4)
        patcher.start()
        self.addCleanup(patcher.stop)

        self.repo = FakeUserRepository()
        self.mail = FakeMailSender()
        app.dependency_overrides[get_user_repo] = lambda: self.repo
        app.dependency_overrides[get_mail_sender] = lambda: self.mail
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def _create_user(self, email="jonas@natours.io", password="pass1234"):
        return self.repo.create("Jonas", email, hash_password(password))

    def _auth(self, user_id: str) -> dict:
        return {"Authorization": f"Bearer {issue_access_token(user_id)}"}


class TestSignup(AuthRoutesTestCase):

    def test_signup_returns_token_and_public_user(self):
        response = self.client.post("/api/v1/users/signup", json={
            "name": "Jonas",
            "email": "jonas@natours.io",
            "password": "pass1234",
            "password_confirm": "pass1234",
        })

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["status"], "success")
        self.assertTrue(body["token"])
        user = body["data"]["user"]
        self.assertEqual(user["role"], "user")
        self.assertNotIn("password_hash", user)
        self.assertNotIn("active", user)

    def test_role_in_body_is_ignored(self):
        response = self.client.post("/api/v1/users/signup", json={
            "name": "Mallory",
            "email": "mallory@natours.io",
            "password": "pass1234",
            "password_confirm": "pass1234",
            "role": "admin",
        })

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["user"]["role"], "user")

    def test_mismatched_confirmation(self):
        response = self.client.post("/api/v1/users/signup", json={
            "name": "Jonas",
            "email": "jonas@natours.io",
            "password": "pass1234",
            "password_confirm": "pass9999",
        })

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"status": "fail", "message": "Passwords are not the same"})
        self.assertEqual(self.repo.store, {})

    def test_duplicate_email(self):
        self._create_user()

        response = self.client.post("/api/v1/users/signup", json={
            "name": "Jonas",
            "email": "jonas@natours.io",
            "password": "pass1234",
            "password_confirm": "pass1234",
        })

        self.assertEqual(response.status_code, 400)
        self.assertIn("Duplicate field value", response.json()["message"])

    def test_malformed_email_is_invalid_input(self):
        response = self.client.post("/api/v1/users/signup", json={
            "name": "Jonas",
            "email": "not-an-email",
            "password": "pass1234",
            "password_confirm": "pass1234",
        })

        self.assertEqual(response.status_code, 400)
        self.assertTrue(response.json()["message"].startswith("Invalid input data."))


class TestLogin(AuthRoutesTestCase):

    def test_login_returns_token(self):
        user = self._create_user()

        response = self.client.post("/api/v1/users/login", json={"email": "jonas@natours.io", "password": "pass1234"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["user"]["id"], user.id)

    def test_wrong_password(self):
        self._create_user()

        response = self.client.post("/api/v1/users/login", json={"email": "jonas@natours.io", "password": "nope-nope"})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"status": "fail", "message": "Incorrect email or password"})
        self.assertEqual(response.headers["WWW-Authenticate"], "Bearer")

    def test_missing_fields(self):
        response = self.client.post("/api/v1/users/login", json={"email": "jonas@natours.io"})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Please provide email and password!")


class TestForgotAndResetPassword(AuthRoutesTestCase):

    def _request_reset(self) -> str:
        response = self.client.post("/api/v1/users/forgot-password", json={"email": "jonas@natours.io"})
        self.assertEqual(response.status_code, 200)
        body = self.mail.outbox[-1].body
        return body.split(RESET_PREFIX)[1].split()[0]

    def test_full_reset_flow(self):
        user = self._create_user()
        token = self._request_reset()

        response = self.client.patch(
            f"/api/v1/users/reset-password/{token}",
            json={"password": "newpass123", "password_confirm": "newpass123"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["token"])
        self.assertTrue(verify_password("newpass123", self.repo.store[user.id].password_hash))

    def test_reset_token_cannot_be_reused(self):
        self._create_user()
        token = self._request_reset()
        payload = {"password": "newpass123", "password_confirm": "newpass123"}
        self.client.patch(f"/api/v1/users/reset-password/{token}", json=payload)

        response = self.client.patch(f"/api/v1/users/reset-password/{token}", json=payload)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["message"], "Token is invalid or has expired")

    def test_expired_reset_token(self):
        user = self._create_user()
        token = self._request_reset()
        self.repo.store[user.id].password_reset_expires = datetime.now(timezone.utc) - timedelta(minutes=1)

        response = self.client.patch(
            f"/api/v1/users/reset-password/{token}",
            json={"password": "newpass123", "password_confirm": "newpass123"},
        )

        self.assertEqual(response.status_code, 400)

    def test_unknown_email(self):
        response = self.client.post("/api/v1/users/forgot-password", json={"email": "ghost@natours.io"})

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["message"], "There is no user with that email address.")

    def test_mail_failure_returns_500_and_clears_token(self):
        user = self._create_user()
        self.mail.fail = True

        response = self.client.post("/api/v1/users/forgot-password", json={"email": "jonas@natours.io"})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {
            "status": "error",
            "message": "There was an error sending the email. Try again later!",
        })
        self.assertIsNone(self.repo.store[user.id].password_reset_token)


class TestUpdateMyPassword(AuthRoutesTestCase):

    def test_requires_login(self):
        response = self.client.patch("/api/v1/users/update-my-password", json={
            "password_current": "pass1234", "password": "newpass123", "password_confirm": "newpass123",
        })

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "You are not logged in! Please log in to get access.")

    def test_wrong_current_password(self):
        user = self._create_user()

        response = self.client.patch("/api/v1/users/update-my-password", headers=self._auth(user.id), json={
            "password_current": "wrong-pass", "password": "newpass123", "password_confirm": "newpass123",
        })

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Your current password is wrong.")

    def test_update_returns_working_token(self):
        user = self._create_user()

        response = self.client.patch("/api/v1/users/update-my-password", headers=self._auth(user.id), json={
            "password_current": "pass1234", "password": "newpass123", "password_confirm": "newpass123",
        })

        self.assertEqual(response.status_code, 200)
        new_token = response.json()["token"]
        me = self.client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {new_token}"})
        self.assertEqual(me.status_code, 200)


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class RecordingMailSender(FakeMailSender):
    """Remembers whether each send ran on the event loop thread."""

    def __init__(self):
        super().__init__()
        self.sent_on_loop: list[bool] = []

    def send(self, to: str, subject: str, body: str) -> None:
        self.sent_on_loop.append(_loop_running())
        super().send(to, subject, body)


class TestBlockingCallsLeaveEventLoop(AuthRoutesTestCase):
    """bcrypt and SMTP calls must run in worker threads, not on the event loop."""

    def _recording(self, target: str, real):
        calls: list[bool] = []

        def wrapper(*args, **kwargs):
            calls.append(_loop_running())
            return real(*args, **kwargs)

        patcher = patch(target, side_effect=wrapper)
        patcher.start()
        self.addCleanup(patcher.stop)
        return calls

    def test_signup_hashes_off_the_loop(self):
        calls = self._recording('services.auth_service.hash_password', hash_password)

        response = self.client.post("/api/v1/users/signup", json={
            "name": "Jonas",
            "email": "jonas@natours.io",
            "password": "pass1234",
            "password_confirm": "pass1234",
        })

        self.assertEqual(response.status_code, 201)
        self.assertEqual(calls, [False])

    def test_login_verifies_off_the_loop(self):
        self._create_user()
        calls = self._recording('services.auth_service.verify_password', verify_password)

        response = self.client.post("/api/v1/users/login", json={
            "email": "jonas@natours.io", "password": "pass1234",
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual(calls, [False])

    def test_forgot_password_sends_mail_off_the_loop(self):
        self._create_user()
        sender = RecordingMailSender()
        app.dependency_overrides[get_mail_sender] = lambda: sender

        response = self.client.post("/api/v1/users/forgot-password", json={"email": "jonas@natours.io"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(sender.sent_on_loop, [False])


if __name__ == '__main__':
    unittest.main()
