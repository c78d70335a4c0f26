"""Integration tests for the HTTP API using FastAPI's TestClient and an in-memory database."""

import unittest
from collections.abc import Generator

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from support import FakeEmailSender, make_session_factory, make_settings

from app.core.database import get_db
from app.main import create_app
from app.models import Role
from app.services import accounts
from app.services.user_store import UserStore

API = "/api/v1"


class ApiTestCase(unittest.TestCase):
    """Fresh app, database and fake email transport per test."""

    settings_overrides: dict[str, object] = {}

    def setUp(self) -> None:
        self.session_factory = make_session_factory()
        self.settings = make_settings(**self.settings_overrides)
        self.sender = FakeEmailSender()
        self.app = create_app(self.settings, email_sender=self.sender)

        def override_get_db() -> Generator[Session, None, None]:
            db = self.session_factory()
            try:
                yield db
            finally:
                db.close()

        self.app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(self.app)

    def tearDown(self) -> None:
        self.client.close()

    def _signup(self, email: str = "alice@example.com", password: str = "secret1"):
        return self.client.post(
            f"{API}/auth/signup",
            json={"fullname": "Alice Liddell", "email": email, "password": password},
        )

    def _login(self, email: str = "alice@example.com", password: str = "secret1"):
        return self.client.post(f"{API}/auth/login", json={"email": email, "password": password})

    def _create_admin(self) -> str:
        db = self.session_factory()
        try:
            accounts.register(
                UserStore(db), "Admin", "admin@example.com", "adminpw1", role=Role.ADMIN
            )
        finally:
            db.close()
        self.client.cookies.clear()
        resp = self._login("admin@example.com", "adminpw1")
        self.client.cookies.clear()
        return resp.json()["access_token"]


class TestRootAndHealth(ApiTestCase):
    def test_root(self) -> None:
        resp = self.client.get("/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"message": "Project LV Accounts API"})

    def test_health_reports_database(self) -> None:
        resp = self.client.get(f"{API}/health/")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["environment"], "dev")
        self.assertEqual(body["database"], "connected")


class TestSignupAndLogin(ApiTestCase):
    def test_signup_returns_public_user(self) -> None:
        resp = self._signup()
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["message"], "User created successfully")
        self.assertEqual(body["user"]["email"], "alice@example.com")
        self.assertEqual(body["user"]["role"], "contributor")
        self.assertNotIn("password_hash", body["user"])
        self.assertNotIn("reset_token_hash", body["user"])

    def test_duplicate_signup_conflicts(self) -> None:
        self._signup()
        resp = self._signup(email="Alice@Example.com")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["detail"], "User already exists")

    def test_signup_validation(self) -> None:
        self.assertEqual(self._signup(email="nope").status_code, 422)
        self.assertEqual(self._signup(password="123").status_code, 422)
        resp = self.client.post(f"{API}/auth/signup", json={"email": "a@example.com"})
        self.assertEqual(resp.status_code, 422)

    def test_login_returns_token_and_sets_cookie(self) -> None:
        self._signup()
        resp = self._login()
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["token_type"], "bearer")
        self.assertEqual(body["user"]["role"], "contributor")
        self.assertTrue(body["access_token"])
        self.assertEqual(resp.cookies.get("token"), body["access_token"])
        set_cookie = resp.headers["set-cookie"].lower()
        self.assertIn("httponly", set_cookie)
        self.assertIn("samesite=lax", set_cookie)
        self.assertEqual(resp.headers["cache-control"], "no-store")

    def test_wrong_password_is_401_with_generic_message(self) -> None:
        self._signup()
        wrong = self._login(password="secret2")
        unknown = self._login(email="bob@example.com")
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(unknown.status_code, 401)
        self.assertEqual(wrong.json(), unknown.json())
        self.assertEqual(wrong.json()["detail"], "Invalid credentials")
        self.assertNotIn("secret2", wrong.text)


class TestAuthGateRoutes(ApiTestCase):
    def test_me_requires_token(self) -> None:
        resp = self.client.get(f"{API}/auth/me")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["detail"], "Not authorized")
        self.assertEqual(resp.headers["www-authenticate"], "Bearer")

    def test_me_with_cookie(self) -> None:
        self._signup()
        self._login()
        resp = self.client.get(f"{API}/auth/me")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["email"], "alice@example.com")

    def test_me_with_bearer_header(self) -> None:
        self._signup()
        token = self._login().json()["access_token"]
        self.client.cookies.clear()
        resp = self.client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(resp.status_code, 200)

    def test_invalid_token(self) -> None:
        resp = self.client.get(f"{API}/auth/me", headers={"Authorization": "Bearer abc.def.ghi"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json()["detail"], "Invalid token")

    def test_deactivated_user_token_rejected(self) -> None:
        self._signup()
        token = self._login().json()["access_token"]
        self.client.cookies.clear()
        admin_token = self._create_admin()
        users = self.client.get(
            f"{API}/users", headers={"Authorization": f"Bearer {admin_token}"}
        ).json()["users"]
        alice_id = next(u["id"] for u in users if u["email"] == "alice@example.com")
        self.client.patch(
            f"{API}/users/{alice_id}",
            json={"is_active": False},
            headers={"Authorization": f"Bearer {admin_token}"},
        )
        resp = self.client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(resp.status_code, 401)

    def test_logout_clears_cookie(self) -> None:
        self._signup()
        self._login()
        resp = self.client.post(f"{API}/auth/logout")
        self.assertEqual(resp.status_code, 200)
        self.assertIn("token=", resp.headers["set-cookie"])
        self.assertEqual(self.client.get(f"{API}/auth/me").status_code, 401)


class TestPasswordResetRoutes(ApiTestCase):
    def test_forgot_then_reset_then_login(self) -> None:
        self._signup()
        resp = self.client.post(f"{API}/auth/forgot-password", json={"email": "alice@example.com"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["message"], "Password reset link sent to your email!")
        token = self.sender.last_token()
        self.assertNotIn(token, resp.text)

        resp = self.client.post(
            f"{API}/auth/reset-password", json={"token": token, "password": "newpass1"}
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["message"], "Password reset successful")

        self.assertEqual(self._login(password="newpass1").status_code, 200)
        self.assertEqual(self._login(password="secret1").status_code, 401)

        again = self.client.post(
            f"{API}/auth/reset-password", json={"token": token, "password": "newpass2"}
        )
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.json()["detail"], "Invalid or expired token")

    def test_forgot_unknown_email(self) -> None:
        resp = self.client.post(f"{API}/auth/forgot-password", json={"email": "nobody@example.com"})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["detail"], "User not found")
        self.assertEqual(self.sender.sent, [])

    def test_forgot_email_failure(self) -> None:
        self._signup()
        self.sender.fail = True
        resp = self.client.post(f"{API}/auth/forgot-password", json={"email": "alice@example.com"})
        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json()["detail"], "Failed to send email. Please try again later.")

    def test_forgot_email_not_configured(self) -> None:
        self.sender.configured = False
        resp = self.client.post(f"{API}/auth/forgot-password", json={"email": "alice@example.com"})
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json()["detail"], "Email service not configured")


class TestChangePasswordAndProfile(ApiTestCase):
    def test_change_password(self) -> None:
        self._signup()
        self._login()
        resp = self.client.post(
            f"{API}/auth/change-password",
            json={"current_password": "secret1", "new_password": "newpass1"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self._login(password="newpass1").status_code, 200)

    def test_change_password_wrong_current(self) -> None:
        self._signup()
        self._login()
        resp = self.client.post(
            f"{API}/auth/change-password",
            json={"current_password": "wrong12", "new_password": "newpass1"},
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "Current password is incorrect")

    def test_update_profile(self) -> None:
        self._signup()
        self._login()
        resp = self.client.patch(f"{API}/users/me", json={"fullname": "Alice L."})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["fullname"], "Alice L.")
        self.assertEqual(resp.json()["email"], "alice@example.com")


class TestAdminRoutes(ApiTestCase):
    def test_list_users_requires_admin(self) -> None:
        self._signup()
        self._login()
        resp = self.client.get(f"{API}/users")
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(resp.json()["detail"], "Admin access required")

    def test_admin_lists_and_updates_role(self) -> None:
        self._signup()
        admin_token = self._create_admin()
        headers = {"Authorization": f"Bearer {admin_token}"}

        resp = self.client.get(f"{API}/users", headers=headers)
        self.assertEqual(resp.status_code, 200)
        users = resp.json()["users"]
        self.assertEqual(len(users), 2)
        alice = next(u for u in users if u["email"] == "alice@example.com")

        resp = self.client.patch(f"{API}/users/{alice['id']}", json={"role": "editor"}, headers=headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["role"], "editor")

    def test_admin_rejects_unknown_role_and_user(self) -> None:
        admin_token = self._create_admin()
        headers = {"Authorization": f"Bearer {admin_token}"}
        resp = self.client.patch(f"{API}/users/999", json={"role": "owner"}, headers=headers)
        self.assertEqual(resp.status_code, 422)
        resp = self.client.patch(f"{API}/users/999", json={"role": "editor"}, headers=headers)
        self.assertEqual(resp.status_code, 404)


class TestConfiguredBcryptCost(ApiTestCase):
    """Hashes written through the API use the cost from the app's own settings."""

    settings_overrides = {"BCRYPT_ROUNDS": 11}

    def _stored_hash(self) -> str:
        db = self.session_factory()
        try:
            return UserStore(db).find_by_email("alice@example.com").password_hash
        finally:
            db.close()

    def test_signup_and_change_password_use_app_cost(self) -> None:
        self._signup()
        self.assertTrue(self._stored_hash().startswith("$2b$11$"))

        first_hash = self._stored_hash()
        self._login()
        resp = self.client.post(
            f"{API}/auth/change-password",
            json={"current_password": "secret1", "new_password": "newpass1"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertNotEqual(self._stored_hash(), first_hash)
        self.assertTrue(self._stored_hash().startswith("$2b$11$"))

    def test_reset_uses_app_cost(self) -> None:
        self._signup()
        self.client.post(f"{API}/auth/forgot-password", json={"email": "alice@example.com"})
        self.client.post(
            f"{API}/auth/reset-password",
            json={"token": self.sender.last_token(), "password": "newpass1"},
        )
        self.assertTrue(self._stored_hash().startswith("$2b$11$"))
        self.assertEqual(self._login(password="newpass1").status_code, 200)


if __name__ == "__main__":
    unittest.main()
