from django.contrib.auth.models import User
from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken


class AuthenticationTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = User.objects.create_user(
            username="admin", password="Musterpassword", email="admin@example.com",
            first_name="Ada", last_name="Admin", is_staff=True,
        )

    def setUp(self):
        self.client = APIClient()

    def _login(self, password="Musterpassword"):
        return self.client.post(
            "/api/auth/token/", {"username": "admin", "password": password}, format="json"
        )

    def test_login_sets_http_only_cookies(self):
        response = self._login()
        self.assertEqual(response.status_code, 200)
        self.assertNotIn("access", response.json())
        self.assertTrue(response.cookies["access_token"]["httponly"])
        self.assertIn("refresh_token", response.cookies)

    def test_wrong_password(self):
        self.assertEqual(self._login("wrong").status_code, 401)

    def test_cookie_authenticates_me_endpoint(self):
        self._login()
        response = self.client.get("/api/auth/me/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["display_name"], "Ada Admin")

    def test_bearer_header_is_accepted(self):
        access = self._login().cookies["access_token"].value
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        self.assertEqual(client.get("/api/auth/me/").status_code, 200)

    def test_me_requires_login(self):
        self.assertEqual(self.client.get("/api/auth/me/").status_code, 401)

    def test_refresh_without_cookie(self):
        response = self.client.post("/api/auth/token/refresh/")
        self.assertEqual(response.status_code, 400)

    def test_refresh_sets_new_access_cookie(self):
        self._login()
        response = self.client.post("/api/auth/token/refresh/")
        self.assertEqual(response.status_code, 200)
        self.assertIn("access_token", response.cookies)

    def test_logout_blacklists_refresh_token(self):
        self._login()
        response = self.client.post("/api/auth/logout/")
        self.assertEqual(response.status_code, 205)
        self.assertEqual(BlacklistedToken.objects.count(), 1)
        self.assertEqual(response.cookies["access_token"].value, "")
