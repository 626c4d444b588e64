# users/tests/test_auth.py

from django.test import TestCase
from rest_framework.test import APIClient

from users.models import User
from users.permissions import actor_role_for


class RegisterTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_register_creates_customer(self):
        res = self.client.post(
            "/api/auth/register/",
            {"email": "Ada@Example.com", "password": "pass12345", "role": "admin"},
            format="json",
        )

        self.assertEqual(res.status_code, 201)
        self.assertEqual(res.data["role"], User.ROLE_CUSTOMER)
        user = User.objects.get(id=res.data["id"])
        self.assertFalse(user.is_staff)

    def test_duplicate_email_is_rejected(self):
        User.objects.create_user(email="ada@example.com", password="pass12345")

        res = self.client.post(
            "/api/auth/register/",
            {"email": "ADA@example.com", "password": "pass12345"},
            format="json",
        )

        self.assertEqual(res.status_code, 400)
        self.assertIn("email", res.data)

    def test_jwt_then_me(self):
        User.objects.create_user(email="ada@example.com", password="pass12345")

        res = self.client.post(
            "/api/auth/jwt/create/",
            {"email": "ada@example.com", "password": "pass12345"},
            format="json",
        )
        self.assertEqual(res.status_code, 200)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {res.data['access']}")
        me = self.client.get("/api/auth/me/")

        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.data["email"], "ada@example.com")

    def test_me_requires_auth(self):
        self.assertEqual(self.client.get("/api/auth/me/").status_code, 401)


class ActorRoleTests(TestCase):
    def test_roles(self):
        staff = User.objects.create_user(email="ops@example.com", password="pass12345", role=User.ROLE_STAFF)
        customer = User.objects.create_user(email="ada@example.com", password="pass12345")

        self.assertEqual(actor_role_for(staff), User.ROLE_STAFF)
        self.assertTrue(staff.is_staff)
        self.assertEqual(actor_role_for(customer), User.ROLE_CUSTOMER)
        self.assertEqual(actor_role_for(None), User.ROLE_CUSTOMER)
