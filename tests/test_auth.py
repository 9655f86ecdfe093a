import time

import jwt

from tests.base import ADMIN_EMAIL, PASSWORD, MemorialTestCase


class TestAuth(MemorialTestCase):
    def test_register_then_login_token_decodes_to_same_email(self):
        token = self.register("alice@test.io")
        r = self.client.post("/api/v1/auth/login", json={"email": "alice@test.io", "password": PASSWORD})
        self.assertEqual(r.status_code, 200)
        body = r.get_json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["user"]["email"], "alice@test.io")

        for t in (token, body["data"]["token"]):
            claims = jwt.decode(t, "test-secret", algorithms=["HS256"])
            self.assertEqual(claims["email"], "alice@test.io")
            self.assertEqual(claims["exp"] - claims["iat"], 24 * 3600)

    def test_register_duplicate_email(self):
        self.register("alice@test.io")
        r = self.client.post("/api/v1/auth/register", json={"email": "alice@test.io", "password": PASSWORD})
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.get_json()["error"]["code"], "EMAIL_IN_USE")

    def test_register_validation(self):
        r = self.client.post("/api/v1/auth/register", json={"email": "alice@test.io", "password": "short"})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.get_json()["error"]["code"], "VALIDATION_ERROR")

        r = self.client.post("/api/v1/auth/register", json={"email": "not-an-email", "password": PASSWORD})
        self.assertEqual(r.status_code, 400)

        r = self.client.post("/api/v1/auth/register", data="nope", content_type="application/json")
        self.assertEqual(r.status_code, 400)
        self.assertFalse(r.get_json()["success"])

    def test_login_failures_are_indistinguishable(self):
        self.register("alice@test.io")
        wrong_password = self.client.post(
            "/api/v1/auth/login", json={"email": "alice@test.io", "password": "WrongPass1"}
        )
        unknown_user = self.client.post(
            "/api/v1/auth/login", json={"email": "nobody@test.io", "password": PASSWORD}
        )
        self.assertEqual(wrong_password.status_code, 401)
        self.assertEqual(unknown_user.status_code, 401)
        self.assertEqual(wrong_password.get_json()["error"], unknown_user.get_json()["error"])
        self.assertEqual(wrong_password.get_json()["error"]["code"], "INVALID_CREDENTIALS")

    def test_me(self):
        token = self.register("alice@test.io")
        r = self.client.get("/api/v1/auth/me", headers=self.auth(token))
        self.assertEqual(r.status_code, 200)
        data = r.get_json()["data"]
        self.assertEqual(data["email"], "alice@test.io")
        self.assertFalse(data["isAdmin"])

        admin = self.client.get("/api/v1/auth/me", headers=self.admin_headers())
        self.assertTrue(admin.get_json()["data"]["isAdmin"])
        self.assertEqual(admin.get_json()["data"]["email"], ADMIN_EMAIL)

    def test_missing_and_invalid_tokens(self):
        r = self.client.get("/api/v1/auth/me")
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.get_json()["error"]["code"], "NO_TOKEN")

        r = self.client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not.a.token"})
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.get_json()["error"]["code"], "INVALID_TOKEN")

        r = self.client.get("/api/v1/auth/me", headers={"Authorization": "Token abc"})
        self.assertEqual(r.get_json()["error"]["code"], "INVALID_TOKEN")

        forged = jwt.encode({"userId": 1, "email": "x@test.io", "exp": int(time.time()) + 60}, "other-secret", algorithm="HS256")
        r = self.client.get("/api/v1/auth/me", headers=self.auth(forged))
        self.assertEqual(r.get_json()["error"]["code"], "INVALID_TOKEN")

    def test_expired_token_rejected(self):
        expired = jwt.encode(
            {"userId": 1, "email": "alice@test.io", "iat": 0, "exp": int(time.time()) - 10},
            "test-secret",
            algorithm="HS256",
        )
        r = self.client.get("/api/v1/auth/me", headers=self.auth(expired))
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.get_json()["error"]["code"], "INVALID_TOKEN")

    def test_health(self):
        r = self.client.get("/health")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.get_json()["data"]["status"], "OK")
        r = self.client.get("/api/v1/health")
        self.assertTrue(r.get_json()["success"])

    def test_unknown_route_uses_envelope(self):
        r = self.client.get("/api/v1/nope")
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.get_json()["error"]["code"], "NOT_FOUND")
