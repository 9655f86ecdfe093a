from memorial.rate_limit import DEFAULT_LIMITS
from tests.base import MemorialTestCase


class TestDefaultBudgets(MemorialTestCase):
    def test_defaults_land_in_config(self):
        self.assertEqual(DEFAULT_LIMITS["RATELIMIT_API"], "1000 per 15 minutes")
        self.assertEqual(self.app.config["RATELIMIT_AUTH"], "10 per 15 minutes")
        self.assertEqual(self.app.config["RATELIMIT_SEARCH"], "60 per minute")
        self.assertEqual(self.app.config["RATELIMIT_UPLOAD"], "50 per hour")

    def test_disabled_in_this_suite(self):
        for _ in range(12):
            r = self.client.post("/api/v1/auth/login", json={"email": "nobody@test.io", "password": "Password123"})
            self.assertEqual(r.status_code, 401)


class TestAuthRateLimit(MemorialTestCase):
    extra_config = {"RATELIMIT_ENABLED": True, "RATELIMIT_AUTH": "2 per 15 minutes"}

    def test_auth_budget(self):
        body = {"email": "nobody@test.io", "password": "Password123"}
        self.assertEqual(self.client.post("/api/v1/auth/login", json=body).status_code, 401)
        self.assertEqual(self.client.post("/api/v1/auth/login", json=body).status_code, 401)
        r = self.client.post("/api/v1/auth/login", json=body)
        self.assertEqual(r.status_code, 429)
        self.assertFalse(r.get_json()["success"])
        self.assertEqual(r.get_json()["error"]["code"], "RATE_LIMITED")
        self.assertIn("Retry-After", r.headers)

        # Unrelated routes are still within budget.
        self.assertEqual(self.client.get("/api/v1/locations").status_code, 200)


class TestGlobalRateLimit(MemorialTestCase):
    extra_config = {"RATELIMIT_ENABLED": True, "RATELIMIT_API": "3 per 15 minutes"}

    def test_api_budget_covers_all_routes(self):
        for _ in range(3):
            self.assertEqual(self.client.get("/api/v1/locations").status_code, 200)
        r = self.client.get("/api/v1/persons")
        self.assertEqual(r.status_code, 429)
        self.assertEqual(r.get_json()["error"]["code"], "RATE_LIMITED")

        # Routes carrying their own budget also count against the API budget.
        r = self.client.get("/api/v1/search/persons")
        self.assertEqual(r.status_code, 429)

        # Health checks outside the API prefix are exempt.
        self.assertEqual(self.client.get("/health").status_code, 200)
