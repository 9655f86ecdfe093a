import unittest

from memorial.config import REPO_ROOT, load_settings, parse_admin_emails


class TestLoadSettings(unittest.TestCase):
    def test_defaults(self):
        settings = load_settings({})
        self.assertEqual(settings.database_url, f"sqlite:///{REPO_ROOT / 'data' / 'memorial.sqlite'}")
        self.assertEqual(settings.token_ttl_hours, 24)
        self.assertEqual(settings.admin_emails, frozenset())
        self.assertEqual(settings.upload_dir, str(REPO_ROOT / "uploads"))
        self.assertEqual(settings.cors_origins, ("http://localhost:3000",))
        self.assertEqual(settings.log_level, "INFO")
        self.assertTrue(settings.ratelimit_enabled)

    def test_environment_overrides(self):
        settings = load_settings({
            "DATABASE_URL": "postgresql://u:p@db/memorial",
            "JWT_SECRET": "s3cret",
            "TOKEN_TTL_HOURS": "2",
            "ADMIN_EMAILS": " Admin@Example.org , ops@example.org,",
            "UPLOAD_DIR": "media",
            "CORS_ORIGINS": "https://a.example, https://b.example",
            "LOG_LEVEL": "debug",
            "RATELIMIT_ENABLED": "false",
        })
        self.assertEqual(settings.database_url, "postgresql://u:p@db/memorial")
        self.assertEqual(settings.jwt_secret, "s3cret")
        self.assertEqual(settings.token_ttl_hours, 2)
        self.assertEqual(settings.admin_emails, frozenset({"admin@example.org", "ops@example.org"}))
        self.assertEqual(settings.upload_dir, str(REPO_ROOT / "media"))
        self.assertEqual(settings.cors_origins, ("https://a.example", "https://b.example"))
        self.assertEqual(settings.log_level, "DEBUG")
        self.assertFalse(settings.ratelimit_enabled)

    def test_flask_config_keys(self):
        config = load_settings({"JWT_SECRET": "x"}).to_flask_config()
        self.assertEqual(config["JWT_SECRET"], "x")
        self.assertIn("DATABASE_URL", config)
        self.assertIsInstance(config["CORS_ORIGINS"], list)


class TestParseAdminEmails(unittest.TestCase):
    def test_string_and_iterable(self):
        self.assertEqual(parse_admin_emails("A@x.io,b@x.io"), frozenset({"a@x.io", "b@x.io"}))
        self.assertEqual(parse_admin_emails(["A@x.io", " ", ""]), frozenset({"a@x.io"}))
        self.assertEqual(parse_admin_emails(None), frozenset())
        self.assertEqual(parse_admin_emails(""), frozenset())
