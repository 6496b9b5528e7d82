"""Unit tests for guildhall.core.config: settings validation."""

import unittest

from pydantic import SecretStr, ValidationError

from guildhall.core.config import Settings


def _settings(**kwargs: object) -> Settings:
    """Build Settings from explicit values only (no .env file)."""
    defaults: dict[str, object] = {
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": "access-secret",
        "REFRESH_TOKEN_SECRET": "refresh-secret",
    }
    defaults.update(kwargs)
    return Settings(_env_file=None, **defaults)


class TestSecrets(unittest.TestCase):
    def test_distinct_secrets_accepted(self) -> None:
        s = _settings()
        self.assertIsInstance(s.JWT_SECRET, SecretStr)
        self.assertEqual(s.REFRESH_TOKEN_SECRET.get_secret_value(), "refresh-secret")

    def test_identical_secrets_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(JWT_SECRET="same", REFRESH_TOKEN_SECRET="same")

    def test_blank_secret_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(JWT_SECRET="   ")


class TestRanges(unittest.TestCase):
    def test_defaults(self) -> None:
        s = _settings()
        self.assertEqual(s.ACCESS_TOKEN_EXPIRE_SECONDS, 900)
        self.assertEqual(s.REFRESH_TOKEN_EXPIRE_SECONDS, 604800)
        self.assertEqual(s.JWT_ALGORITHM, "HS256")

    def test_out_of_range_values_rejected(self) -> None:
        for field, value in (
            ("ACCESS_TOKEN_EXPIRE_SECONDS", 10),
            ("ACCESS_TOKEN_EXPIRE_SECONDS", 86401),
            ("REFRESH_TOKEN_EXPIRE_SECONDS", 60),
            ("BCRYPT_ROUNDS", 3),
            ("BCRYPT_ROUNDS", 17),
        ):
            with self.subTest(field=field, value=value):
                with self.assertRaises(ValidationError):
                    _settings(**{field: value})

    def test_database_url_scheme(self) -> None:
        self.assertEqual(
            _settings(DATABASE_URL=" postgresql://u:p@db/guildhall ").DATABASE_URL,
            "postgresql://u:p@db/guildhall",
        )
        with self.assertRaises(ValidationError):
            _settings(DATABASE_URL="mysql://u:p@db/guildhall")
        with self.assertRaises(ValidationError):
            _settings(DATABASE_URL="   ")


class TestCorsOrigins(unittest.TestCase):
    def test_dev_allows_everything(self) -> None:
        self.assertEqual(_settings(APP_ENV="dev").cors_origins, ["*"])

    def test_prod_uses_configured_list(self) -> None:
        s = _settings(APP_ENV="prod", CORS_ORIGINS="https://guildhall.app, https://admin.guildhall.app,")
        self.assertEqual(s.cors_origins, ["https://guildhall.app", "https://admin.guildhall.app"])


if __name__ == "__main__":
    unittest.main()
