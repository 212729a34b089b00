"""
With these settings, tests run faster.
"""

from .base import *  # noqa: F403
from .base import env

# GENERAL
# ------------------------------------------------------------------------------
# https://docs.djangoproject.com/en/dev/ref/settings/#secret-key
SECRET_KEY = env(
    "DJANGO_SECRET_KEY",
    default="Qv2fHk8pLz4RtY7mWc1NbX9sEa3UdJ6gKo0TiPw5FhMqZyVr",
)
# https://docs.djangoproject.com/en/dev/ref/settings/#test-runner
TEST_RUNNER = "django.test.runner.DiscoverRunner"

# DATABASES
# ------------------------------------------------------------------------------
DATABASES = {
    "default": env.db("DATABASE_URL", default="sqlite:///:memory:"),
}

# PASSWORDS
# ------------------------------------------------------------------------------
# https://docs.djangoproject.com/en/dev/ref/settings/#password-hashers
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# REDIS
# ------------------------------------------------------------------------------
REDIS_URL = "redis://localhost:6379/0"

# Realtime
# ------------------------------------------------------------------------------
REALTIME_TYPING_TIMEOUT = 0
REALTIME_AUTH_TIMEOUT = 0
