"""
SmartHome Dashboard - Django Settings

Project settings. Every deployment-specific value comes from the
environment; a ``.env`` file at the project root is loaded first when
present (python-dotenv).

Environment variables:
    DJANGO_SECRET_KEY      Signing key for sessions and API tokens
    DJANGO_DEBUG           "true" to enable debug mode
    DJANGO_ALLOWED_HOSTS   Comma separated host names
    APP_ENV                Environment name reported by /health
    DATABASE_PATH          SQLite database file
    DATABASE_TEST_PATH     SQLite file used by the test run
    API_TOKEN_MAX_AGE      Bearer token lifetime in seconds (default 7 days)
    RATELIMIT_LOGIN        Login rate, django-ratelimit syntax (default 5/m)
    RATELIMIT_REGISTER     Registration rate (default 3/h)
    RATELIMIT_CONTROL      Control request rate per token (default 120/m)
    RATELIMIT_ENABLE       "false" to switch rate limiting off
    LOG_LEVEL              Root log level (default INFO)

Author:     Gonzalo Patino
Created:    2025
Course:     Southern New Hampshire University
License:    Academic Use Only - See LICENSE file

For settings reference:
    https://docs.djangoproject.com/en/5.2/ref/settings/
"""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

_env_file = BASE_DIR / ".env"
if _env_file.exists():
    load_dotenv(_env_file)


def _flag(name, default):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ============================================================================
# CORE
# ============================================================================

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-only-insecure-key-change-me")
DEBUG = _flag("DJANGO_DEBUG", "false")
ALLOWED_HOSTS = [
    host.strip()
    for host in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")
    if host.strip()
]

APP_ENV = os.getenv("APP_ENV", "development")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "channels",
    "apps.smarthome",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "django_ratelimit.middleware.RatelimitMiddleware",
]

ROOT_URLCONF = "config.urls"

# API routes have no trailing slash
APPEND_SLASH = False

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.getenv("DATABASE_PATH", str(BASE_DIR / "db.sqlite3")),
        # SQLite ignores SELECT ... FOR UPDATE; BEGIN IMMEDIATE takes the
        # write lock up front so same-device writers queue instead of failing
        "OPTIONS": {
            "transaction_mode": "IMMEDIATE",
            "timeout": 20,
        },
        # File-backed so concurrent connections in tests see one database
        "TEST": {
            "NAME": os.getenv("DATABASE_TEST_PATH", str(BASE_DIR / "test-db.sqlite3")),
        },
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
     "OPTIONS": {"min_length": 6}},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"


# ============================================================================
# REALTIME
# ============================================================================

# Single-process deployment; swap for channels_redis to run several workers
CHANNEL_LAYERS = {
    "default": {"BACKEND": "channels.layers.InMemoryChannelLayer"},
}


# ============================================================================
# API TOKENS & RATE LIMITING
# ============================================================================

API_TOKEN_MAX_AGE = int(os.getenv("API_TOKEN_MAX_AGE", str(7 * 24 * 60 * 60)))

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "smarthome",
    }
}

RATELIMIT_ENABLE = _flag("RATELIMIT_ENABLE", "true")
RATELIMIT_USE_CACHE = "default"
RATELIMIT_VIEW = "apps.smarthome.views.ratelimited_error"
RATELIMIT_LOGIN = os.getenv("RATELIMIT_LOGIN", "5/m")
RATELIMIT_REGISTER = os.getenv("RATELIMIT_REGISTER", "3/h")
RATELIMIT_CONTROL = os.getenv("RATELIMIT_CONTROL", "120/m")


# ============================================================================
# LOGGING
# ============================================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
        "apps.smarthome": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}
