"""
Warden - Django Settings (Development and Tests)
================================================
Minimal project hosting the warden app plus the test workbench app.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("WARDEN_SECRET_KEY", "warden-dev-key-not-for-production")

DEBUG = True

ALLOWED_HOSTS = []

# ── Installed Apps ────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "warden",
    "tests.workbench",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

AUTHENTICATION_BACKENDS = [
    "warden.auth_backend.WardenPermissionBackend",
    "django.contrib.auth.backends.ModelBackend",
]

# ── Database ──────────────────────────────────────────────────
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

# ── Cache ─────────────────────────────────────────────────────
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "warden-default",
    }
}

# ── Authorization ─────────────────────────────────────────────
WARDEN = {
    "CACHE": {
        "ENABLED": True,
        "STORE": "memory",
        "TTL": 300,
        "PREFIX": "warden",
    },
    "POLICY": {
        "MODELS": ["workbench.post"],
    },
}

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "console": {"class": "logging.StreamHandler"},
    },
    "loggers": {
        "warden": {
            "handlers": ["console"],
            "level": os.environ.get("WARDEN_LOG_LEVEL", "WARNING"),
        },
    },
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
