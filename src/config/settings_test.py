"""Settings used by the test suite.

Runs without Redis: the cache lives in memory and Celery tasks execute
in-process.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-only-secret-key")

from config.settings import *  # noqa: E402,F401,F403

import structlog  # noqa: E402

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

PAYMENT_WEBHOOK_SECRET = "test-webhook-secret"

# SQLite has no row locks: a file database with IMMEDIATE transactions makes
# concurrent writers queue on the database lock instead of failing.
if DATABASES["default"]["ENGINE"] == "django.db.backends.sqlite3":  # noqa: F405
    DATABASES["default"].setdefault("OPTIONS", {}).update(  # noqa: F405
        {"transaction_mode": "IMMEDIATE", "timeout": 30}
    )
    DATABASES["default"]["TEST"] = {  # noqa: F405
        "NAME": str(BASE_DIR.parent / "test_db.sqlite3")  # noqa: F405
    }

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

structlog.configure(cache_logger_on_first_use=False)
