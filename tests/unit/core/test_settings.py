"""Production settings stay free of test-only switches."""

import pytest
from django.apps import apps
from django.conf import settings
from django.db.models import CheckConstraint

import config.settings as production

pytestmark = pytest.mark.unit


def test_production_settings_ignore_the_test_runner():
    assert not hasattr(production, "TESTING")
    assert production.CACHES["default"]["BACKEND"] == "django_redis.cache.RedisCache"
    assert production.PAYMENT_WEBHOOK_SECRET != "test-webhook-secret"


def test_suite_runs_with_test_overrides():
    assert settings.SETTINGS_MODULE == "config.settings_test"
    assert settings.CACHES["default"]["BACKEND"].endswith("LocMemCache")
    assert settings.CELERY_TASK_ALWAYS_EAGER is True


def test_check_constraints_use_condition():
    constraints = [
        constraint
        for model in apps.get_models()
        for constraint in model._meta.constraints
        if isinstance(constraint, CheckConstraint)
    ]
    names = {c.name for c in constraints}
    assert {"orders_total_non_negative", "order_items_quantity_positive"} <= names
    assert all(c.condition is not None for c in constraints)
