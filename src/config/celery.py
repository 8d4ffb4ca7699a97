"""Celery application for the order lifecycle service.

DJANGO_SETTINGS_MODULE is set before the app is created so Celery reads the
``CELERY_``-prefixed Django settings.  Tasks live in each app's ``tasks.py``
(order notifications in ``modules.notifications.tasks``).
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("orders")

app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
