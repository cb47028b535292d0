import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Initialize Celery
celery_app = Celery("regdesk")

# CELERY_* keys in settings.py configure the app
celery_app.config_from_object("django.conf:settings", namespace="CELERY")

# Tell Celery where to find our tasks (events/tasks.py)
celery_app.autodiscover_tasks()
