import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "leitura_faturas.settings")

app = Celery("leitura_faturas")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
