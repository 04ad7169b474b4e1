import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "demo-secret-key-change-me")
DEBUG = os.getenv("DJANGO_DEBUG", "").lower() in {"1", "true", "yes"}
ALLOWED_HOSTS = [host.strip() for host in os.getenv("ALLOWED_HOSTS", "*").split(",") if host.strip()]

INSTALLED_APPS = [
    "faturas",
]

DATABASES = {}

LANGUAGE_CODE = "pt-br"
TIME_ZONE = "America/Sao_Paulo"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

FATURAS_MAX_FILE_SIZE_MB = int(os.getenv("FATURAS_MAX_FILE_SIZE_MB", "10"))
FATURAS_MAX_TEXT_PAGES = int(os.getenv("FATURAS_MAX_TEXT_PAGES", "5"))
FATURAS_MIN_TEXT_CHARS = int(os.getenv("FATURAS_MIN_TEXT_CHARS", "100"))
FATURAS_OCR_MAX_PAGES = int(os.getenv("FATURAS_OCR_MAX_PAGES", "3"))
FATURAS_OCR_PAGE_TIMEOUT = int(os.getenv("FATURAS_OCR_PAGE_TIMEOUT", "30"))
FATURAS_OCR_SCALE = float(os.getenv("FATURAS_OCR_SCALE", "2.5"))
FATURAS_OCR_LANG = os.getenv("OCR_LANG", "por")
FATURAS_OCR_CONFIG = os.getenv("OCR_TESSERACT_CONFIG", "--psm 6")

LOG_DIR = Path(os.getenv("LOG_DIR", BASE_DIR / "logs"))
LOG_DIR.mkdir(exist_ok=True)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"}
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "default"},
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(LOG_DIR / "app.log"),
            "maxBytes": 2_000_000,
            "backupCount": 3,
            "formatter": "default",
            "encoding": "utf-8",
        },
    },
    "root": {"handlers": ["console", "file"], "level": os.getenv("LOG_LEVEL", "INFO")},
}

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 60 * 10
CELERY_TASK_SOFT_TIME_LIMIT = 60 * 8
CELERY_WORKER_PREFETCH_MULTIPLIER = 1
CELERY_TASK_ACKS_LATE = True
