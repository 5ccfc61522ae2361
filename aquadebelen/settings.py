"""
Configuración del proyecto Aqua de Belén (panel administrativo).

Decisiones:
- Los datos de negocio viven en la API remota (API_BASE_URL); la base de datos
  local solo guarda usuarios, sesiones y mensajes.
- Todo valor sensible o dependiente del entorno se lee de variables de entorno
  con un valor por defecto apto para desarrollo.
- SQLite por defecto; PostgreSQL si DB_ENGINE=postgres.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(nombre, defecto="False"):
    return os.environ.get(nombre, defecto).lower() in ("1", "true", "yes", "si", "sí")


SECRET_KEY = os.environ.get("SECRET_KEY", "clave-secreta-desarrollo")
DEBUG = _env_bool("DEBUG", "True")
ALLOWED_HOSTS = [h for h in os.environ.get("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h]


# ─────────────────────────────────────────────────────────────────────────────
# Apps
# ─────────────────────────────────────────────────────────────────────────────
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    "servicios",
    "inventario",
    "compras",
    "ventas",
    "dashboard",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "aquadebelen.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
                "servicios.context_processors.navegacion",
            ],
        },
    },
]

WSGI_APPLICATION = "aquadebelen.wsgi.application"


# ─────────────────────────────────────────────────────────────────────────────
# Base de datos (solo auth/sesiones)
# ─────────────────────────────────────────────────────────────────────────────
if os.environ.get("DB_ENGINE", "sqlite") == "postgres":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ.get("DB_NAME", "aquadb"),
            "USER": os.environ.get("DB_USER", "postgres"),
            "PASSWORD": os.environ.get("DB_PASSWORD", ""),
            "HOST": os.environ.get("DB_HOST", "localhost"),
            "PORT": os.environ.get("DB_PORT", "5432"),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# ─────────────────────────────────────────────────────────────────────────────
# API remota
# ─────────────────────────────────────────────────────────────────────────────
API_BASE_URL = os.environ.get("API_BASE_URL", "https://aquadebelen.prod.dtt.tja.ucb.edu.bo/api/v1")
API_TIMEOUT = float(os.environ.get("API_TIMEOUT", "15"))
API_CACHE_TTL = int(os.environ.get("API_CACHE_TTL", str(60 * 5)))  # 5 minutos
API_PAGE_SIZE = int(os.environ.get("API_PAGE_SIZE", "10"))
# Tamaño usado para poblar selects con "todos" los registros
API_LOOKUP_SIZE = 1000

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "aquadebelen-api",
    }
}


# ─────────────────────────────────────────────────────────────────────────────
# Auth
# ─────────────────────────────────────────────────────────────────────────────
LOGIN_URL = "login"
LOGIN_REDIRECT_URL = "dashboard:panel"
LOGOUT_REDIRECT_URL = "login"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
]


# ─────────────────────────────────────────────────────────────────────────────
# i18n / estáticos
# ─────────────────────────────────────────────────────────────────────────────
LANGUAGE_CODE = "es"
TIME_ZONE = "America/La_Paz"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"


# ─────────────────────────────────────────────────────────────────────────────
# Logging
# ─────────────────────────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "[{asctime}] {levelname} {name}: {message}", "style": "{"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "servicios": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "inventario": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "compras": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "ventas": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "dashboard": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
