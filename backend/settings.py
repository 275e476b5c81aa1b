"""
Django settings for academy_backend project - Production Ready
"""

import os
import dj_database_url
from pathlib import Path
from datetime import timedelta

# .env Datei laden für Development
from dotenv import load_dotenv

load_dotenv()

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get(
    "SECRET_KEY", "django-insecure-q9#v1t8m0x!k2w$7p4r-academy-dev-only-z3s6u5y"
)

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.environ.get("DEBUG", "True").lower() == "true"

# Production-ready ALLOWED_HOSTS
ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")

# Application definition
INSTALLED_APPS = [
    "jazzmin",
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django_extensions",
    # Third Party Apps
    "corsheaders",
    "rest_framework",
    "rest_framework_simplejwt",
    "rest_framework_simplejwt.token_blacklist",
    "anymail",
    # Local Apps
    "core.apps.CoreConfig",
    "core.audit_logs.apps.AuditLogsConfig",
    "core.email_service.apps.EmailServiceConfig",
    "core.stripe_integration.apps.StripeIntegrationConfig",
    "academy.apps.AcademyConfig",
    # Stripe App
    "djstripe",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

# CORS Settings - Production-ready
CORS_ALLOWED_ORIGINS = os.environ.get(
    "CORS_ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173"
).split(",")
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_METHODS = [
    "DELETE",
    "GET",
    "OPTIONS",
    "PATCH",
    "POST",
    "PUT",
]
CORS_ALLOW_HEADERS = [
    "accept",
    "accept-encoding",
    "authorization",
    "content-type",
    "dnt",
    "origin",
    "user-agent",
    "x-csrftoken",
    "x-requested-with",
    "cache-control",
]
CORS_ALLOWED_ORIGIN_REGEXES = [
    r"^http://localhost:(3000|517[0-9])$",
    r"^http://127\.0\.0\.1:(3000|517[0-9])$",
]

ROOT_URLCONF = "backend.urls"

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
            ],
        },
    },
]

WSGI_APPLICATION = "backend.wsgi.application"

# Database - Production-ready mit PostgreSQL
if os.environ.get("DATABASE_URL"):
    # Production: PostgreSQL
    DATABASES = {"default": dj_database_url.parse(os.environ.get("DATABASE_URL"))}
else:
    # Development: SQLite
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

# Cache Configuration - Production-ready mit Redis
# Used for Stripe product/price lookups.
if os.environ.get("REDIS_URL"):
    CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": os.environ.get("REDIS_URL"),
            "OPTIONS": {
                "CLIENT_CLASS": "django_redis.client.DefaultClient",
                "CONNECTION_POOL_KWARGS": {
                    "max_connections": 20,
                    "retry_on_timeout": True,
                },
            },
        }
    }
else:
    # Development: In-Memory Cache
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "academy-cache",
        }
    }

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"
    },
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("TIME_ZONE", "America/Chicago")
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images) - Production-ready
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# Security Settings für Production
if not DEBUG:
    SECURE_BROWSER_XSS_FILTER = True
    SECURE_CONTENT_TYPE_NOSNIFF = True
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_HSTS_SECONDS = 31536000
    SECURE_REDIRECT_EXEMPT = []
    SECURE_SSL_REDIRECT = True
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# REST Framework Settings
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": ("backend.custom_auth.CookieJWTAuthentication",),
    "DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.AllowAny",),
}

# Simple JWT Settings
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(
        minutes=int(os.environ.get("JWT_ACCESS_TOKEN_LIFETIME_MINUTES", "15"))
    ),
    "REFRESH_TOKEN_LIFETIME": timedelta(
        days=int(os.environ.get("JWT_REFRESH_TOKEN_LIFETIME_DAYS", "1"))
    ),
    "ROTATE_REFRESH_TOKENS": True,
    "BLACKLIST_AFTER_ROTATION": True,
    "UPDATE_LAST_LOGIN": True,
    "ALGORITHM": "HS256",
    "SIGNING_KEY": SECRET_KEY,
    "AUTH_HEADER_TYPES": ("Bearer",),
    "AUTH_HEADER_NAME": "HTTP_AUTHORIZATION",
    "USER_ID_FIELD": "id",
    "USER_ID_CLAIM": "user_id",
    "AUTH_TOKEN_CLASSES": ("rest_framework_simplejwt.tokens.AccessToken",),
    "TOKEN_TYPE_CLAIM": "token_type",
    "JTI_CLAIM": "jti",
}

# Cookie flags for the JWT cookies (secure cookies need HTTPS)
JWT_COOKIE_SECURE = os.environ.get("JWT_COOKIE_SECURE", str(not DEBUG)).lower() == "true"
JWT_COOKIE_SAMESITE = os.environ.get("JWT_COOKIE_SAMESITE", "Lax")

# Email Settings
# With RESEND_API_KEY set, mail goes out through Resend via django-anymail.
RESEND_API_KEY = os.environ.get("RESEND_API_KEY", "")
if RESEND_API_KEY:
    ANYMAIL = {"RESEND_API_KEY": RESEND_API_KEY}
    EMAIL_BACKEND = "anymail.backends.resend.EmailBackend"
else:
    EMAIL_BACKEND = os.environ.get(
        "EMAIL_BACKEND", "django.core.mail.backends.console.EmailBackend"
    )
DEFAULT_FROM_EMAIL = os.environ.get("DEFAULT_FROM_EMAIL", "noreply@midwestea.com")
EMAIL_REPLY_TO = os.environ.get("EMAIL_REPLY_TO", "")
EMAIL_MAX_RETRIES = int(os.environ.get("EMAIL_MAX_RETRIES", "3"))
EMAIL_RETRY_BASE_DELAY_SECONDS = float(os.environ.get("EMAIL_RETRY_BASE_DELAY_SECONDS", "1.0"))

# Frontend URLs für Links in Emails und Checkout-Redirects
FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:3000")
CHECKOUT_BASE_URL = os.environ.get("CHECKOUT_BASE_URL", FRONTEND_URL)

# ---- Billing ----
# First invoice number handed out when no invoice exists yet.
INVOICE_NUMBER_FLOOR = int(os.environ.get("INVOICE_NUMBER_FLOOR", "100001"))

# ---- Webflow CMS ----
WEBFLOW_API_TOKEN = os.environ.get("WEBFLOW_API_TOKEN", "")
WEBFLOW_SITE_ID = os.environ.get("WEBFLOW_SITE_ID", "")
WEBFLOW_COURSES_COLLECTION_ID = os.environ.get("WEBFLOW_COURSES_COLLECTION_ID", "")
WEBFLOW_PROGRAMS_COLLECTION_ID = os.environ.get("WEBFLOW_PROGRAMS_COLLECTION_ID", "")
WEBFLOW_API_BASE_URL = os.environ.get("WEBFLOW_API_BASE_URL", "https://api.webflow.com/v2")
WEBFLOW_TIMEOUT_SECONDS = int(os.environ.get("WEBFLOW_TIMEOUT_SECONDS", "15"))

# Jazzmin Settings
JAZZMIN_SETTINGS = {
    "site_title": "Academy Admin",
    "site_header": "Academy Backend",
    "site_brand": "Academy Backend",
    "site_logo": None,
    "login_logo": None,
    "login_logo_dark": None,
    "site_logo_classes": "img-circle",
    "site_icon": None,
    "welcome_sign": "Welcome to the academy back office",
    "copyright": "Academy Team",
    "topmenu_links": [
        {"name": "Home", "url": "admin:index", "permissions": ["auth.view_user"]},
    ],
    "icons": {
        "auth": "fas fa-users-cog",
        "auth.user": "fas fa-user",
        "auth.Group": "fas fa-users",
        "academy": "fas fa-graduation-cap",
        "academy.Transaction": "fas fa-file-invoice-dollar",
        "audit_logs": "fas fa-history",
        "email_service": "fas fa-envelope",
    },
    "show_ui_builder": False,
    "changeform_format": "horizontal_tabs",
    "changeform_format_overrides": {
        "auth.user": "collapsible",
    },
    "order_with_respect_to": [
        "academy",
        "audit_logs",
        "email_service",
        "auth",
    ],
}

# ---- Payments / Stripe / dj-stripe ----
# Stripe integration using dj-stripe.
# We support both TEST mode (development/sandbox) and LIVE mode (production).
# Which environment is active depends on STRIPE_LIVE_MODE.

# Mode toggle
#    - If STRIPE_LIVE_MODE=True → project uses LIVE Stripe environment (real payments).
#    - If STRIPE_LIVE_MODE=False → project uses TEST environment (fake payments).
STRIPE_LIVE_MODE = os.environ.get("STRIPE_LIVE_MODE", "False").lower() == "true"


# Secret keys (backend only)
#    - Used by Django (server) to communicate with Stripe API.
#    - NEVER expose to frontend or commit to GitHub.
STRIPE_TEST_SECRET_KEY = os.environ.get("STRIPE_TEST_SECRET_KEY", "")  # sk_test_xxx
STRIPE_LIVE_SECRET_KEY = os.environ.get("STRIPE_LIVE_SECRET_KEY", "")  # sk_live_xxx


# Publishable keys (frontend safe)
#    - Used by the checkout frontend to initialize Stripe.js.
STRIPE_TEST_PUBLISHABLE_KEY = os.environ.get(
    "STRIPE_TEST_PUBLISHABLE_KEY", ""
)  # pk_test_xxx
STRIPE_LIVE_PUBLISHABLE_KEY = os.environ.get(
    "STRIPE_LIVE_PUBLISHABLE_KEY", ""
)  # pk_live_xxx


# Webhook secret
#    - Required to verify that incoming webhook requests really come from Stripe.
DJSTRIPE_WEBHOOK_SECRET = os.environ.get("DJSTRIPE_WEBHOOK_SECRET", "")


# Default currency
DEFAULT_CURRENCY = os.environ.get("DEFAULT_CURRENCY", "usd")


# Stripe API version
DJSTRIPE_STRIPE_API_VERSION = os.environ.get(
    "DJSTRIPE_STRIPE_API_VERSION", "2024-06-20"
)


# Active secret key at runtime
#    - dj-stripe looks at STRIPE_SECRET_KEY for making all API calls.
STRIPE_SECRET_KEY = (
    STRIPE_LIVE_SECRET_KEY if STRIPE_LIVE_MODE else STRIPE_TEST_SECRET_KEY
)

# Stripe client behaviour
#    - Fixed socket timeout and a small retry count for network errors.
STRIPE_TIMEOUT_SECONDS = int(os.environ.get("STRIPE_TIMEOUT_SECONDS", "30"))
STRIPE_MAX_NETWORK_RETRIES = int(os.environ.get("STRIPE_MAX_NETWORK_RETRIES", "3"))
STRIPE_PRICE_CACHE_SECONDS = int(os.environ.get("STRIPE_PRICE_CACHE_SECONDS", "300"))

# dj-stripe relation mode:
# - "id"         → (new installs) use Stripe object "id" (e.g., "cus_...") as FK target
DJSTRIPE_FOREIGN_KEY_TO_FIELD = "id"

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "[{asctime}] {levelname} {name}: {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "academy": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "core": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "djstripe": {"handlers": ["console"], "level": "WARNING", "propagate": False},
    },
}
