import os


def _is_vercel_runtime():
    return bool(os.environ.get('VERCEL') or os.environ.get('VERCEL_ENV'))


def _is_production_runtime():
    flask_env = (os.environ.get('FLASK_ENV') or '').strip().lower()
    vercel_env = (os.environ.get('VERCEL_ENV') or '').strip().lower()
    return 'production' in (flask_env, vercel_env)


def _as_bool(value, default=False):
    if value is None:
        return default
    return str(value).strip().lower() in {'1', 'true', 'yes', 'on'}


def _as_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value, default):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _content_type_ids():
    # Logical content type -> Contentful content type id.
    return {
        'service': (os.environ.get('CMS_SERVICE_TYPE_ID') or 'seedrockServices').strip(),
        'subService': (os.environ.get('CMS_SUB_SERVICE_TYPE_ID') or 'subServices').strip(),
        'caseStudy': (os.environ.get('CMS_CASE_STUDY_TYPE_ID') or 'caseStudy').strip(),
        'caseType': (os.environ.get('CMS_CASE_TYPE_TYPE_ID') or 'caseType').strip(),
    }


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or ''

    CONTENTFUL_SPACE_ID = (os.environ.get('CONTENTFUL_SPACE_ID') or '').strip()
    CONTENTFUL_CDA_TOKEN = (os.environ.get('CONTENTFUL_CDA_TOKEN') or '').strip()
    CONTENTFUL_ENVIRONMENT = (os.environ.get('CONTENTFUL_ENVIRONMENT') or 'master').strip()
    CONTENTFUL_HOST = (os.environ.get('CONTENTFUL_HOST') or 'cdn.contentful.com').strip()
    CMS_TIMEOUT_SECONDS = max(1.0, _as_float(os.environ.get('CMS_TIMEOUT_SECONDS'), 10.0))
    CMS_INCLUDE_DEPTH = min(10, max(0, _as_int(os.environ.get('CMS_INCLUDE_DEPTH'), 2)))
    CMS_CONTENT_TYPES = _content_type_ids()

    DEFAULT_SERVICE_IMAGE = (os.environ.get('DEFAULT_SERVICE_IMAGE') or '/images/default.png').strip()
    RELATED_CASE_STUDY_LIMIT = min(3, max(1, _as_int(os.environ.get('RELATED_CASE_STUDY_LIMIT'), 3)))
    COOKIE_CONSENT_MAX_AGE = _as_int(os.environ.get('COOKIE_CONSENT_MAX_AGE'), 365 * 24 * 60 * 60)
    # Hosts allowed to serve CMS images and files on rendered pages.
    CMS_IMAGE_SOURCES = tuple(
        (os.environ.get('CMS_IMAGE_SOURCES') or 'https://images.ctfassets.net https://assets.ctfassets.net').split()
    )

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = _as_bool(
        os.environ.get('SESSION_COOKIE_SECURE'),
        ((os.environ.get('PREFERRED_URL_SCHEME') or '').lower() == 'https') or _is_production_runtime(),
    )
    TRUST_PROXY_HEADERS = _as_bool(os.environ.get('TRUST_PROXY_HEADERS'), _is_vercel_runtime())
    PREFERRED_URL_SCHEME = os.environ.get('PREFERRED_URL_SCHEME') or ('https' if SESSION_COOKIE_SECURE else 'http')
    ASSET_VERSION = (os.environ.get('ASSET_VERSION') or '').strip()
    HSTS_ENABLED = _as_bool(os.environ.get('HSTS_ENABLED'), True)
    HSTS_MAX_AGE = _as_int(os.environ.get('HSTS_MAX_AGE'), 31536000)

    SENTRY_DSN = (os.environ.get('SENTRY_DSN') or '').strip()
    SENTRY_ENVIRONMENT = (os.environ.get('SENTRY_ENVIRONMENT') or '').strip()
    SENTRY_TRACES_SAMPLE_RATE = _as_float(os.environ.get('SENTRY_TRACES_SAMPLE_RATE'), 0.0)
    LOG_JSON = _as_bool(os.environ.get('LOG_JSON'), True)
    LOG_LEVEL = (os.environ.get('LOG_LEVEL') or 'INFO').strip().upper()
