import json
import logging
import os
import re
import secrets
import warnings

from flask import Flask, abort, flash, g, has_request_context, redirect, render_template, request, session, url_for
from markupsafe import Markup, escape
from werkzeug.middleware.proxy_fix import ProxyFix

from .cms import ContentfulClient, RemoteFetchError
from .config import Config
from .rich_text import render_rich_text
from .routes.main import current_cookie_consent
from .utils import safe_referrer_path

_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._:-]{8,80}$")
_UNSAFE_METHODS = ('POST', 'PUT', 'PATCH', 'DELETE')
# Structured fields attached to CMS failure records via ``extra``.
_CMS_LOG_FIELDS = ('cms_content_type', 'cms_status')
_sentry_initialized = False


class JsonLogFormatter(logging.Formatter):
    def format(self, record):
        payload = {
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'time': self.formatTime(record, self.datefmt),
        }
        if has_request_context():
            payload.update(
                {
                    'request_id': getattr(g, 'request_id', ''),
                    'method': request.method,
                    'path': request.path,
                }
            )
        for key in _CMS_LOG_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value
        if record.exc_info:
            payload['exc_info'] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(app):
    app.logger.setLevel(getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))
    if not app.config.get('LOG_JSON', True):
        return
    formatter = JsonLogFormatter()
    for handler in app.logger.handlers:
        handler.setFormatter(formatter)


def get_csrf_token():
    token = session.get('_csrf_token')
    if not token:
        token = secrets.token_urlsafe(32)
        session['_csrf_token'] = token
    return token


def csrf_input():
    token = get_csrf_token()
    return Markup(f'<input type="hidden" name="_csrf_token" value="{escape(token)}">')  # nosec B704


def init_sentry(app):
    global _sentry_initialized
    if _sentry_initialized:
        return

    dsn = (app.config.get('SENTRY_DSN') or '').strip()
    if not dsn:
        return

    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=float(app.config.get('SENTRY_TRACES_SAMPLE_RATE') or 0.0),
            environment=(app.config.get('SENTRY_ENVIRONMENT') or None),
        )
        _sentry_initialized = True
        app.logger.info('Sentry monitoring enabled.')
    except Exception:
        app.logger.exception('Failed to initialize Sentry monitoring.')


def stylesheet_version(app):
    """Cache-busting token for ``style.css``: ``ASSET_VERSION`` or the file's mtime."""
    configured = (app.config.get('ASSET_VERSION') or '').strip()
    if configured:
        return configured
    css_path = os.path.join(app.static_folder or '', 'css', 'style.css')
    try:
        return str(int(os.path.getmtime(css_path)))
    except OSError:
        return 'dev'


def content_security_policy(app):
    # Pages load only our stylesheet, local images and CMS-hosted files.
    image_sources = ' '.join(["'self'", *app.config.get('CMS_IMAGE_SOURCES', ())])
    parts = [
        "default-src 'self'",
        "base-uri 'self'",
        "frame-ancestors 'none'",
        "form-action 'self'",
        "object-src 'none'",
        f"img-src {image_sources}",
    ]
    if request.is_secure:
        parts.append('upgrade-insecure-requests')
    return '; '.join(parts)


def register_request_hooks(app):
    @app.before_request
    def assign_request_id():
        incoming = (request.headers.get('X-Request-ID') or '').strip()
        g.request_id = incoming if _REQUEST_ID_RE.match(incoming) else secrets.token_hex(16)

    @app.before_request
    def enforce_csrf():
        # Only the cookie-consent forms post; every unsafe method needs the session token.
        if request.method not in _UNSAFE_METHODS:
            return
        expected = session.get('_csrf_token')
        provided = request.form.get('_csrf_token') or request.headers.get('X-CSRF-Token')
        if not expected or not provided or not secrets.compare_digest(expected, provided):
            abort(400, description='Invalid or missing CSRF token.')

    @app.context_processor
    def inject_globals():
        return dict(
            cookie_consent=current_cookie_consent(),
            csrf_input=csrf_input,
            asset_v=app.config['ASSET_VERSION'],
            render_rich_text=render_rich_text,
        )

    @app.after_request
    def add_security_headers(response):
        response.headers['X-Request-ID'] = getattr(g, 'request_id', '')
        response.headers.setdefault('X-Content-Type-Options', 'nosniff')
        response.headers.setdefault('X-Frame-Options', 'DENY')
        response.headers.setdefault('Referrer-Policy', 'strict-origin-when-cross-origin')
        if request.is_secure and app.config.get('HSTS_ENABLED', True):
            max_age = max(0, int(app.config.get('HSTS_MAX_AGE', 31536000)))
            response.headers.setdefault('Strict-Transport-Security', f'max-age={max_age}; includeSubDomains')

        if request.path.startswith('/static/') and response.status_code in (200, 304):
            response.headers['Cache-Control'] = 'public, max-age=31536000, immutable'

        # Rendered pages carry CMS content and are never cached.
        if response.content_type and response.content_type.startswith('text/html'):
            response.headers['Cache-Control'] = 'no-store, no-cache, must-revalidate, max-age=0'
            response.headers['Content-Security-Policy'] = content_security_policy(app)
        return response


def register_error_handlers(app):
    @app.errorhandler(400)
    def handle_bad_request(error):
        description = str(getattr(error, 'description', '') or '')
        if 'CSRF' in description:
            flash('Your session expired. Please retry your action.', 'danger')
            return redirect(safe_referrer_path(url_for('main.index')))
        return error

    @app.errorhandler(404)
    def handle_not_found(error):
        return render_template('errors/404.html'), 404

    @app.errorhandler(RemoteFetchError)
    def handle_remote_fetch_error(error):
        app.logger.exception(
            'CMS fetch failed (content_type=%s, status=%s).',
            error.content_type,
            error.status,
            extra={'cms_content_type': error.content_type, 'cms_status': error.status},
        )
        return render_template('errors/500.html'), 500

    @app.errorhandler(500)
    def handle_server_error(error):
        return render_template('errors/500.html'), 500


def register_health_checks(app):
    @app.get('/healthz')
    def healthz():
        return {'status': 'ok'}, 200

    @app.get('/readyz')
    def readyz():
        client = app.extensions.get('cms_client')
        checks = {
            'cms_configured': bool(getattr(client, 'is_configured', client is not None)),
        }
        all_ready = all(checks.values())
        return {'status': 'ready' if all_ready else 'warming', 'checks': checks}, (200 if all_ready else 503)


def create_app(config_overrides=None, cms_client=None):
    """Build the site. ``cms_client`` replaces the Contentful adapter when given."""
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)
    configure_logging(app)
    app.config['ASSET_VERSION'] = stylesheet_version(app)

    if not app.config.get('SECRET_KEY'):
        app.config['SECRET_KEY'] = secrets.token_urlsafe(32)
        warnings.warn(
            'SECRET_KEY is not set; using a random key. '
            'Cookie-consent forms will fail after a restart. '
            'Set the SECRET_KEY environment variable for production.',
            stacklevel=2,
        )

    if app.config.get('TRUST_PROXY_HEADERS'):
        # Only trust one proxy hop (the platform edge) when explicitly enabled.
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    init_sentry(app)

    if cms_client is None:
        cms_client = ContentfulClient.from_config(app.config)
        if not cms_client.is_configured:
            app.logger.warning('CONTENTFUL_SPACE_ID or CONTENTFUL_CDA_TOKEN is not set; CMS pages will fail.')
    app.extensions['cms_client'] = cms_client

    register_request_hooks(app)
    register_error_handlers(app)
    register_health_checks(app)

    from .routes.main import main_bp
    app.register_blueprint(main_bp)

    return app
