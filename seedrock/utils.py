"""Shared utility functions used across route modules."""
from urllib.parse import urlparse

from flask import current_app, request


def get_cms_client():
    return current_app.extensions['cms_client']


def safe_referrer_path(fallback):
    raw_referrer = (request.referrer or '').strip()
    if not raw_referrer:
        return fallback

    parsed = urlparse(raw_referrer)
    if parsed.scheme and parsed.scheme not in {'http', 'https'}:
        return fallback
    if parsed.netloc and parsed.netloc != request.host:
        return fallback

    path = parsed.path or '/'
    if not path.startswith('/') or path.startswith('//'):
        return fallback

    target = path
    if parsed.query:
        target = f"{target}?{parsed.query}"
    return target
