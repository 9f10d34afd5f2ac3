def absolute_url(url):
    """Pin a scheme-relative URL (``//host/path``) to https; others pass through."""
    if url.startswith('//'):
        return f'https:{url}'
    return url


def resolve_asset_url(asset, fallback=None):
    """Return an absolute URL for an :class:`~seedrock.models.AssetRef`.

    Contentful stores file URLs scheme-relative (``//images.ctfassets.net/...``),
    so those are pinned to https. An absent asset, or one without a file URL,
    yields ``fallback``.
    """
    url = getattr(asset, 'url', None) if asset is not None else None
    if not url:
        return fallback
    return absolute_url(url)
