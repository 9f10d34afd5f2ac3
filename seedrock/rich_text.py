import bleach
from markupsafe import escape
from rich_text_renderer import RichTextRenderer
from rich_text_renderer.base_node_renderer import BaseNodeRenderer

from .assets import absolute_url

ALLOWED_RICH_TEXT_TAGS = [
    'p', 'br', 'strong', 'em', 'b', 'i', 'u', 'blockquote', 'code', 'pre',
    'ul', 'ol', 'li', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'a', 'img', 'table', 'thead', 'tbody', 'tr', 'th', 'td', 'hr', 'div', 'span'
]
ALLOWED_RICH_TEXT_ATTRIBUTES = {
    '*': ['class'],
    'a': ['href', 'title', 'target', 'rel'],
    'img': ['src', 'alt', 'title', 'width', 'height'],
}
ALLOWED_RICH_TEXT_PROTOCOLS = ['http', 'https', 'mailto']


def _embedded_asset(node):
    """``(url, title, mime_type)`` of a node's resolved asset target, else ``None``.

    Unpublished assets, or links past the include depth, arrive as bare
    ``sys`` links without ``fields``.
    """
    target = (node.get('data') or {}).get('target')
    fields = target.get('fields') if isinstance(target, dict) else None
    if not isinstance(fields, dict):
        return None
    file_info = fields.get('file')
    if not isinstance(file_info, dict):
        return None
    url = file_info.get('url')
    if not isinstance(url, str) or not url.strip():
        return None
    title = fields.get('title')
    mime_type = file_info.get('contentType')
    return (
        absolute_url(url.strip()),
        title.strip() if isinstance(title, str) else '',
        mime_type if isinstance(mime_type, str) else '',
    )


def _render_children(node):
    content = node.get('content')
    if not isinstance(content, list) or not content:
        return ''
    return _renderer.render({'nodeType': 'document', 'data': {}, 'content': content})


class EmbeddedAssetRenderer(BaseNodeRenderer):
    def render(self, node):
        asset = _embedded_asset(node)
        if asset is None:
            return ''
        url, title, mime_type = asset
        if mime_type.startswith('image/') or not mime_type:
            return f'<img src="{escape(url)}" alt="{escape(title)}">'
        return f'<a href="{escape(url)}">{escape(title or url)}</a>'


class AssetLinkRenderer(BaseNodeRenderer):
    def render(self, node):
        text = _render_children(node)
        asset = _embedded_asset(node)
        if asset is None:
            return text
        return f'<a href="{escape(asset[0])}">{text}</a>'


class EntryLinkRenderer(BaseNodeRenderer):
    # Entries have no public URL of their own; keep the link text.
    def render(self, node):
        return _render_children(node)


class EmbeddedEntryRenderer(BaseNodeRenderer):
    def render(self, node):
        return ''


_renderer = RichTextRenderer(
    {
        'embedded-asset-block': EmbeddedAssetRenderer,
        'asset-hyperlink': AssetLinkRenderer,
        'entry-hyperlink': EntryLinkRenderer,
        'embedded-entry-block': EmbeddedEntryRenderer,
        'embedded-entry-inline': EmbeddedEntryRenderer,
    }
)


def is_rich_text_document(value):
    return (
        isinstance(value, dict)
        and value.get('nodeType') == 'document'
        and isinstance(value.get('content'), list)
    )


def sanitize_html(value):
    return bleach.clean(
        (value or '').strip(),
        tags=ALLOWED_RICH_TEXT_TAGS,
        attributes=ALLOWED_RICH_TEXT_ATTRIBUTES,
        protocols=ALLOWED_RICH_TEXT_PROTOCOLS,
        strip=True,
    )


def render_rich_text(document):
    """Render a CMS rich-text document to sanitized HTML; ``''`` when absent."""
    if not is_rich_text_document(document):
        return ''
    return sanitize_html(_renderer.render(document))


def rich_text_or_none(document):
    if not is_rich_text_document(document):
        return None
    return render_rich_text(document)
