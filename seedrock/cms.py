"""Read-only query adapter over the Contentful Content Delivery API.

The adapter knows nothing about pages or view-models. It turns a logical
query (content type, filters, order, limit) into one HTTP request and hands
back :class:`RawRecord` objects whose link fields have been replaced by the
linked entries/assets the CMS returned in ``includes``.
"""
from __future__ import annotations

import json
from http.client import HTTPException
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

CREATED_AT = 'created_at'


class RemoteFetchError(Exception):
    """The CMS could not be reached or refused/failed the query."""

    def __init__(self, message, status=None, content_type=None):
        super().__init__(message)
        self.status = status
        self.content_type = content_type


@dataclass(frozen=True)
class Ref:
    """Match a reference field by the id of the record it points to."""

    id: str


@dataclass(frozen=True)
class NotIn:
    """Exclude records whose field value is one of ``values``."""

    values: frozenset

    def __post_init__(self):
        object.__setattr__(self, 'values', frozenset(self.values))


@dataclass(frozen=True)
class RawRecord:
    id: str
    content_type: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    created_at: Optional[str] = None

    @property
    def slug(self):
        value = self.fields.get('slug')
        return value if isinstance(value, str) and value.strip() else None


def _is_link(value):
    return isinstance(value, dict) and (value.get('sys') or {}).get('type') == 'Link'


def _order_param(order):
    descending = order.startswith('-')
    path = order.lstrip('-')
    if path == CREATED_AT:
        remote = 'sys.createdAt'
    elif path.startswith('sys.') or path.startswith('fields.'):
        remote = path
    else:
        remote = f'fields.{path}'
    return f'-{remote}' if descending else remote


def _filter_params(filters):
    params = {}
    for path, value in (filters or {}).items():
        if isinstance(value, Ref):
            params[f'fields.{path}.sys.id'] = value.id
        elif isinstance(value, NotIn):
            if value.values:
                params[f'fields.{path}[nin]'] = ','.join(sorted(str(v) for v in value.values))
        else:
            params[f'fields.{path}'] = value
    return params


class _LinkIndex:
    def __init__(self, payload):
        self._targets = {}
        includes = payload.get('includes') or {}
        for link_type in ('Entry', 'Asset'):
            for item in includes.get(link_type) or []:
                self._add(link_type, item)
        for item in payload.get('items') or []:
            self._add('Entry', item)

    def _add(self, link_type, item):
        item_id = (item.get('sys') or {}).get('id') if isinstance(item, dict) else None
        if item_id:
            self._targets[(link_type, item_id)] = item

    def resolve(self, value, depth):
        if _is_link(value):
            if depth <= 0:
                return value
            sys = value['sys']
            target = self._targets.get((sys.get('linkType'), sys.get('id')))
            if target is None:
                return value
            return {
                'sys': target.get('sys') or {},
                'fields': {
                    key: self.resolve(inner, depth - 1)
                    for key, inner in (target.get('fields') or {}).items()
                },
            }
        if isinstance(value, dict):
            return {key: self.resolve(inner, depth) for key, inner in value.items()}
        if isinstance(value, list):
            return [self.resolve(inner, depth) for inner in value]
        return value


class ContentfulClient:
    def __init__(
        self,
        space_id,
        access_token,
        environment='master',
        host='cdn.contentful.com',
        content_types=None,
        timeout=10.0,
        include_depth=2,
    ):
        self.space_id = space_id
        self.access_token = access_token
        self.environment = environment or 'master'
        self.host = host
        self.content_types = dict(content_types or {})
        self.timeout = timeout
        self.include_depth = include_depth
        self._logical_names = {remote: logical for logical, remote in self.content_types.items()}

    @classmethod
    def from_config(cls, config):
        return cls(
            space_id=config.get('CONTENTFUL_SPACE_ID', ''),
            access_token=config.get('CONTENTFUL_CDA_TOKEN', ''),
            environment=config.get('CONTENTFUL_ENVIRONMENT', 'master'),
            host=config.get('CONTENTFUL_HOST', 'cdn.contentful.com'),
            content_types=config.get('CMS_CONTENT_TYPES') or {},
            timeout=config.get('CMS_TIMEOUT_SECONDS', 10.0),
            include_depth=config.get('CMS_INCLUDE_DEPTH', 2),
        )

    @property
    def is_configured(self):
        return bool(self.space_id and self.access_token)

    @property
    def entries_url(self):
        return (
            f'https://{self.host}/spaces/{quote(self.space_id, safe="")}'
            f'/environments/{quote(self.environment, safe="")}/entries'
        )

    def _remote_type(self, content_type):
        try:
            return self.content_types[content_type]
        except KeyError:
            raise ValueError(f'Unknown content type: {content_type!r}') from None

    def build_params(self, content_type, filters=None, order=None, limit=None):
        params = {'content_type': self._remote_type(content_type), 'include': self.include_depth}
        params.update(_filter_params(filters))
        if order:
            params['order'] = _order_param(order)
        if limit is not None:
            if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
                raise ValueError(f'limit must be a positive integer, got {limit!r}')
            params['limit'] = limit
        return params

    def query(self, content_type, filters=None, order=None, limit=None):
        params = self.build_params(content_type, filters=filters, order=order, limit=limit)
        payload = self._get(params, content_type)
        return self._parse_collection(payload, content_type)

    def _get(self, params, content_type):
        url = f'{self.entries_url}?{urlencode(params)}'
        req = Request(
            url,
            headers={
                'Authorization': f'Bearer {self.access_token}',
                'Accept': 'application/json',
            },
        )
        try:
            with urlopen(req, timeout=self.timeout) as response:  # nosec B310
                body = response.read()
        except HTTPError as e:
            detail = e.read().decode('utf-8', errors='replace')[:300]
            raise RemoteFetchError(
                f'CMS responded {e.code} for {content_type}: {detail}',
                status=e.code,
                content_type=content_type,
            ) from e
        except (URLError, HTTPException, TimeoutError, OSError) as e:
            raise RemoteFetchError(
                f'CMS request for {content_type} failed: {e}',
                content_type=content_type,
            ) from e
        try:
            payload = json.loads(body.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RemoteFetchError(
                f'CMS returned an unreadable payload for {content_type}.',
                content_type=content_type,
            ) from e
        if not isinstance(payload, dict) or not isinstance(payload.get('items', []), list):
            raise RemoteFetchError(
                f'CMS returned an unexpected payload for {content_type}.',
                content_type=content_type,
            )
        return payload

    def _parse_collection(self, payload, content_type):
        index = _LinkIndex(payload)
        records = []
        for item in payload.get('items') or []:
            if not isinstance(item, dict):
                continue
            sys = item.get('sys') or {}
            record_id = sys.get('id')
            if not record_id:
                continue
            remote_type = ((sys.get('contentType') or {}).get('sys') or {}).get('id')
            fields = {
                key: index.resolve(value, self.include_depth)
                for key, value in (item.get('fields') or {}).items()
            }
            records.append(
                RawRecord(
                    id=record_id,
                    content_type=self._logical_names.get(remote_type, content_type),
                    fields=fields,
                    created_at=sys.get('createdAt'),
                )
            )
        return records
