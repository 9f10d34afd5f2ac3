"""Typed shapes for CMS records and the view-models built from them.

Remote records arrive as loosely typed mappings. Each ``*Entry`` class below
is the explicit shape of one content type with every field optional; its
``from_record`` never raises and applies one presence policy:

* text: present only when a non-blank string
* rich text: present only when a rich-text document mapping
* asset: present only when it carries a ``fields.file.url`` string
* reference: present only when it carries a ``sys.id``
* string lists: non-string items dropped, anything else becomes ``()``

View-models are frozen snapshots handed to templates once per request.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .rich_text import is_rich_text_document


def _text(fields, key):
    value = fields.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


def _rich_text(fields, key):
    value = fields.get(key)
    return value if is_rich_text_document(value) else None


def _string_list(fields, key):
    value = fields.get(key)
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(item for item in value if isinstance(item, str))


def _linked_fields(value):
    if not isinstance(value, dict):
        return {}
    inner = value.get('fields')
    return inner if isinstance(inner, dict) else {}


def _linked_id(value):
    if not isinstance(value, dict):
        return None
    sys = value.get('sys')
    record_id = sys.get('id') if isinstance(sys, dict) else None
    return record_id if isinstance(record_id, str) and record_id else None


@dataclass(frozen=True)
class AssetRef:
    id: Optional[str]
    url: str

    @classmethod
    def from_value(cls, value):
        file_info = _linked_fields(value).get('file')
        url = file_info.get('url') if isinstance(file_info, dict) else None
        if not isinstance(url, str) or not url.strip():
            return None
        return cls(id=_linked_id(value), url=url.strip())


@dataclass(frozen=True)
class CaseTypeRef:
    id: str
    name: Optional[str] = None

    @classmethod
    def from_value(cls, value):
        record_id = _linked_id(value)
        if record_id is None:
            return None
        return cls(id=record_id, name=_text(_linked_fields(value), 'name'))


@dataclass(frozen=True)
class ServiceEntry:
    id: str
    slug: Optional[str] = None
    name: Optional[str] = None
    card_subheading: Optional[str] = None
    description: Optional[dict] = None
    cta_heading: Optional[str] = None
    cta_body: Optional[str] = None
    card_image: Optional[AssetRef] = None
    hero_image: Optional[AssetRef] = None
    cta_image: Optional[AssetRef] = None

    @classmethod
    def from_record(cls, record):
        f = record.fields
        return cls(
            id=record.id,
            slug=_text(f, 'slug'),
            name=_text(f, 'serviceName'),
            card_subheading=_text(f, 'cardSubheading'),
            description=_rich_text(f, 'serviceDescription'),
            cta_heading=_text(f, 'ctaHeading'),
            cta_body=_text(f, 'ctaBody'),
            card_image=AssetRef.from_value(f.get('cardImage')),
            hero_image=AssetRef.from_value(f.get('heroImage')),
            cta_image=AssetRef.from_value(f.get('ctaImage')),
        )


@dataclass(frozen=True)
class SubServiceEntry:
    id: str
    name: Optional[str] = None
    bullets: Tuple[str, ...] = ()
    parent_id: Optional[str] = None

    @classmethod
    def from_record(cls, record):
        f = record.fields
        return cls(
            id=record.id,
            name=_text(f, 'subServiceName'),
            bullets=_string_list(f, 'bulletList'),
            parent_id=_linked_id(f.get('subServiceParent')),
        )


@dataclass(frozen=True)
class CaseStudyEntry:
    id: str
    slug: Optional[str] = None
    company_name: Optional[str] = None
    title: Optional[str] = None
    industry: Optional[str] = None
    block1: Optional[dict] = None
    block4: Optional[dict] = None
    block5: Optional[dict] = None
    block8: Optional[dict] = None
    block9: Optional[dict] = None
    block6_quote: Optional[str] = None
    block6_author: Optional[str] = None
    block10_quote: Optional[str] = None
    block10_author: Optional[str] = None
    block2_image: Optional[AssetRef] = None
    block3_image: Optional[AssetRef] = None
    block7_image: Optional[AssetRef] = None
    thumbnail_image: Optional[AssetRef] = None
    main_image: Optional[AssetRef] = None
    casetype: Optional[CaseTypeRef] = None
    created_at: Optional[str] = None

    @classmethod
    def from_record(cls, record):
        f = record.fields
        return cls(
            id=record.id,
            slug=_text(f, 'slug'),
            company_name=_text(f, 'nameOfCompany'),
            title=_text(f, 'title'),
            industry=_text(f, 'industry'),
            block1=_rich_text(f, 'block1'),
            block4=_rich_text(f, 'block4'),
            block5=_rich_text(f, 'block5'),
            block8=_rich_text(f, 'block8'),
            block9=_rich_text(f, 'block9'),
            block6_quote=_text(f, 'block6quote'),
            block6_author=_text(f, 'block6author'),
            block10_quote=_text(f, 'block10quote'),
            block10_author=_text(f, 'block10author'),
            block2_image=AssetRef.from_value(f.get('block2')),
            block3_image=AssetRef.from_value(f.get('block3')),
            block7_image=AssetRef.from_value(f.get('block7')),
            thumbnail_image=AssetRef.from_value(f.get('thumbnailImage')),
            main_image=AssetRef.from_value(f.get('mainImage')),
            casetype=CaseTypeRef.from_value(f.get('casetype')),
            created_at=record.created_at,
        )


@dataclass(frozen=True)
class ServiceCard:
    title: Optional[str]
    slug: Optional[str]
    subtitle: Optional[str]
    image_url: str


@dataclass(frozen=True)
class ServiceDetail:
    id: str
    name: Optional[str]
    slug: Optional[str]
    subtitle: Optional[str]
    description: Optional[str]
    cta_heading: Optional[str]
    cta_body: Optional[str]
    card_image_url: Optional[str]
    hero_image_url: Optional[str]
    cta_image_url: Optional[str]


@dataclass(frozen=True)
class SubServiceItem:
    name: Optional[str]
    bullets: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CaseStudySummary:
    company_name: Optional[str]
    title: Optional[str]
    slug: Optional[str]
    thumbnail_image_url: Optional[str]
    casetype: Optional[str]


@dataclass(frozen=True)
class CaseStudyDetail:
    company_name: Optional[str]
    title: Optional[str]
    industry: Optional[str]
    slug: Optional[str]
    block1: Optional[str]
    block4: Optional[str]
    block5: Optional[str]
    block8: Optional[str]
    block9: Optional[str]
    block6_quote: Optional[str]
    block6_author: Optional[str]
    block10_quote: Optional[str]
    block10_author: Optional[str]
    block2_image_url: Optional[str]
    block3_image_url: Optional[str]
    block7_image_url: Optional[str]
    thumbnail_image_url: Optional[str]
    hero_image_url: Optional[str]
    casetype: Optional[str]
    casetype_id: Optional[str]
