"""Record -> view-model mapping, one total function per content type."""
from .assets import resolve_asset_url
from .models import (
    CaseStudyDetail,
    CaseStudyEntry,
    CaseStudySummary,
    ServiceCard,
    ServiceDetail,
    ServiceEntry,
    SubServiceEntry,
    SubServiceItem,
)
from .rich_text import rich_text_or_none

DEFAULT_SERVICE_IMAGE = '/images/default.png'


def map_service_card(record, default_image=DEFAULT_SERVICE_IMAGE):
    entry = ServiceEntry.from_record(record)
    return ServiceCard(
        title=entry.name,
        slug=entry.slug,
        subtitle=entry.card_subheading,
        image_url=resolve_asset_url(entry.card_image, fallback=default_image),
    )


def map_service_detail(record):
    entry = ServiceEntry.from_record(record)
    return ServiceDetail(
        id=entry.id,
        name=entry.name,
        slug=entry.slug,
        subtitle=entry.card_subheading,
        description=rich_text_or_none(entry.description),
        cta_heading=entry.cta_heading,
        cta_body=entry.cta_body,
        card_image_url=resolve_asset_url(entry.card_image),
        hero_image_url=resolve_asset_url(entry.hero_image),
        cta_image_url=resolve_asset_url(entry.cta_image),
    )


def map_sub_service(record):
    entry = SubServiceEntry.from_record(record)
    return SubServiceItem(name=entry.name, bullets=entry.bullets)


def map_case_study_summary(record):
    entry = CaseStudyEntry.from_record(record)
    return CaseStudySummary(
        company_name=entry.company_name,
        title=entry.title,
        slug=entry.slug,
        thumbnail_image_url=resolve_asset_url(entry.thumbnail_image),
        casetype=entry.casetype.name if entry.casetype else None,
    )


def map_case_study_detail(record):
    entry = CaseStudyEntry.from_record(record)
    return CaseStudyDetail(
        company_name=entry.company_name,
        title=entry.title,
        industry=entry.industry,
        slug=entry.slug,
        block1=rich_text_or_none(entry.block1),
        block4=rich_text_or_none(entry.block4),
        block5=rich_text_or_none(entry.block5),
        block8=rich_text_or_none(entry.block8),
        block9=rich_text_or_none(entry.block9),
        block6_quote=entry.block6_quote,
        block6_author=entry.block6_author,
        block10_quote=entry.block10_quote,
        block10_author=entry.block10_author,
        block2_image_url=resolve_asset_url(entry.block2_image),
        block3_image_url=resolve_asset_url(entry.block3_image),
        block7_image_url=resolve_asset_url(entry.block7_image),
        thumbnail_image_url=resolve_asset_url(entry.thumbnail_image),
        hero_image_url=resolve_asset_url(entry.main_image),
        casetype=entry.casetype.name if entry.casetype else None,
        casetype_id=entry.casetype.id if entry.casetype else None,
    )
