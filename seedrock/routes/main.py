from flask import Blueprint, abort, current_app, redirect, render_template, request

from ..cms import CREATED_AT, Ref
from ..mappers import (
    map_case_study_detail,
    map_case_study_summary,
    map_service_card,
    map_service_detail,
    map_sub_service,
)
from ..related import select_related_case_studies
from ..utils import get_cms_client, safe_referrer_path

main_bp = Blueprint('main', __name__)

COOKIE_CONSENT_NAME = 'cookieConsent'
COOKIE_CONSENT_VALUES = ('accepted', 'rejected')
MAX_SLUG_LENGTH = 200


def _service_cards():
    records = get_cms_client().query('service')
    default_image = current_app.config.get('DEFAULT_SERVICE_IMAGE') or '/images/default.png'
    return [map_service_card(record, default_image=default_image) for record in records if record.slug]


def _find_by_slug(content_type, slug):
    # Slugs are matched exactly, never trimmed or truncated.
    if not slug.strip() or len(slug) > MAX_SLUG_LENGTH:
        abort(404)
    records = get_cms_client().query(content_type, filters={'slug': slug}, limit=1)
    if not records:
        abort(404)
    return records[0]


@main_bp.route('/')
def index():
    return render_template('index.html', services=_service_cards())


@main_bp.route('/our-capabilities')
def our_capabilities():
    return render_template('our-capabilities.html', services=_service_cards())


@main_bp.route('/services/<slug>')
def service_detail(slug):
    record = _find_by_slug('service', slug)
    service = map_service_detail(record)

    sub_records = get_cms_client().query(
        'subService',
        filters={'subServiceParent': Ref(record.id)},
        order='subServiceName',
    )
    subservices = [map_sub_service(item) for item in sub_records]

    return render_template('service.html', service=service, subservices=subservices)


@main_bp.route('/casestudies')
def case_studies():
    records = get_cms_client().query('caseStudy', order=f'-{CREATED_AT}')
    summaries = [map_case_study_summary(record) for record in records if record.slug]
    return render_template('casestudies.html', case_studies=summaries)


@main_bp.route('/case-studies/<slug>')
def case_study_detail(slug):
    record = _find_by_slug('caseStudy', slug)
    case_study = map_case_study_detail(record)

    similar_case_studies = select_related_case_studies(
        get_cms_client(),
        case_study.casetype_id,
        record.slug,
        limit=current_app.config.get('RELATED_CASE_STUDY_LIMIT', 3),
    )

    return render_template(
        'casestudy-item.html',
        case_study=case_study,
        similar_case_studies=similar_case_studies,
    )


@main_bp.route('/about-us')
def about():
    return render_template('about-us.html', current_page='about')


@main_bp.route('/careers')
def careers():
    return render_template('careers.html', current_page='careers')


@main_bp.route('/contact-us')
def contact():
    return render_template('contact-us.html', current_page='contact')


def _set_cookie_consent(value):
    response = redirect(safe_referrer_path('/'))
    response.set_cookie(
        COOKIE_CONSENT_NAME,
        value,
        max_age=current_app.config.get('COOKIE_CONSENT_MAX_AGE', 365 * 24 * 60 * 60),
        httponly=False,
        secure=bool(current_app.config.get('SESSION_COOKIE_SECURE')),
        samesite='Lax',
    )
    return response


@main_bp.route('/cookies/accept', methods=['POST'])
def cookies_accept():
    return _set_cookie_consent('accepted')


@main_bp.route('/cookies/reject', methods=['POST'])
def cookies_reject():
    return _set_cookie_consent('rejected')


def current_cookie_consent():
    value = request.cookies.get(COOKIE_CONSENT_NAME)
    return value if value in COOKIE_CONSENT_VALUES else None
