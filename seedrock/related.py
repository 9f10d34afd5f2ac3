from .cms import NotIn, Ref
from .config import _as_int
from .mappers import map_case_study_summary

MAX_RELATED_CASE_STUDIES = 3


def select_related_case_studies(client, casetype_id, slug, limit=MAX_RELATED_CASE_STUDIES):
    """Up to ``limit`` case studies sharing ``casetype_id``, excluding ``slug``.

    No case type means no related set and no query. Records without a slug
    are skipped since they cannot be linked to.
    """
    if not casetype_id:
        return []
    limit = max(1, min(_as_int(limit, MAX_RELATED_CASE_STUDIES), MAX_RELATED_CASE_STUDIES))
    filters = {'casetype': Ref(casetype_id)}
    if slug:
        filters['slug'] = NotIn({slug})
    records = client.query('caseStudy', filters=filters, limit=limit)

    related = []
    for record in records:
        if not record.slug or record.slug == slug:
            continue
        related.append(map_case_study_summary(record))
        if len(related) >= limit:
            break
    return related
