from seedrock.cms import NotIn, RawRecord, Ref
from seedrock.related import select_related_case_studies
from seedrock.tests.factories import FakeCmsClient, case_study, casetype


def test_no_casetype_returns_empty_without_query():
    cms = FakeCmsClient([case_study("beta", casetype_id="T1")])
    assert select_related_case_studies(cms, None, "acme") == []
    assert cms.calls == []


def test_related_set_shares_casetype_and_excludes_current():
    cms = FakeCmsClient(
        [
            case_study("acme", casetype_id="T1"),
            case_study("beta", casetype_id="T1"),
            case_study("gamma", casetype_id="T1"),
            case_study("delta", casetype_id="T2"),
        ]
    )
    related = select_related_case_studies(cms, "T1", "acme")
    assert {item.slug for item in related} == {"beta", "gamma"}

    call = cms.calls_for("caseStudy")[0]
    assert call["filters"] == {"casetype": Ref("T1"), "slug": NotIn({"acme"})}
    assert call["limit"] == 3


def test_related_set_never_exceeds_three():
    cms = FakeCmsClient([case_study(f"cs-{i}", casetype_id="T1") for i in range(6)])
    related = select_related_case_studies(cms, "T1", "cs-0", limit=10)
    assert len(related) == 3
    assert all(item.slug != "cs-0" for item in related)
    assert cms.calls[0]["limit"] == 3


class _LeakyClient:
    """Ignores filters and limit, returning everything it holds."""

    def __init__(self, records):
        self.records = records

    def query(self, content_type, filters=None, order=None, limit=None):
        return list(self.records)


def test_related_filters_current_slug_and_cap_even_if_adapter_does_not():
    records = [case_study("acme", casetype_id="T1")] + [case_study(f"x{i}", casetype_id="T1") for i in range(5)]
    related = select_related_case_studies(_LeakyClient(records), "T1", "acme")
    assert len(related) == 3
    assert "acme" not in {item.slug for item in related}


def test_related_skips_records_without_slug():
    cms = FakeCmsClient(
        [
            case_study("beta", casetype_id="T1"),
            RawRecord(id="cs-blank", content_type="caseStudy", fields={"slug": "", "casetype": casetype("T1")}),
        ]
    )
    related = select_related_case_studies(cms, "T1", "acme")
    assert [item.slug for item in related] == ["beta"]


def test_non_numeric_limit_falls_back_to_three():
    cms = FakeCmsClient([case_study(f"cs-{i}", casetype_id="T1") for i in range(5)])
    related = select_related_case_studies(cms, "T1", "cs-0", limit="three")
    assert len(related) == 3
    assert cms.calls[0]["limit"] == 3
