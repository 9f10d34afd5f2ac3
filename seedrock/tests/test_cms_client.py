import io
import json
from http.client import IncompleteRead
from urllib.error import HTTPError, URLError
from urllib.parse import parse_qs, urlparse

import pytest

from seedrock import cms as cms_module
from seedrock.cms import ContentfulClient, NotIn, Ref, RemoteFetchError
from seedrock.config import Config

CONTENT_TYPES = {
    "service": "seedrockServices",
    "subService": "subServices",
    "caseStudy": "caseStudy",
    "caseType": "caseType",
}


def make_client():
    return ContentfulClient(
        space_id="space1",
        access_token="secret-token",
        environment="master",
        content_types=CONTENT_TYPES,
        timeout=5,
    )


class Recorder:
    def __init__(self, payload=None, error=None, raw=None):
        self.payload = payload
        self.error = error
        self.raw = raw
        self.requests = []

    def __call__(self, req, timeout=None):
        self.requests.append((req, timeout))
        if self.error is not None:
            raise self.error
        if self.raw is not None:
            return io.BytesIO(self.raw)
        return io.BytesIO(json.dumps(self.payload).encode("utf-8"))

    def params(self):
        req, _ = self.requests[-1]
        return {key: values[0] for key, values in parse_qs(urlparse(req.full_url).query).items()}


def entry(entry_id, content_type, fields, created_at="2024-01-01T00:00:00Z"):
    return {
        "sys": {
            "id": entry_id,
            "type": "Entry",
            "createdAt": created_at,
            "contentType": {"sys": {"type": "Link", "linkType": "ContentType", "id": content_type}},
        },
        "fields": fields,
    }


def link(link_type, target_id):
    return {"sys": {"type": "Link", "linkType": link_type, "id": target_id}}


def test_query_builds_delivery_request(monkeypatch):
    recorder = Recorder({"items": []})
    monkeypatch.setattr(cms_module, "urlopen", recorder)

    result = make_client().query(
        "caseStudy",
        filters={"casetype": Ref("T1"), "slug": NotIn({"acme"})},
        order="-created_at",
        limit=3,
    )

    assert result == []
    req, timeout = recorder.requests[0]
    assert timeout == 5
    assert req.full_url.startswith("https://cdn.contentful.com/spaces/space1/environments/master/entries?")
    assert req.get_header("Authorization") == "Bearer secret-token"
    params = recorder.params()
    assert params["content_type"] == "caseStudy"
    assert params["fields.casetype.sys.id"] == "T1"
    assert params["fields.slug[nin]"] == "acme"
    assert params["order"] == "-sys.createdAt"
    assert params["limit"] == "3"
    assert "secret-token" not in req.full_url


def test_query_maps_logical_type_and_field_order(monkeypatch):
    recorder = Recorder({"items": []})
    monkeypatch.setattr(cms_module, "urlopen", recorder)

    make_client().query("subService", filters={"subServiceParent": Ref("svc-1")}, order="subServiceName")

    params = recorder.params()
    assert params["content_type"] == "subServices"
    assert params["fields.subServiceParent.sys.id"] == "svc-1"
    assert params["order"] == "fields.subServiceName"
    assert "limit" not in params


def test_query_resolves_included_links(monkeypatch):
    payload = {
        "items": [
            entry(
                "cs-1",
                "caseStudy",
                {
                    "slug": "acme",
                    "thumbnailImage": link("Asset", "a1"),
                    "casetype": link("Entry", "T1"),
                    "block2": link("Asset", "gone"),
                },
            )
        ],
        "includes": {
            "Asset": [{"sys": {"id": "a1", "type": "Asset"}, "fields": {"file": {"url": "//img/a1.png"}}}],
            "Entry": [entry("T1", "caseType", {"name": "Branding"})],
        },
    }
    monkeypatch.setattr(cms_module, "urlopen", Recorder(payload))

    records = make_client().query("caseStudy", filters={"slug": "acme"}, limit=1)

    assert len(records) == 1
    record = records[0]
    assert record.id == "cs-1"
    assert record.slug == "acme"
    assert record.content_type == "caseStudy"
    assert record.created_at == "2024-01-01T00:00:00Z"
    assert record.fields["thumbnailImage"]["fields"]["file"]["url"] == "//img/a1.png"
    assert record.fields["casetype"]["sys"]["id"] == "T1"
    assert record.fields["casetype"]["fields"]["name"] == "Branding"
    assert record.fields["block2"] == link("Asset", "gone")


def test_http_error_becomes_remote_fetch_error(monkeypatch):
    error = HTTPError(
        "https://cdn.contentful.com", 401, "Unauthorized", {}, io.BytesIO(b'{"message": "bad token"}')
    )
    monkeypatch.setattr(cms_module, "urlopen", Recorder(error=error))

    with pytest.raises(RemoteFetchError) as excinfo:
        make_client().query("service")
    assert excinfo.value.status == 401
    assert excinfo.value.content_type == "service"


@pytest.mark.parametrize("error", [URLError("connection refused"), TimeoutError("timed out")])
def test_network_failures_become_remote_fetch_error(monkeypatch, error):
    monkeypatch.setattr(cms_module, "urlopen", Recorder(error=error))
    with pytest.raises(RemoteFetchError) as excinfo:
        make_client().query("service")
    assert excinfo.value.status is None


class TruncatedBody(io.BytesIO):
    def read(self, *args):
        raise IncompleteRead(b'{"items": [', 512)


def test_truncated_body_becomes_remote_fetch_error(monkeypatch):
    monkeypatch.setattr(cms_module, "urlopen", lambda req, timeout=None: TruncatedBody())
    with pytest.raises(RemoteFetchError) as excinfo:
        make_client().query("caseStudy")
    assert excinfo.value.content_type == "caseStudy"
    assert excinfo.value.status is None


def test_unreadable_payload_becomes_remote_fetch_error(monkeypatch):
    monkeypatch.setattr(cms_module, "urlopen", Recorder(raw=b"<html>gateway</html>"))
    with pytest.raises(RemoteFetchError):
        make_client().query("service")


def test_invalid_arguments_are_programming_errors():
    client = make_client()
    with pytest.raises(ValueError):
        client.build_params("blogPost")
    with pytest.raises(ValueError):
        client.build_params("service", limit=0)


def test_from_config_uses_configured_content_types():
    client = ContentfulClient.from_config(
        {
            "CONTENTFUL_SPACE_ID": "abc",
            "CONTENTFUL_CDA_TOKEN": "tok",
            "CMS_CONTENT_TYPES": Config.CMS_CONTENT_TYPES,
        }
    )
    assert client.is_configured
    assert client.build_params("service")["content_type"] == Config.CMS_CONTENT_TYPES["service"]
    assert client.environment == "master"
