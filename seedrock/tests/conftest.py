import pytest

from seedrock import create_app
from seedrock.tests.factories import FakeCmsClient

TEST_CONFIG = {
    "TESTING": True,
    "SECRET_KEY": "test-secret-key",
    "LOG_JSON": False,
    "SESSION_COOKIE_SECURE": False,
    "TRUST_PROXY_HEADERS": False,
    "CONTENTFUL_SPACE_ID": "space",
    "CONTENTFUL_CDA_TOKEN": "token",
}


def build_test_app(cms_client, overrides=None):
    config = dict(TEST_CONFIG)
    if overrides:
        config.update(overrides)
    return create_app(config, cms_client=cms_client)


@pytest.fixture()
def cms():
    return FakeCmsClient()


@pytest.fixture()
def app(cms):
    return build_test_app(cms)


@pytest.fixture()
def client(app):
    return app.test_client()
