"""Pytest configuration and fixtures."""

import base64
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from app.relay.config import Settings, get_settings
from app.relay.main import app
from app.relay.services.dispatcher import Dispatcher, get_dispatcher
from app.relay.services.extractor import Extractor, get_extractor

from .fakes import FakeProvider, WebhookRecorder, make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider(answer='[{"name": "Narok", "imei": "355234850433208"}]')


@pytest.fixture
def webhook() -> WebhookRecorder:
    return WebhookRecorder()


@pytest.fixture
def extractor(settings: Settings, provider: FakeProvider) -> Extractor:
    return Extractor(settings, provider)


@pytest.fixture
def dispatcher(settings: Settings, webhook: WebhookRecorder) -> Dispatcher:
    return Dispatcher(settings, transport=webhook.transport)


@pytest.fixture
def client(
    extractor: Extractor, dispatcher: Dispatcher
) -> Generator[TestClient, None, None]:
    """Create a test client with the model and webhook replaced by fakes."""
    get_settings.cache_clear()
    app.dependency_overrides[get_extractor] = lambda: extractor
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    get_settings.cache_clear()


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """
    Create a minimal PDF for testing.

    The model is faked, so only the header has to be right.
    """
    return b"""%PDF-1.4
1 0 obj
<< /Type /Catalog /Pages 2 0 R >>
endobj
trailer
<< /Root 1 0 R >>
%%EOF"""


@pytest.fixture
def sample_pdf_base64(sample_pdf_bytes: bytes) -> str:
    return base64.b64encode(sample_pdf_bytes).decode("ascii")
