# workverify/tests/conftest.py
from types import SimpleNamespace

import pytest
import requests
from fastapi.testclient import TestClient

from workverify.tests.fakes import FakeCompletions, RelayAdapter


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def settings(upload_dir):
    from workverify.config import Settings
    return Settings(upload_dir=str(upload_dir), openai_api_key="test-key")


@pytest.fixture
def fake_openai(upload_dir):
    return SimpleNamespace(chat=SimpleNamespace(completions=FakeCompletions(upload_dir)))


@pytest.fixture
def completions(fake_openai):
    return fake_openai.chat.completions


@pytest.fixture
def relay(settings, fake_openai):
    import workverify.app as app_module
    from workverify.completion import CompletionService

    service = CompletionService(settings, client=fake_openai)
    app = app_module.app
    app.dependency_overrides[app_module.get_settings] = lambda: settings
    app.dependency_overrides[app_module.get_completion_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def adapter(relay):
    return RelayAdapter(relay)


@pytest.fixture
def verify_client(adapter):
    from workverify.client import VerifyClient

    session = requests.Session()
    session.mount("http://testserver", adapter)
    return VerifyClient("http://testserver", timeout=5, session=session)
