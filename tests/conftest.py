import os

import pytest

os.environ.setdefault('OPENAI_API_KEY', 'test-openai-key')
os.environ.setdefault('CHROMADB_API_KEY', 'test-chroma-key')
os.environ.setdefault('CHROMADB_TENANT', 'test-tenant')
os.environ.setdefault('CHROMADB_COLLECTION', 'tds-excerpts')

from fastapi.testclient import TestClient  # noqa: E402

from tests.fakes import (DOCKER_EXCERPTS, FakeCollection,  # noqa: E402
                         FakeOpenAI, build_answerer)
from virtual_ta.main import app  # noqa: E402


@pytest.fixture
def openai_client():
    return FakeOpenAI()


@pytest.fixture
def collection():
    return FakeCollection(DOCKER_EXCERPTS)


@pytest.fixture
def client(openai_client, collection):
    app.state.answerer = build_answerer(openai_client, collection)
    return TestClient(app)
