"""Shared fixtures for the extraction pipeline tests."""

import pytest
from unittest.mock import AsyncMock, Mock

from collectors.fetcher import PageFetcher
from core.config import ProviderConfig, Settings
from evidence.runs import FileRunStore
from orchestration.runner import PipelineOrchestrator
from parsing.llm import ExtractionInvoker
from parsing.models import ExtractedJob


@pytest.fixture
def settings(tmp_path):
    return Settings(_env_file=None, runs_dir=str(tmp_path / "runs"), verbose=0)


@pytest.fixture
def store(settings):
    return FileRunStore(settings.runs_dir)


@pytest.fixture
def sample_job():
    return ExtractedJob(
        title="Senior Engineer",
        company="Acme",
        locations=["Remote"],
        description="<p>Build and operate data services.</p>",
        job_type="FT",
        salary_min=120000,
        salary_max=150000,
    )


@pytest.fixture
def fetcher():
    mock = Mock(spec=PageFetcher)
    mock.fetch_standard = AsyncMock()
    mock.fetch_rendered = AsyncMock()
    return mock


@pytest.fixture
def invoker(sample_job):
    mock = Mock(spec=ExtractionInvoker)
    mock.extract = AsyncMock(return_value=sample_job)
    return mock


@pytest.fixture
def provider():
    return ProviderConfig(provider="ollama", model="llama3.2")


@pytest.fixture
def orchestrator(store, fetcher, invoker, settings):
    return PipelineOrchestrator(
        store=store, fetcher=fetcher, invoker=invoker, settings=settings
    )
