"""Tests for the HTTP surface."""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, Mock

from app.main import AccessDecision, app, get_access_gate, get_orchestrator
from collectors.errors import SoftBlocked
from core.config import CleaningMethod, FetchMethod
from core.errors import InsufficientContentError, RemoteBlockedError
from orchestration.runner import PipelineInfo, PipelineOrchestrator
from tests.helpers import JOB_URL

MODEL = {"provider": "ollama", "model": "llama3.2", "numCtx": 4096}


@pytest.fixture
def mock_orchestrator(sample_job):
    orchestrator = Mock(spec=PipelineOrchestrator)
    orchestrator.extract_from_url = AsyncMock(return_value=sample_job)
    orchestrator.extract_from_pasted_text = AsyncMock(return_value=sample_job)
    orchestrator.reprocess_job = AsyncMock(return_value=sample_job)
    orchestrator.pipeline_info = AsyncMock(return_value=PipelineInfo(has_pipeline_data=False))
    return orchestrator


@pytest.fixture
def client(mock_orchestrator):
    app.dependency_overrides[get_orchestrator] = lambda: mock_orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestExtractEndpoint:
    """POST /api/ai/job/extract"""

    def test_url_request(self, client, mock_orchestrator, sample_job):
        response = client.post(
            "/api/ai/job/extract",
            json={
                "url": JOB_URL,
                "selectedModel": MODEL,
                "pipelineSettings": {"cleaningMethod": "html-strip", "fetchMethod": "standard"},
            },
        )

        assert response.status_code == 200
        assert response.json() == sample_job.to_output()
        assert response.json()["salaryMin"] == 120000

        url, provider, settings = mock_orchestrator.extract_from_url.await_args.args
        assert url == JOB_URL
        assert provider.num_ctx == 4096
        assert settings.cleaning_method == CleaningMethod.HTML_STRIP

    def test_pasted_content_takes_precedence(self, client, mock_orchestrator):
        response = client.post(
            "/api/ai/job/extract",
            json={"url": JOB_URL, "htmlContent": "<p>posting</p>", "selectedModel": MODEL},
        )

        assert response.status_code == 200
        mock_orchestrator.extract_from_pasted_text.assert_awaited_once()
        mock_orchestrator.extract_from_url.assert_not_awaited()

    def test_pipeline_error_maps_to_status(self, client, mock_orchestrator):
        mock_orchestrator.extract_from_url.side_effect = RemoteBlockedError(
            "This site blocked the request. Try pasting the job description manually."
        )

        response = client.post("/api/ai/job/extract", json={"url": JOB_URL, "selectedModel": MODEL})

        assert response.status_code == 422
        assert response.json() == {
            "error": "This site blocked the request. Try pasting the job description manually."
        }

    def test_access_gate_refusal(self, client, mock_orchestrator):
        gate = Mock()
        gate.check = AsyncMock(
            return_value=AccessDecision(allowed=False, retry_after_seconds=29.2)
        )
        app.dependency_overrides[get_access_gate] = lambda: gate

        response = client.post("/api/ai/job/extract", json={"url": JOB_URL, "selectedModel": MODEL})

        assert response.status_code == 429
        assert response.headers["retry-after"] == "30"
        assert "30 seconds" in response.json()["error"]
        mock_orchestrator.extract_from_url.assert_not_awaited()


class TestReprocessEndpoint:
    """POST /api/ai/job/reprocess"""

    def test_reprocess(self, client, mock_orchestrator, sample_job):
        response = client.post(
            "/api/ai/job/reprocess",
            json={"jobId": "job-1", "selectedModel": MODEL},
        )

        assert response.status_code == 200
        assert response.json()["title"] == sample_job.title
        job_id, provider, settings = mock_orchestrator.reprocess_job.await_args.args
        assert job_id == "job-1"
        assert provider.model_name == "llama3.2"
        assert settings is None

    def test_insufficient_content(self, client, mock_orchestrator):
        mock_orchestrator.reprocess_job.side_effect = InsufficientContentError(
            "Re-processing produced insufficient text content."
        )

        response = client.post(
            "/api/ai/job/reprocess", json={"jobId": "job-1", "selectedModel": MODEL}
        )

        assert response.status_code == 422
        assert response.json()["error"] == "Re-processing produced insufficient text content."


class TestInfoEndpoints:
    """Pipeline info and health."""

    def test_pipeline_info(self, client, mock_orchestrator):
        mock_orchestrator.pipeline_info.return_value = PipelineInfo(
            has_pipeline_data=True, config_hash="a1b2c3d4", config_changed=True
        )

        response = client.get(
            "/api/jobs/job-1/pipeline-info",
            params={"provider": "ollama", "model": "qwen2.5", "cleaning_method": "html-strip"},
        )

        assert response.status_code == 200
        assert response.json()["config_hash"] == "a1b2c3d4"
        assert response.json()["config_changed"] is True
        job_id, provider, settings = mock_orchestrator.pipeline_info.await_args.args
        assert job_id == "job-1"
        assert provider.model == "qwen2.5"
        assert settings.cleaning_method == CleaningMethod.HTML_STRIP

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestConfiguredDefaults:
    """configs/pipeline.yaml applies to requests without pipelineSettings."""

    @pytest.fixture
    def project_dir(self, tmp_path, monkeypatch):
        (tmp_path / "configs").mkdir()
        (tmp_path / "configs" / "pipeline.yaml").write_text(
            "pipeline:\n  cleaningMethod: html-strip\n  fetchMethod: standard\n"
        )
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("RUNS_DIR", str(tmp_path / "runs"))
        get_orchestrator.cache_clear()
        yield tmp_path
        get_orchestrator.cache_clear()

    def test_orchestrator_carries_yaml_defaults(self, project_dir):
        orchestrator = get_orchestrator()

        assert orchestrator.defaults.pipeline.fetch_method == FetchMethod.STANDARD
        assert orchestrator.defaults.pipeline.cleaning_method == CleaningMethod.HTML_STRIP

    def test_request_without_settings_uses_yaml_fetch_method(
        self, project_dir, fetcher, invoker
    ):
        orchestrator = get_orchestrator()
        orchestrator.fetcher = fetcher
        orchestrator.invoker = invoker
        fetcher.fetch_standard.side_effect = SoftBlocked(403)
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator

        try:
            response = TestClient(app).post(
                "/api/ai/job/extract", json={"url": JOB_URL, "selectedModel": MODEL}
            )
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 422
        assert "blocked" in response.json()["error"]
        fetcher.fetch_rendered.assert_not_awaited()
        invoker.extract.assert_not_awaited()
