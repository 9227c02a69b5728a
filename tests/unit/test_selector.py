"""Unit tests for provider selection."""

import asyncio

import httpx
import pytest

from recipe_pipeline.models.errors import NoProviderAvailableError
from recipe_pipeline.models.models import ProviderKind
from recipe_pipeline.providers.selector import ProviderSelector


TAGS = {"models": [{"name": "gemma3:1b", "size": 815319791}, {"name": "llama3.2:latest"}]}


class ProbeCounter:
    """MockTransport handler answering /api/tags, counting calls."""

    def __init__(self, status_code=200, json_body=None, error=None, delay=0.0):
        self.status_code = status_code
        self.json_body = TAGS if json_body is None else json_body
        self.error = error
        self.delay = delay
        self.calls = 0

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        assert request.url.path == "/api/tags"
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error("probe failed", request=request)
        return httpx.Response(self.status_code, json=self.json_body)


def make_selector(cfg, handler) -> ProviderSelector:
    return ProviderSelector(cfg, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


class TestProbe:
    """Test the local reachability probe."""

    @pytest.mark.asyncio
    async def test_reachable(self, pipeline_config):
        assert await make_selector(pipeline_config, ProbeCounter()).probe_local() is True

    @pytest.mark.asyncio
    async def test_connection_refused(self, pipeline_config):
        selector = make_selector(pipeline_config, ProbeCounter(error=httpx.ConnectError))
        assert await selector.probe_local() is False

    @pytest.mark.asyncio
    async def test_error_status(self, pipeline_config):
        selector = make_selector(pipeline_config, ProbeCounter(status_code=500))
        assert await selector.probe_local() is False

    @pytest.mark.asyncio
    async def test_probe_bounded_by_probe_timeout(self, pipeline_config):
        """Test a hanging server counts as unreachable after PROBE_TIMEOUT_SECONDS."""
        pipeline_config.PROBE_TIMEOUT_SECONDS = 0.05
        selector = make_selector(pipeline_config, ProbeCounter(delay=5))

        result = await asyncio.wait_for(selector.probe_local(), timeout=1)

        assert result is False

    @pytest.mark.asyncio
    async def test_list_local_models(self, pipeline_config):
        models = await make_selector(pipeline_config, ProbeCounter()).list_local_models()
        assert models == ["gemma3:1b", "llama3.2:latest"]

    @pytest.mark.asyncio
    async def test_list_local_models_unreachable(self, pipeline_config):
        selector = make_selector(pipeline_config, ProbeCounter(error=httpx.ConnectError))
        assert await selector.list_local_models() == []


class TestSelect:
    """Test provider selection and caching."""

    @pytest.mark.asyncio
    async def test_prefers_local_provider(self, pipeline_config):
        pipeline_config.OPENAI_API_KEY = "sk-test"
        selector = make_selector(pipeline_config, ProbeCounter())

        assert await selector.select() is ProviderKind.OLLAMA
        assert selector.selected is ProviderKind.OLLAMA

    @pytest.mark.asyncio
    async def test_falls_back_to_openai(self, pipeline_config):
        pipeline_config.OPENAI_API_KEY = "sk-test"
        selector = make_selector(pipeline_config, ProbeCounter(error=httpx.ConnectError))

        assert await selector.select() is ProviderKind.OPENAI

    @pytest.mark.asyncio
    async def test_no_provider_available(self, pipeline_config):
        selector = make_selector(pipeline_config, ProbeCounter(error=httpx.ConnectError))

        with pytest.raises(NoProviderAvailableError):
            await selector.select()
        assert selector.selected is None

    @pytest.mark.asyncio
    async def test_selection_cached(self, pipeline_config):
        """Test the probe runs once and later calls reuse the choice."""
        probe = ProbeCounter()
        selector = make_selector(pipeline_config, probe)

        await selector.select()
        await selector.select()
        await asyncio.gather(*(selector.select() for _ in range(5)))

        assert probe.calls == 1

    @pytest.mark.asyncio
    async def test_refresh_reprobes(self, pipeline_config):
        pipeline_config.OPENAI_API_KEY = "sk-test"
        probe = ProbeCounter()
        selector = make_selector(pipeline_config, probe)

        assert await selector.select() is ProviderKind.OLLAMA
        probe.error = httpx.ConnectError
        assert await selector.select() is ProviderKind.OLLAMA
        assert await selector.refresh() is ProviderKind.OPENAI
        assert probe.calls == 2

    @pytest.mark.asyncio
    async def test_failed_selection_not_cached(self, pipeline_config):
        probe = ProbeCounter(error=httpx.ConnectError)
        selector = make_selector(pipeline_config, probe)

        with pytest.raises(NoProviderAvailableError):
            await selector.select()
        probe.error = None
        assert await selector.select() is ProviderKind.OLLAMA

    @pytest.mark.asyncio
    async def test_pinned_ollama_skips_probe(self, pipeline_config):
        pipeline_config.AI_PROVIDER = "ollama"
        probe = ProbeCounter(error=httpx.ConnectError)

        assert await make_selector(pipeline_config, probe).select() is ProviderKind.OLLAMA
        assert probe.calls == 0

    @pytest.mark.asyncio
    async def test_pinned_openai(self, pipeline_config):
        pipeline_config.AI_PROVIDER = "openai"
        pipeline_config.OPENAI_API_KEY = "sk-test"
        probe = ProbeCounter()

        assert await make_selector(pipeline_config, probe).select() is ProviderKind.OPENAI
        assert probe.calls == 0

    @pytest.mark.asyncio
    async def test_pinned_openai_without_key(self, pipeline_config):
        pipeline_config.AI_PROVIDER = "openai"

        with pytest.raises(NoProviderAvailableError, match="OPENAI_API_KEY"):
            await make_selector(pipeline_config, ProbeCounter()).select()


class TestStatus:
    """Test provider status reporting."""

    @pytest.mark.asyncio
    async def test_status_local(self, pipeline_config):
        status = await make_selector(pipeline_config, ProbeCounter()).status()

        assert status.provider is ProviderKind.OLLAMA
        assert status.available is True
        assert status.models == ["gemma3:1b", "llama3.2:latest"]

    @pytest.mark.asyncio
    async def test_status_hosted(self, pipeline_config):
        pipeline_config.OPENAI_API_KEY = "sk-test"
        status = await make_selector(pipeline_config, ProbeCounter(error=httpx.ConnectError)).status()

        assert status.provider is ProviderKind.OPENAI
        assert status.available is True
        assert status.models == []

    @pytest.mark.asyncio
    async def test_status_none(self, pipeline_config):
        status = await make_selector(pipeline_config, ProbeCounter(error=httpx.ConnectError)).status()

        assert status.provider is None
        assert status.available is False
