"""OllamaProvider against a mocked native daemon (``httpx.MockTransport``)."""
from __future__ import annotations

import asyncio
import json
from contextlib import aclosing

import httpx
import pytest

from local_providers.base.errors import (
    CancelledError,
    GenerationError,
    ModelNotFoundError,
    ProviderConnectionError,
)
from local_providers.base.interfaces import LocalLLMProvider
from local_providers.base.models import ChatMessage, ChatOptions
from local_providers.ollama import OllamaProvider
from utils import Recorder, chunked, hanging, ndjson, routes

TAGS = {
    "models": [
        {
            "name": "llama3.1:8b",
            "model": "llama3.1:8b",
            "modified_at": "2024-07-23T10:00:00Z",
            "size": 4920753328,
            "digest": "46e0c10c039e",
            "details": {
                "format": "gguf",
                "family": "llama",
                "parameter_size": "8.0B",
                "quantization_level": "Q4_K_M",
            },
        },
        {
            "name": "nomic-embed-text:latest",
            "model": "nomic-embed-text:latest",
            "modified_at": "2024-06-01T08:00:00Z",
            "size": 274302450,
            "digest": "0a109f422b47",
        },
    ]
}

OPTS = ChatOptions(
    model="llama3.1:8b",
    messages=[ChatMessage(role="system", content="Be brief."), ChatMessage(role="user", content="Hi")],
    temperature=0.2,
    max_tokens=64,
)


def _provider(handler, **kwargs) -> OllamaProvider:
    return OllamaProvider(transport=httpx.MockTransport(handler), **kwargs)


def _frame(content: str, done: bool = False, **extra):
    frame = {"model": "llama3.1:8b", "message": {"role": "assistant", "content": content}, "done": done}
    frame.update(extra)
    return frame


def test_satisfies_contract_and_defaults():
    provider = OllamaProvider()
    assert isinstance(provider, LocalLLMProvider)  # nosec B101
    assert provider.provider_name == "ollama"  # nosec B101
    assert provider.base_url == "http://localhost:11434"  # nosec B101
    assert provider.timeout == 120.0 and provider.max_retries == 3  # nosec B101


@pytest.mark.asyncio
async def test_list_models_maps_entries_verbatim():
    rec = Recorder(routes({"GET /api/tags": httpx.Response(200, json=TAGS)}))
    models = await _provider(rec).list_models()

    assert len(models) == 2  # nosec B101
    first, second = models
    assert first.name == "llama3.1:8b" and first.size == 4920753328  # nosec B101
    assert first.digest == "46e0c10c039e" and first.modified_at == "2024-07-23T10:00:00Z"  # nosec B101
    assert first.details.parameter_size == "8.0B"  # nosec B101
    assert first.details.quantization_level == "Q4_K_M" and first.details.family == "llama"  # nosec B101
    assert second.details is None  # nosec B101
    assert rec.paths == ["/api/tags"]  # nosec B101


@pytest.mark.asyncio
async def test_chat_single_shot_maps_usage_and_payload():
    body = _frame("Hello there.", done=True, done_reason="stop", prompt_eval_count=12, eval_count=3)
    rec = Recorder(routes({"POST /api/chat": httpx.Response(200, json=body)}))
    provider = _provider(rec)

    resp = await provider.chat(OPTS)

    assert resp.text == "Hello there." and resp.model == "llama3.1:8b"  # nosec B101
    assert (resp.usage.prompt, resp.usage.completion, resp.usage.total) == (12, 3, 15)  # nosec B101
    assert resp.finish_reason == "stop"  # nosec B101
    assert resp.message.role == "assistant"  # nosec B101
    sent = rec.body()
    assert sent["stream"] is False  # nosec B101
    assert sent["options"] == {"temperature": 0.2, "num_predict": 64}  # nosec B101
    assert sent["messages"][0] == {"role": "system", "content": "Be brief."}  # nosec B101
    assert provider.active_requests() == []  # nosec B101


@pytest.mark.asyncio
async def test_chat_length_finish_reason():
    body = _frame("cut", done=True, done_reason="length", prompt_eval_count=1, eval_count=64)
    resp = await _provider(routes({"POST /api/chat": httpx.Response(200, json=body)})).chat(OPTS)
    assert resp.finish_reason == "length"  # nosec B101


@pytest.mark.asyncio
async def test_chat_unknown_model_raises_model_not_found():
    handler = routes({"POST /api/chat": httpx.Response(404, json={"error": 'model "nope" not found, try pulling it first'})})
    with pytest.raises(ModelNotFoundError) as ei:
        await _provider(handler).chat(OPTS)
    assert "not found" in ei.value.message  # nosec B101


@pytest.mark.asyncio
async def test_chat_server_error_is_generation_error_without_retry():
    rec = Recorder(routes({"POST /api/chat": httpx.Response(500, json={"error": "llama runner crashed"})}))
    with pytest.raises(GenerationError):
        await _provider(rec).chat(OPTS)
    assert len(rec.requests) == 1  # nosec B101


@pytest.mark.asyncio
async def test_chat_stream_maps_each_frame_and_skips_malformed_lines():
    body = (
        ndjson(_frame("Hel"))
        + b"this is not json\n"
        + ndjson(_frame("lo"), _frame("!"), _frame("", done=True, done_reason="stop", prompt_eval_count=5, eval_count=3))
    )
    rec = Recorder(routes({"POST /api/chat": lambda r: httpx.Response(200, content=chunked([body[:30], body[30:]]))}))
    provider = _provider(rec)

    chunks = [c async for c in provider.chat_stream(OPTS)]

    assert [c.delta for c in chunks] == ["Hel", "lo", "!", ""]  # nosec B101
    assert [c.done for c in chunks] == [False, False, False, True]  # nosec B101
    terminal = chunks[-1]
    assert terminal.usage.total == 8 and terminal.finish_reason == "stop"  # nosec B101
    assert all(c.usage is None for c in chunks[:-1])  # nosec B101
    assert rec.body()["stream"] is True  # nosec B101
    assert provider.active_requests() == []  # nosec B101


@pytest.mark.asyncio
async def test_chat_stream_is_lazy():
    rec = Recorder(routes({"POST /api/chat": httpx.Response(200, content=ndjson(_frame("x", done=True)))}))
    stream = _provider(rec).chat_stream(OPTS)
    assert rec.requests == []  # nosec B101
    assert [c.delta async for c in stream] == ["x"]  # nosec B101


@pytest.mark.asyncio
async def test_chat_stream_error_frame_propagates():
    body = ndjson(_frame("partial"), {"error": "out of memory"})
    provider = _provider(routes({"POST /api/chat": httpx.Response(200, content=body)}))
    seen = []
    with pytest.raises(GenerationError) as ei:
        async for chunk in provider.chat_stream(OPTS):
            seen.append(chunk.delta)
    assert seen == ["partial"] and ei.value.message == "out of memory"  # nosec B101


@pytest.mark.asyncio
async def test_chat_stream_without_terminal_frame_is_a_connection_error():
    provider = _provider(routes({"POST /api/chat": httpx.Response(200, content=ndjson(_frame("a"), _frame("b")))}))
    with pytest.raises(ProviderConnectionError):
        _ = [c async for c in provider.chat_stream(OPTS)]


@pytest.mark.asyncio
async def test_chat_stream_unknown_model_raises_before_any_chunk():
    provider = _provider(routes({"POST /api/chat": httpx.Response(404, json={"error": "model not found"})}))
    with pytest.raises(ModelNotFoundError):
        _ = [c async for c in provider.chat_stream(OPTS)]


@pytest.mark.asyncio
async def test_cancel_mid_chat_resolves_cancelled_and_clears_registry():
    started = asyncio.Event()

    async def slow(request):
        started.set()
        await asyncio.sleep(10)
        return httpx.Response(200, json=_frame("late", done=True))

    provider = _provider(slow)
    task = asyncio.create_task(provider.chat(OPTS, request_id="c1"))
    await started.wait()

    assert provider.cancel("c1") is True  # nosec B101
    assert "c1" not in provider.active_requests()  # nosec B101
    with pytest.raises(CancelledError):
        await task
    assert provider.cancel("c1") is False  # nosec B101


@pytest.mark.asyncio
async def test_cancel_mid_stream_ends_quietly_without_terminal_chunk():
    handler = routes({"POST /api/chat": lambda r: httpx.Response(200, content=hanging([ndjson(_frame("first"))]))})
    provider = _provider(handler)

    chunks = []
    async for chunk in provider.chat_stream(OPTS, request_id="s1"):
        chunks.append(chunk)
        provider.cancel("s1")

    assert [c.delta for c in chunks] == ["first"]  # nosec B101
    assert provider.active_requests() == []  # nosec B101


@pytest.mark.asyncio
async def test_pull_reports_non_decreasing_progress_and_completes_on_success():
    frames = [
        {"status": "pulling manifest"},
        {"status": "pulling 6a0746a1ec1a", "digest": "sha256:6a07", "total": 100, "completed": 10},
        {"status": "pulling 6a0746a1ec1a", "digest": "sha256:6a07", "total": 100, "completed": 60},
        {"status": "pulling 6a0746a1ec1a", "digest": "sha256:6a07", "total": 100, "completed": 40},
        {"status": "verifying sha256 digest"},
        {"status": "success"},
    ]
    rec = Recorder(routes({"POST /api/pull": httpx.Response(200, content=ndjson(*frames))}))
    events = []

    await _provider(rec).pull_model("llama3.2:3b", events.append)

    assert [e.status for e in events][-1] == "success"  # nosec B101
    assert [e.completed for e in events if e.digest == "sha256:6a07"] == [10, 60, 60]  # nosec B101
    assert events[2].percent == 60.0  # nosec B101
    assert rec.body()["model"] == "llama3.2:3b" and rec.body()["stream"] is True  # nosec B101


@pytest.mark.asyncio
async def test_pull_accepts_async_progress_sink():
    handler = routes({"POST /api/pull": httpx.Response(200, content=ndjson({"status": "success"}))})
    seen = []

    async def sink(event):
        await asyncio.sleep(0)
        seen.append(event.status)

    await _provider(handler).pull_model("tiny", sink)
    assert seen == ["success"]  # nosec B101


@pytest.mark.asyncio
async def test_pull_error_frame_for_missing_model():
    body = ndjson({"status": "pulling manifest"}, {"error": "pull model manifest: file does not exist"})
    with pytest.raises(ModelNotFoundError):
        await _provider(routes({"POST /api/pull": httpx.Response(200, content=body)})).pull_model("nope")


@pytest.mark.asyncio
async def test_pull_stream_ending_early_is_a_connection_error():
    body = ndjson({"status": "pulling manifest"})
    with pytest.raises(ProviderConnectionError):
        await _provider(routes({"POST /api/pull": httpx.Response(200, content=body)})).pull_model("x")


@pytest.mark.asyncio
async def test_cancel_download_raises_cancelled():
    handler = routes({"POST /api/pull": lambda r: httpx.Response(200, content=hanging([ndjson({"status": "pulling manifest"})]))})
    provider = _provider(handler)

    def on_progress(event):
        provider.cancel("dl")

    with pytest.raises(CancelledError):
        await provider.pull_model("big", on_progress, request_id="dl")
    assert provider.active_requests() == []  # nosec B101


@pytest.mark.asyncio
async def test_delete_model_sends_name_and_maps_404():
    rec = Recorder(routes({"DELETE /api/delete": httpx.Response(200)}))
    await _provider(rec).delete_model("llama3.1:8b")
    assert rec.body()["model"] == "llama3.1:8b"  # nosec B101

    missing = routes({"DELETE /api/delete": httpx.Response(404, json={"error": "model 'gone' not found"})})
    with pytest.raises(ModelNotFoundError):
        await _provider(missing).delete_model("gone")


@pytest.mark.asyncio
async def test_embed_reads_embeddings_and_legacy_shape():
    rec = Recorder(routes({"POST /api/embed": httpx.Response(200, json={"embeddings": [[0.1, 0.2, 0.3]]})}))
    assert await _provider(rec).embed("hello", "nomic-embed-text") == [0.1, 0.2, 0.3]  # nosec B101
    assert rec.body() == {"model": "nomic-embed-text", "input": "hello"}  # nosec B101

    legacy = routes({"POST /api/embed": httpx.Response(200, json={"embedding": [1.0, 2.0]})})
    assert await _provider(legacy).embed("hi", "m") == [1.0, 2.0]  # nosec B101

    empty = routes({"POST /api/embed": httpx.Response(200, json={"embeddings": []})})
    with pytest.raises(GenerationError):
        await _provider(empty).embed("hi", "m")


@pytest.mark.asyncio
async def test_is_available_never_raises():
    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    rec = Recorder(refuse)
    assert await _provider(rec).is_available() is False  # nosec B101
    assert len(rec.requests) == 1  # nosec B101
    ok = routes({"GET /api/version": httpx.Response(200, json={"version": "0.5.1"})})
    assert await _provider(ok).is_available() is True  # nosec B101


@pytest.mark.asyncio
async def test_is_available_false_for_unreachable_address(monkeypatch):
    monkeypatch.setenv("LOCAL_PROVIDERS_PROBE_TIMEOUT_SECONDS", "0.5")
    provider = OllamaProvider(base_url="http://127.0.0.1:9")
    assert await provider.is_available() is False  # nosec B101
    await provider.aclose()


@pytest.mark.asyncio
async def test_get_status_collects_version_models_and_loaded_model():
    handler = routes(
        {
            "GET /api/version": httpx.Response(200, json={"version": "0.5.1"}),
            "GET /api/tags": httpx.Response(200, json=TAGS),
            "GET /api/ps": httpx.Response(200, json={"models": [{"name": "llama3.1:8b"}]}),
        }
    )
    status = await _provider(handler).get_status()
    assert status.running and status.version == "0.5.1"  # nosec B101
    assert status.models_count == 2 and status.loaded_model == "llama3.1:8b"  # nosec B101


@pytest.mark.asyncio
async def test_get_status_tolerates_missing_ps_and_never_raises():
    partial = routes(
        {
            "GET /api/version": httpx.Response(200, json={"version": "0.1.0"}),
            "GET /api/tags": httpx.Response(200, json={"models": []}),
        }
    )
    status = await _provider(partial).get_status()
    assert status.running and status.loaded_model is None  # nosec B101

    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    down = await _provider(refuse).get_status()
    assert down.running is False and down.models_count == 0  # nosec B101


@pytest.mark.asyncio
async def test_test_model_sends_short_prompt():
    rec = Recorder(routes({"POST /api/chat": httpx.Response(200, json=_frame("Hello!", done=True))}))
    assert await _provider(rec).test_model("llama3.1:8b") == "Hello!"  # nosec B101
    assert rec.body()["options"]["num_predict"] == 32  # nosec B101


@pytest.mark.asyncio
async def test_chat_stream_skips_frames_that_are_not_chat_frames():
    body = ndjson(_frame("a"), {}, {"status": "unrelated"}, _frame("b", done=True))
    provider = _provider(routes({"POST /api/chat": httpx.Response(200, content=body)}))
    assert [c.delta async for c in provider.chat_stream(OPTS)] == ["a", "b"]  # nosec B101

    with pytest.raises(GenerationError):
        await _provider(routes({"POST /api/chat": httpx.Response(200, json={})})).chat(OPTS)


@pytest.mark.asyncio
async def test_cancel_all_aborts_chat_pull_and_stream_in_flight():
    chat_started, pull_started, stream_started = asyncio.Event(), asyncio.Event(), asyncio.Event()

    async def slow_chat(request):
        chat_started.set()
        await asyncio.sleep(10)
        return httpx.Response(200, json=_frame("late", done=True))

    def chat_route(request):
        if json.loads(request.content)["stream"]:
            return httpx.Response(200, content=hanging([ndjson(_frame("a"))]))
        return slow_chat(request)

    handler = routes(
        {
            "POST /api/chat": chat_route,
            "POST /api/pull": lambda r: httpx.Response(200, content=hanging([ndjson({"status": "pulling manifest"})])),
        }
    )
    provider = _provider(handler)

    async def consume():
        seen = []
        async for chunk in provider.chat_stream(OPTS):
            seen.append(chunk.delta)
            stream_started.set()
        return seen

    chat = asyncio.create_task(provider.chat(OPTS))
    pull = asyncio.create_task(provider.pull_model("big", lambda e: pull_started.set()))
    stream = asyncio.create_task(consume())
    await asyncio.gather(chat_started.wait(), pull_started.wait(), stream_started.wait())
    assert len(provider.active_requests()) == 3  # nosec B101

    assert provider.cancel_all() == 3  # nosec B101
    assert provider.active_requests() == []  # nosec B101
    with pytest.raises(CancelledError):
        await chat
    with pytest.raises(CancelledError):
        await pull
    assert await stream == ["a"]  # nosec B101


@pytest.mark.asyncio
async def test_concurrent_streams_interleave_and_keep_their_own_order():
    arrived: list = []
    both_open = asyncio.Event()

    def paced(prefix):
        async def _gen():
            yield ndjson(_frame(f"{prefix}0"))
            arrived.append(prefix)
            if len(arrived) == 2:
                both_open.set()
            await both_open.wait()
            for i in (1, 2):
                await asyncio.sleep(0)
                yield ndjson(_frame(f"{prefix}{i}"))
            yield ndjson(_frame("", done=True, done_reason="stop"))

        return _gen()

    def chat_route(request):
        prefix = json.loads(request.content)["messages"][-1]["content"]
        return httpx.Response(200, content=paced(prefix))

    provider = _provider(routes({"POST /api/chat": chat_route}))
    peak = []

    async def collect(prompt):
        opts = ChatOptions(model="llama3.1:8b", messages=[ChatMessage(role="user", content=prompt)])
        deltas = []
        async for chunk in provider.chat_stream(opts):
            deltas.append(chunk.delta)
            peak.append(len(provider.active_requests()))
        return deltas

    a, b = await asyncio.gather(collect("A"), collect("B"))

    assert a == ["A0", "A1", "A2", ""]  # nosec B101
    assert b == ["B0", "B1", "B2", ""]  # nosec B101
    assert max(peak) == 2  # nosec B101
    assert provider.active_requests() == []  # nosec B101


@pytest.mark.asyncio
async def test_leaving_a_closed_stream_early_releases_the_request():
    handler = routes({"POST /api/chat": lambda r: httpx.Response(200, content=hanging([ndjson(_frame("first"))]))})
    provider = _provider(handler)

    async with aclosing(provider.chat_stream(OPTS, request_id="early")) as stream:
        async for chunk in stream:
            assert provider.active_requests() == ["early"]  # nosec B101
            break

    assert chunk.delta == "first"  # nosec B101
    assert provider.active_requests() == []  # nosec B101
