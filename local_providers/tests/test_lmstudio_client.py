"""LMStudioProvider against a mocked OpenAI-compatible server."""
from __future__ import annotations

import httpx
import pytest

from local_providers.base.errors import (
    GenerationError,
    InvalidRequestError,
    ModelNotFoundError,
    ProviderConnectionError,
)
from local_providers.base.interfaces import LocalLLMProvider
from local_providers.base.models import ChatMessage, ChatOptions
from local_providers.base.streaming import accumulate_chunks
from local_providers.lmstudio import LMStudioProvider
from utils import Recorder, chunked, event_stream, routes

OPTS = ChatOptions(
    model="qwen2.5-7b-instruct",
    messages=[ChatMessage(role="user", content="Count to three")],
    temperature=0.7,
    max_tokens=50,
    stop=("\n\n",),
)


def _provider(handler, **kwargs) -> LMStudioProvider:
    return LMStudioProvider(transport=httpx.MockTransport(handler), **kwargs)


def _delta(content, finish=None, **extra):
    frame = {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "model": "qwen2.5-7b-instruct",
        "choices": [{"index": 0, "delta": {"content": content} if content is not None else {}, "finish_reason": finish}],
    }
    frame.update(extra)
    return frame


def test_satisfies_contract_and_defaults():
    provider = LMStudioProvider()
    assert isinstance(provider, LocalLLMProvider)  # nosec B101
    assert provider.provider_name == "lm-studio"  # nosec B101
    assert provider.base_url == "http://localhost:1234/v1"  # nosec B101
    assert provider.timeout == 60.0  # nosec B101


@pytest.mark.asyncio
async def test_pull_and_delete_raise_invalid_request_without_network():
    rec = Recorder(lambda request: httpx.Response(200, json={}))
    provider = _provider(rec)

    with pytest.raises(InvalidRequestError):
        await provider.pull_model("llama3.2:3b", lambda e: None)
    with pytest.raises(InvalidRequestError):
        await provider.delete_model("llama3.2:3b")
    assert rec.requests == []  # nosec B101
    assert provider.active_requests() == []  # nosec B101


@pytest.mark.asyncio
async def test_list_models_uses_ids():
    body = {"object": "list", "data": [{"id": "qwen2.5-7b-instruct", "object": "model"}, {"id": "text-embedding-nomic"}]}
    rec = Recorder(routes({"GET /v1/models": httpx.Response(200, json=body)}))
    models = await _provider(rec).list_models()
    assert [m.name for m in models] == ["qwen2.5-7b-instruct", "text-embedding-nomic"]  # nosec B101
    assert models[0].model == "qwen2.5-7b-instruct" and models[0].size == 0  # nosec B101
    assert models[0].details is None  # nosec B101


@pytest.mark.asyncio
async def test_chat_single_shot_maps_choice_and_usage():
    body = {
        "model": "qwen2.5-7b-instruct",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": "1, 2, 3"}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 9, "completion_tokens": 6, "total_tokens": 15},
    }
    rec = Recorder(routes({"POST /v1/chat/completions": httpx.Response(200, json=body)}))

    resp = await _provider(rec).chat(OPTS)

    assert resp.text == "1, 2, 3" and resp.finish_reason == "stop"  # nosec B101
    assert resp.usage.total == resp.usage.prompt + resp.usage.completion == 15  # nosec B101
    sent = rec.body()
    assert sent["stream"] is False and sent["max_tokens"] == 50  # nosec B101
    assert sent["temperature"] == 0.7 and sent["stop"] == ["\n\n"]  # nosec B101
    assert sent["messages"] == [{"role": "user", "content": "Count to three"}]  # nosec B101


@pytest.mark.asyncio
async def test_chat_without_choices_is_a_generation_error():
    handler = routes({"POST /v1/chat/completions": httpx.Response(200, json={"model": "m", "choices": []})})
    with pytest.raises(GenerationError):
        await _provider(handler).chat(OPTS)


@pytest.mark.asyncio
async def test_chat_openai_style_error_body():
    body = {"error": {"message": "Model qwen not loaded", "type": "invalid_request_error"}}
    handler = routes({"POST /v1/chat/completions": httpx.Response(404, json=body)})
    with pytest.raises(ModelNotFoundError) as ei:
        await _provider(handler).chat(OPTS)
    assert ei.value.message == "HTTP 404: Model qwen not loaded"  # nosec B101


@pytest.mark.asyncio
async def test_images_are_sent_as_data_urls():
    body = {"model": "llava", "choices": [{"message": {"content": "a cat"}, "finish_reason": "stop"}]}
    rec = Recorder(routes({"POST /v1/chat/completions": httpx.Response(200, json=body)}))
    opts = ChatOptions(model="llava", messages=[ChatMessage(role="user", content="what is this?", images=("iVBORw0KGgo=",))])

    await _provider(rec).chat(opts)

    content = rec.body()["messages"][0]["content"]
    assert content[0] == {"type": "text", "text": "what is this?"}  # nosec B101
    assert content[1]["image_url"]["url"] == "data:image/png;base64,iVBORw0KGgo="  # nosec B101


@pytest.mark.asyncio
async def test_three_content_frames_then_sentinel_yield_synthesized_terminal():
    body = event_stream(_delta("One, "), _delta("two, "), _delta("three."))
    rec = Recorder(routes({"POST /v1/chat/completions": lambda r: httpx.Response(200, content=chunked([body[:40], body[40:]]))}))
    provider = _provider(rec)

    chunks = [c async for c in provider.chat_stream(OPTS)]

    assert [c.done for c in chunks] == [False, False, False, True]  # nosec B101
    assert "".join(c.delta for c in chunks[:3]) == "One, two, three."  # nosec B101
    terminal = chunks[-1]
    assert terminal.delta == "" and terminal.finish_reason == "stop"  # nosec B101
    assert terminal.usage.total == 0  # nosec B101
    assert rec.body()["stream"] is True  # nosec B101


@pytest.mark.asyncio
async def test_finish_reason_frame_is_terminal_and_later_frames_are_ignored():
    body = event_stream(
        _delta("Hi"),
        _delta("", finish="length", usage={"prompt_tokens": 4, "completion_tokens": 1}),
        _delta("ignored"),
    )
    provider = _provider(routes({"POST /v1/chat/completions": httpx.Response(200, content=body)}))

    chunks = [c async for c in provider.chat_stream(OPTS)]

    assert [c.delta for c in chunks] == ["Hi", ""]  # nosec B101
    assert chunks[-1].done and chunks[-1].finish_reason == "length"  # nosec B101
    assert chunks[-1].usage.total == 5  # nosec B101


@pytest.mark.asyncio
async def test_stream_skips_malformed_and_keepalive_frames():
    body = (
        b": ping\n\n"
        + b"data: {not json}\n\n"
        + event_stream(_delta("ok"), {"model": "m", "choices": []})
    )
    provider = _provider(routes({"POST /v1/chat/completions": httpx.Response(200, content=body)}))
    response = await accumulate_chunks(provider.chat_stream(OPTS))
    assert response.text == "ok" and response.finish_reason == "stop"  # nosec B101


@pytest.mark.asyncio
async def test_stream_without_sentinel_is_a_connection_error():
    body = event_stream(_delta("partial"), done=False)
    provider = _provider(routes({"POST /v1/chat/completions": httpx.Response(200, content=body)}))
    with pytest.raises(ProviderConnectionError):
        _ = [c async for c in provider.chat_stream(OPTS)]


@pytest.mark.asyncio
async def test_embed_returns_first_vector():
    body = {"object": "list", "data": [{"object": "embedding", "index": 0, "embedding": [0.5, -0.25]}]}
    rec = Recorder(routes({"POST /v1/embeddings": httpx.Response(200, json=body)}))
    assert await _provider(rec).embed("hello", "text-embedding-nomic") == [0.5, -0.25]  # nosec B101
    assert rec.body() == {"model": "text-embedding-nomic", "input": "hello"}  # nosec B101


@pytest.mark.asyncio
async def test_status_reports_first_model_and_never_raises():
    body = {"data": [{"id": "qwen2.5-7b-instruct"}, {"id": "other"}]}
    status = await _provider(routes({"GET /v1/models": httpx.Response(200, json=body)})).get_status()
    assert status.running and status.loaded_model == "qwen2.5-7b-instruct"  # nosec B101
    assert status.models_count == 2 and status.version is None  # nosec B101

    broken = await _provider(routes({"GET /v1/models": httpx.Response(500, text="oops")})).get_status()
    assert broken.running is False  # nosec B101
