"""CLI action handlers.

Purpose
-------
One coroutine per subcommand. Handlers only orchestrate a provider client
and print results; they hold no protocol logic.

Error semantics
---------------
- ``ProviderError`` subclasses are printed to stderr (JSON when ``--json``)
  and mapped to exit code 1.
- Unknown provider names exit with code 2.
"""

from __future__ import annotations

import argparse
import json
import sys
from contextlib import aclosing
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..base.errors import ProviderError
from ..base.factory import ProviderFactory, UnknownProviderError
from ..base.interfaces import LocalLLMProvider
from ..base.models import ChatMessage, ChatOptions, PullProgress
from ..catalog import recommended_models
from ..utils import format_bytes, format_percent

Handler = Callable[[argparse.Namespace, LocalLLMProvider], Awaitable[int]]


def build_provider(args: argparse.Namespace) -> LocalLLMProvider:
    """Instantiate the client selected by ``--provider`` with CLI overrides."""
    return ProviderFactory.create(
        args.provider,
        base_url=args.base_url,
        timeout=args.timeout,
        max_retries=args.max_retries,
    )


def _emit(args: argparse.Namespace, payload: Any, text: str) -> None:
    print(json.dumps(payload, ensure_ascii=False, default=str) if args.json_output else text)


def _table(rows: List[List[str]], headers: List[str]) -> str:
    widths = [max(len(str(c)) for c in col) for col in zip(headers, *rows)]
    lines = ["  ".join(h.ljust(w) for h, w in zip(headers, widths))]
    lines.extend("  ".join(str(c).ljust(w) for c, w in zip(row, widths)) for row in rows)
    return "\n".join(lines)


async def handle_status(args: argparse.Namespace, provider: LocalLLMProvider) -> int:
    status = await provider.get_status()
    text = (
        f"{provider.provider_name} @ {provider.base_url}: "
        + ("running" if status.running else "not reachable")
    )
    if status.running:
        text += f" (version {status.version or 'unknown'}, {status.models_count} models"
        text += f", loaded {status.loaded_model})" if status.loaded_model else ")"
    _emit(args, {"provider": provider.provider_name, "base_url": provider.base_url, **status.to_dict()}, text)
    return 0 if status.running else 1


async def handle_models(args: argparse.Namespace, provider: LocalLLMProvider) -> int:
    models = await provider.list_models()
    rows = [
        [
            m.name,
            format_bytes(m.size) if m.size else "-",
            (m.details.parameter_size if m.details else None) or "-",
            (m.details.family if m.details else None) or "-",
        ]
        for m in models
    ]
    text = _table(rows, ["NAME", "SIZE", "PARAMS", "FAMILY"]) if rows else "no models installed"
    _emit(args, [m.to_dict() for m in models], text)
    return 0


async def handle_pull(args: argparse.Namespace, provider: LocalLLMProvider) -> int:
    def _progress(event: PullProgress) -> None:
        if args.json_output:
            print(json.dumps(event.to_dict()), flush=True)
        elif event.total:
            print(
                f"\r{event.status}: {format_bytes(event.completed)} / {format_bytes(event.total)}"
                f" ({format_percent(event.percent)})",
                end="",
                file=sys.stderr,
                flush=True,
            )
        else:
            print(f"\n{event.status}", end="", file=sys.stderr, flush=True)

    await provider.pull_model(args.name, _progress)
    if not args.json_output:
        print(file=sys.stderr)
        print(f"pulled {args.name}")
    return 0


async def handle_rm(args: argparse.Namespace, provider: LocalLLMProvider) -> int:
    await provider.delete_model(args.name)
    _emit(args, {"deleted": args.name}, f"deleted {args.name}")
    return 0


def _chat_options(args: argparse.Namespace) -> ChatOptions:
    messages: List[ChatMessage] = []
    if args.system:
        messages.append(ChatMessage(role="system", content=args.system))
    messages.append(ChatMessage(role="user", content=args.prompt))
    return ChatOptions(
        model=args.model,
        messages=messages,
        temperature=args.temperature,
        max_tokens=args.max_tokens,
    )


async def handle_chat(args: argparse.Namespace, provider: LocalLLMProvider) -> int:
    options = _chat_options(args)
    if not args.stream:
        response = await provider.chat(options)
        _emit(args, response.to_dict(), response.text)
        return 0
    async with aclosing(provider.chat_stream(options)) as stream:
        async for chunk in stream:
            if args.json_output:
                print(json.dumps(chunk.to_dict()), flush=True)
            else:
                print(chunk.delta, end="", flush=True)
    if not args.json_output:
        print()
    return 0


async def handle_embed(args: argparse.Namespace, provider: LocalLLMProvider) -> int:
    vector = await provider.embed(args.text, args.model)
    preview = ", ".join(f"{v:.4f}" for v in vector[:5])
    _emit(args, {"model": args.model, "dimensions": len(vector), "embedding": vector}, f"{len(vector)} dims [{preview}, ...]")
    return 0


async def handle_recommended(args: argparse.Namespace, provider: LocalLLMProvider) -> int:
    installed: List[str] = []
    if await provider.is_available():
        installed = [m.name for m in await provider.list_models()]
    entries = recommended_models(installed)
    rows = [
        [e.model.name, e.model.size, "yes" if e.installed else "", e.model.description]
        for e in entries
    ]
    payload = [
        {"name": e.model.name, "size": e.model.size, "installed": e.installed,
         "description": e.model.description, "tags": list(e.model.tags)}
        for e in entries
    ]
    _emit(args, payload, _table(rows, ["NAME", "SIZE", "INSTALLED", "DESCRIPTION"]))
    return 0


HANDLERS: Dict[str, Handler] = {
    "status": handle_status,
    "models": handle_models,
    "pull": handle_pull,
    "rm": handle_rm,
    "chat": handle_chat,
    "embed": handle_embed,
    "recommended": handle_recommended,
}


def _report_error(args: argparse.Namespace, exc: ProviderError) -> None:
    if args.json_output:
        print(json.dumps({"error": exc.code.value, "message": exc.message, "provider": exc.provider}), file=sys.stderr)
    else:
        print(f"error [{exc.code.value}]: {exc.message}", file=sys.stderr)


async def dispatch(args: argparse.Namespace, provider: Optional[LocalLLMProvider] = None) -> int:
    """Run the handler for ``args.cmd`` and return the process exit code.

    ``provider`` is built from the CLI options when omitted; it is closed
    before returning either way.
    """
    try:
        client = provider or build_provider(args)
    except UnknownProviderError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    try:
        return await HANDLERS[args.cmd](args, client)
    except ProviderError as exc:
        _report_error(args, exc)
        return 1
    finally:
        await client.aclose()


__all__ = ["HANDLERS", "build_provider", "dispatch"]
