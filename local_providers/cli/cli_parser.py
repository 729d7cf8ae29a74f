"""CLI parser construction for ``local-providers``.

This module wires subparsers but contains no execution logic. Handlers live
in ``cli_actions``.
"""

from __future__ import annotations

import argparse

from ..base.factory import ProviderFactory
from ..config.defaults import CLI_DEFAULT_PROVIDER

COMMANDS = ("status", "models", "pull", "rm", "chat", "embed", "recommended")


def _positive_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be > 0")
    return parsed


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from exc
    if parsed < 1:
        raise argparse.ArgumentTypeError("must be >= 1")
    return parsed


def _add_common(parser: argparse.ArgumentParser) -> None:
    """Connection and output options shared by every subcommand."""
    parser.add_argument(
        "--provider",
        default=CLI_DEFAULT_PROVIDER,
        help=f"backend to talk to ({', '.join(ProviderFactory.supported())}; default: %(default)s)",
    )
    parser.add_argument("--base-url", dest="base_url", default=None, help="override the backend URL")
    parser.add_argument("--timeout", type=_positive_float, default=None, help="per-call timeout in seconds")
    parser.add_argument("--max-retries", dest="max_retries", type=_positive_int, default=None)
    parser.add_argument("--json", dest="json_output", action="store_true", help="print machine-readable JSON")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
    )


def build_parser() -> argparse.ArgumentParser:
    """Return the top-level parser with one subparser per command."""
    p = argparse.ArgumentParser(prog="local-providers", description="Manage and query local LLM backends")
    sub = p.add_subparsers(dest="cmd", required=True)

    _add_common(sub.add_parser("status", help="show backend status"))
    _add_common(sub.add_parser("models", help="list installed models"))

    pull = sub.add_parser("pull", help="download a model")
    pull.add_argument("name")
    _add_common(pull)

    rm = sub.add_parser("rm", help="delete a model")
    rm.add_argument("name")
    _add_common(rm)

    chat = sub.add_parser("chat", help="send one prompt")
    chat.add_argument("prompt")
    chat.add_argument("--model", "-m", required=True)
    chat.add_argument("--system", default=None, help="system prompt")
    chat.add_argument("--temperature", type=float, default=None)
    chat.add_argument("--max-tokens", dest="max_tokens", type=_positive_int, default=None)
    chat.add_argument("--stream", action="store_true", help="print tokens as they arrive")
    _add_common(chat)

    embed = sub.add_parser("embed", help="embed a text")
    embed.add_argument("text")
    embed.add_argument("--model", "-m", required=True)
    _add_common(embed)

    _add_common(sub.add_parser("recommended", help="show recommended models"))
    return p


__all__ = ["COMMANDS", "build_parser"]
