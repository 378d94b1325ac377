"""Interactive command-line chat.

Run with:
    redox-chat            (or: python -m redox_chat)

Type a question at the prompt. "quit" or "exit" (any case) ends the session.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Callable

from langchain_openai import ChatOpenAI
from pydantic import SecretStr

from redox_chat.config import (
    LOG_LEVEL,
    OPENAI_MODEL,
    OPENAI_TEMPERATURE,
    REDOX_CACHE_TOKENS,
    ConfigurationError,
    RedoxCredentials,
    load_redox_credentials,
    require_openai_api_key,
)
from redox_chat.messages import DEFAULT_SYSTEM_PROMPT, MessageStore
from redox_chat.orchestrator import Orchestrator
from redox_chat.redox_client import RedoxClient
from redox_chat.registry import build_function_registry
from redox_chat.token_broker import TokenCache

logger = logging.getLogger(__name__)

PROMPT = "> "
EXIT_COMMANDS = frozenset({"quit", "exit"})


def is_exit_command(line: str) -> bool:
    return line.strip().lower() in EXIT_COMMANDS


async def run_session(
    orchestrator: Orchestrator,
    read_line: Callable[[str], str] = input,
    write: Callable[[str], None] = print,
) -> int:
    """Read user turns until an exit command or EOF. Returns the exit code."""
    while True:
        try:
            line = read_line(PROMPT)
        except EOFError:
            break
        if is_exit_command(line):
            break
        if not line.strip():
            continue
        answer = await orchestrator.complete_turn(line)
        write(answer)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="redox-chat",
        description="Chat with a model that can call weather and Redox patient tools",
    )
    parser.add_argument("--model", default=OPENAI_MODEL, help="Chat model name")
    parser.add_argument(
        "--temperature",
        type=float,
        default=OPENAI_TEMPERATURE,
        help="Sampling temperature",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--print-schemas",
        action="store_true",
        help="Print the function declarations as JSON and exit",
    )
    return parser


async def _run(
    args: argparse.Namespace,
    credentials: RedoxCredentials,
    api_key: str,
) -> int:
    token_cache = TokenCache() if REDOX_CACHE_TOKENS else None
    async with RedoxClient(credentials, token_cache=token_cache) as redox:
        registry = build_function_registry(redox)
        if args.print_schemas:
            print(json.dumps(registry.declarations(), indent=2))
            return 0

        model = ChatOpenAI(
            model=args.model,
            temperature=args.temperature,
            api_key=SecretStr(api_key),
        )
        orchestrator = Orchestrator(
            model,
            registry,
            MessageStore(system_prompt=DEFAULT_SYSTEM_PROMPT),
        )
        return await run_session(orchestrator)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        credentials = load_redox_credentials()
        api_key = "" if args.print_schemas else require_openai_api_key()
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    return asyncio.run(_run(args, credentials, api_key))
