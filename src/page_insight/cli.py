"""Command-line interface: ``page-insight`` / ``python -m page_insight``."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path
import sys
from typing import TYPE_CHECKING, Any

from page_insight.config import resolve_config
from page_insight.core.exceptions import PageInsightError
from page_insight.core.types import (
    PROVIDER_NAMES,
    READING_INTENTS,
    READING_MODES,
    SUMMARY_LEVELS,
)
from page_insight.frontdoor import stream_page, summarize_page
from page_insight.pipeline.planner import describe_pipeline
from page_insight.usage import JSONSettingsStore

if TYPE_CHECKING:
    from page_insight.config import ResolvedConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="page-insight",
        description="Summarize page text through a staged LLM pipeline.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    summarize = sub.add_parser("summarize", help="Summarize a text file or stdin.")
    summarize.add_argument("path", help="File to read, or '-' for stdin.")
    summarize.add_argument("--intent", choices=READING_INTENTS)
    summarize.add_argument("--mode", choices=READING_MODES)
    summarize.add_argument("--level", type=int, choices=SUMMARY_LEVELS)
    summarize.add_argument(
        "--meta", action="store_true", help="Run the meta analysis stage."
    )
    summarize.add_argument(
        "--bias", action="store_true", help="Run the bias analysis stage."
    )
    summarize.add_argument("--provider", choices=PROVIDER_NAMES)
    summarize.add_argument(
        "--stream", action="store_true", help="Print stage events as they arrive."
    )
    summarize.add_argument(
        "--json", action="store_true", help="Print machine-readable JSON."
    )
    summarize.add_argument("--retries", type=int, help="Retries per stage.")
    summarize.add_argument(
        "--timeout-ms", type=int, help="Per-attempt timeout in milliseconds."
    )
    summarize.add_argument(
        "--settings",
        type=Path,
        help="JSON settings file; enables saved preferences and the daily limit.",
    )
    summarize.add_argument("--profile", help="Configuration profile to load.")

    sub.add_parser("stages", help="Describe the pipeline stages.")

    config = sub.add_parser("config", help="Show the resolved configuration.")
    config.add_argument("--profile", help="Configuration profile to load.")
    return parser


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _resolve(args: argparse.Namespace) -> ResolvedConfig:
    overrides: dict[str, Any] = {}
    for name in ("provider", "retries", "timeout_ms"):
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    return resolve_config(overrides, profile=args.profile)


async def _summarize(args: argparse.Namespace) -> int:
    config = _resolve(args)
    text = _read_text(args.path)
    options: dict[str, Any] = {
        "intent": args.intent,
        "mode": args.mode,
        "level": args.level,
        "enable_meta": args.meta,
        "enable_bias": args.bias,
        "config": config,
        "store": JSONSettingsStore(args.settings) if args.settings else None,
    }

    if args.stream:
        produced = False
        async for event in stream_page(text, **options):
            produced = produced or event.stage in ("progressive", "rewrite")
            if args.json:
                print(json.dumps(event.to_dict()), flush=True)
            elif event.stage == "error":
                print(f"[warning] {event.warning}", file=sys.stderr)
            elif event.stage != "done":
                print(f"[{event.stage}] {_display(event.data)}", flush=True)
        return 0 if produced else 1

    result = await summarize_page(text, **options)
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(result.summary)
        if result.meta is not None:
            print(f"\nMeta:\n{_display(result.meta)}")
        if result.bias is not None:
            print(f"\nBias:\n{_display(result.bias)}")
        for warning in result.warnings:
            print(f"[warning] {warning}", file=sys.stderr)
    return 0 if result.summary else 1


def _display(data: object) -> str:
    if isinstance(data, str):
        return data
    return json.dumps(data, indent=2)


def _stages() -> int:
    for index, stage in enumerate(describe_pipeline(), start=1):
        kind = "required" if stage["required"] else "optional"
        print(f"{index}. {stage['name']} ({kind}): {stage['description']}")
    return 0


def _config(args: argparse.Namespace) -> int:
    print(resolve_config(profile=args.profile).audit())
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        if args.command == "stages":
            return _stages()
        if args.command == "config":
            return _config(args)
        return asyncio.run(_summarize(args))
    except (PageInsightError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
