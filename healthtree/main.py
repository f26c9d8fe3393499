"""Entry point for healthtree."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel

from healthtree.api.server import build_registry
from healthtree.config import settings
from healthtree.health.classifier import Verdict, evaluate
from healthtree.health.outcome import to_response_body
from healthtree.health.registry import ProcedureLookupError

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)

VERDICT_STYLES = {
    Verdict.EMPTY: "dim",
    Verdict.HEALTHY: "bold green",
    Verdict.UNHEALTHY: "bold yellow",
    Verdict.FAULTED: "bold red",
}


def run_server() -> None:
    """Start the FastAPI server."""
    console.print(Panel(
        f"Serving health checks on {settings.api_host}:{settings.api_port}{settings.health_route_prefix}",
        style="bold green",
    ))
    uvicorn.run(
        "healthtree.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


def run_check(path: str) -> int:
    """Evaluate the checks file once and print the result tree."""
    registry = build_registry()
    try:
        procedure = registry.resolve(path)
    except ProcedureLookupError as e:
        console.print(f"[bold red]{e.message}[/bold red]")
        return 2

    outcome, verdict = asyncio.run(evaluate(procedure))
    console.print(Panel(verdict.value.upper(), style=VERDICT_STYLES[verdict]))
    if verdict is not Verdict.EMPTY:
        console.print_json(json.dumps(to_response_body(outcome)))
    return 0 if verdict in (Verdict.EMPTY, Verdict.HEALTHY) else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="healthtree — hierarchical health checks")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("serve", help="Start the API server")

    check_parser = sub.add_parser("check", help="Evaluate checks once and exit")
    check_parser.add_argument("path", nargs="?", default="", help="Subtree to evaluate")

    args = parser.parse_args()

    if args.command == "serve":
        run_server()
    elif args.command == "check":
        sys.exit(run_check(args.path))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
