"""CLI entrypoint: run the API server or a one-off source workflow."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List, Sequence

from rich.table import Table

from core import SourceDescriptor, WorkflowResponse
from utils.exceptions import DiscoverAgentError
from utils.logger import console, setup_logger


def _parse_source(text: str) -> SourceDescriptor:
    name, sep, url = str(text or "").partition("=")
    if not sep or not name.strip() or not url.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=URL, got '{text}'")
    return SourceDescriptor(name=name, url=url)


def _render_workflow(result: WorkflowResponse) -> None:
    table = Table(title="Sources")
    table.add_column("Source")
    table.add_column("Status")
    table.add_column("Detail", overflow="fold")
    for item in result.source_summaries:
        if item.error:
            table.add_row(item.source_name, "[red]failed[/red]", item.error)
        elif not item.is_displayable:
            table.add_row(item.source_name, "[yellow]hidden[/yellow]", item.unusable_reason)
        else:
            table.add_row(item.source_name, "[green]usable[/green]", f"{len(item.summary)} chars")
    console.print(table)
    meta = result.meta
    console.print(
        f"usable={meta.usable_count} hidden={meta.hidden_count} failed={meta.failed_count} "
        f"cache_hit={result.cache.hit}"
    )
    console.rule("Clusters")
    console.print(result.clustered)


async def _run_workflow(sources: Sequence[SourceDescriptor], lang: str, force: bool) -> WorkflowResponse:
    from webapp import runtime

    try:
        return await runtime.get_coordinator().get_workflow(list(sources), lang or None, force_refresh=force)
    finally:
        await runtime.shutdown()


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="DiscoverAgent backend CLI")
    parser.add_argument("--log-level", default="INFO")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--reload", action="store_true")

    workflow = sub.add_parser("workflow")
    workflow.add_argument("--source", dest="sources", action="append", type=_parse_source, required=True)
    workflow.add_argument("--lang", default="")
    workflow.add_argument("--force", action="store_true")

    args = parser.parse_args(argv)
    setup_logger(level=getattr(logging, str(args.log_level).upper(), logging.INFO))

    if args.command == "serve":
        import uvicorn

        from config import get_server_settings

        server = get_server_settings()
        uvicorn.run(
            "webapp.app:app",
            host=args.host or server.host,
            port=args.port or server.port,
            reload=args.reload,
        )
        return 0

    try:
        result = asyncio.run(_run_workflow(args.sources, args.lang, args.force))
    except DiscoverAgentError as exc:
        console.print(f"[red]{exc.message}[/red]")
        return 1
    _render_workflow(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
