"""CLI entrypoint.

Subcommands:
- serve: run the HTTP API
- extract: turn a local document into a workflow (optionally saving it)
- list / show / delete: inspect the workflow store
- play: step through a stored workflow in the terminal
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError as SettingsError

from stepflow import __version__
from stepflow.core.logging import configure_logging
from stepflow.llm.factory import LLMFactory
from stepflow.server.config import ServerSettings
from stepflow.workflow.errors import StepflowError
from stepflow.workflow.runtime import (
    PlaybackSession,
    RuntimeSnapshot,
    StepRuntime,
    TimerState,
    format_countdown,
)
from stepflow.workflow.service import WorkflowService
from stepflow.workflow.store import WorkflowStore

logger = logging.getLogger(__name__)

_PLAY_HELP = "Commands: n(ext), p(rev), a(lign), s <step number> (select), t(imer), q(uit)"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stepflow",
        description="Extract, store and replay step-by-step workflows from manuals",
    )
    parser.add_argument("--version", action="version", version=f"stepflow {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (defaults to HOST)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (defaults to PORT)")

    extract = subparsers.add_parser("extract", help="Extract a workflow from a document")
    extract.add_argument("document", type=Path, help="Path to the manual (PDF)")
    extract.add_argument(
        "--save",
        action="store_true",
        help="Persist the extracted workflow to DATA_DIR",
    )

    subparsers.add_parser("list", help="List stored workflows, most recently updated first")

    show = subparsers.add_parser("show", help="Print a stored workflow as JSON")
    show.add_argument("workflow_id")

    delete = subparsers.add_parser("delete", help="Delete a stored workflow")
    delete.add_argument("workflow_id")

    play = subparsers.add_parser("play", help="Step through a stored workflow")
    play.add_argument("workflow_id")

    return parser


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _render(snapshot: RuntimeSnapshot) -> str:
    step = snapshot.step
    if step is None:
        return "(no step)"
    lines = [f"Step {snapshot.index + 1} of {snapshot.step_count}: {step.title}"]
    if step.description:
        lines.append(f"  {step.description}")
    if snapshot.timer.state is TimerState.RUNNING:
        lines.append(f"  Timer: {format_countdown(snapshot.timer.remaining)}")
    elif snapshot.timer.state is TimerState.EXPIRED:
        lines.append("  Timer: 00:00 DONE")
    if snapshot.aligned:
        page = snapshot.active_page
        lines.append(f"  Aligned to page {page}" if page is not None else "  Aligned (no page)")
    return "\n".join(lines)


def _on_tick(snapshot: RuntimeSnapshot) -> None:
    if snapshot.timer.state is TimerState.EXPIRED:
        print("\nTimer done.", flush=True)


def _play(service: WorkflowService, workflow_id: str) -> int:
    workflow = service.get(workflow_id)
    session = PlaybackSession(StepRuntime(workflow), on_change=_on_tick)
    print(workflow.name)
    print(_PLAY_HELP)
    print(_render(session.snapshot()))
    try:
        while True:
            try:
                line = input("> ").strip().lower()
            except EOFError:
                break
            command, _, arg = line.partition(" ")
            if command in {"q", "quit", "exit"}:
                break
            if command in {"n", "next"}:
                snapshot = session.next()
            elif command in {"p", "prev"}:
                snapshot = session.prev()
            elif command in {"a", "align"}:
                snapshot = session.toggle_align()
            elif command in {"s", "select"} and arg.isdigit():
                snapshot = session.select_step(int(arg) - 1)
            elif command in {"t", "timer", ""}:
                snapshot = session.snapshot()
            else:
                print(_PLAY_HELP)
                continue
            print(_render(snapshot))
    finally:
        session.exit()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = ServerSettings()
    except SettingsError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    if args.command == "serve":
        import uvicorn

        from stepflow.server.app import create_app

        uvicorn.run(
            create_app(settings),
            host=args.host or settings.host,
            port=args.port or settings.port,
            log_config=None,
        )
        return 0

    store = WorkflowStore(settings.data_dir)

    try:
        if args.command == "extract":
            provider = LLMFactory.create_if_configured(settings.llm)
            service = WorkflowService(store=store, provider=provider)
            document = args.document.read_bytes()
            workflow = service.generate(document, filename=args.document.name)
            if args.save:
                workflow = service.create(workflow.to_json())
                logger.info("Workflow persisted", extra={"workflow_id": workflow.workflow_id})
            _print_json(workflow.to_json())
            return 0

        service = WorkflowService(store=store)

        if args.command == "list":
            for summary in service.list():
                print(f"{summary.workflow_id}\t{summary.updated_at.isoformat()}\t{summary.name}")
            return 0

        if args.command == "show":
            _print_json(service.get(args.workflow_id).to_json())
            return 0

        if args.command == "delete":
            service.delete(args.workflow_id)
            print(f"Deleted {args.workflow_id}")
            return 0

        if args.command == "play":
            return _play(service, args.workflow_id)

    except StepflowError as e:
        logger.error("Command failed", extra={"command": args.command, "error": e.message})
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
