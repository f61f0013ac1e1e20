"""Command-line interface for diffgate."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from diffgate.adapters.sync_to_async import SyncConfirmerAdapter
from diffgate.config import GatewaySettings
from diffgate.diffing.generator import DiffGenerator
from diffgate.diffing.preview import apply_hunks, resolve_content
from diffgate.errors import DiffGenerationError, HunkApplicationError
from diffgate.gateway import ApprovalGateway
from diffgate.notifiers.interactive import InteractiveConfirmer
from diffgate.surfaces.console import ConsoleReviewSurface, diff_title, hunk_markup
from diffgate.types import ApprovalResponse, EditOperation, FileDiff, to_wire


class _UsageError(Exception):
    pass


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _load_proposal(args: argparse.Namespace) -> tuple[str | None, list[EditOperation] | None]:
    """Return (content, None) for a write or (None, edits) for an edit."""
    if args.content_file is not None:
        try:
            return args.content_file.read_text(encoding="utf-8"), None
        except (OSError, UnicodeDecodeError) as exc:
            raise _UsageError(f"cannot read content file: {exc}") from exc
    try:
        raw = json.loads(args.edits.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise _UsageError(f"cannot read edits file: {exc}") from exc
    if not isinstance(raw, list):
        raise _UsageError("edits file must contain a JSON array")
    try:
        return None, [EditOperation.model_validate(item) for item in raw]
    except ValidationError as exc:
        raise _UsageError(f"invalid edit operation: {exc}") from exc


def _settings(args: argparse.Namespace) -> GatewaySettings:
    settings = GatewaySettings.from_env()
    update: dict[str, object] = {}
    if args.workspace is not None:
        update["workspace_root"] = args.workspace
    if getattr(args, "audit_log", None) is not None:
        update["audit_log_path"] = args.audit_log
    if args.log_level is not None:
        update["log_level"] = args.log_level
    return GatewaySettings.model_validate({**settings.model_dump(), **update})


def _generate(
    generator: DiffGenerator,
    file_path: str,
    content: str | None,
    edits: list[EditOperation] | None,
) -> FileDiff:
    if edits is not None:
        return generator.generate_edit_diff(file_path, edits)
    if content is None:
        raise _UsageError("either content or edits is required")
    return generator.generate_write_diff(file_path, content)


def _cmd_diff(args: argparse.Namespace, settings: GatewaySettings) -> int:
    content, edits = _load_proposal(args)
    try:
        diff = _generate(DiffGenerator(settings.workspace_root), args.path, content, edits)
    except DiffGenerationError as exc:
        print(f"diff failed: {exc}", file=sys.stderr)
        return 1
    if args.json:
        print(json.dumps(to_wire(diff), ensure_ascii=False, indent=2))
        return 0
    console = Console()
    body = "\n\n".join(hunk_markup(hunk) for hunk in diff.hunks) or "[dim](no changes)[/dim]"
    console.print(Panel(body, title=diff_title(diff), border_style="blue"))
    return 0


def _cmd_preview(args: argparse.Namespace, settings: GatewaySettings) -> int:
    content, edits = _load_proposal(args)
    hunk_ids = [item.strip() for item in args.hunks.split(",") if item.strip()]
    try:
        diff = _generate(DiffGenerator(settings.workspace_root), args.path, content, edits)
        preview = apply_hunks(diff.old_content, diff.hunks, hunk_ids)
    except (DiffGenerationError, HunkApplicationError) as exc:
        print(f"preview failed: {exc}", file=sys.stderr)
        return 1
    unknown = sorted(set(hunk_ids) - diff.hunk_ids)
    if unknown:
        print(f"unknown hunk ids ignored: {', '.join(unknown)}", file=sys.stderr)
    sys.stdout.write(preview)
    if not preview.endswith("\n"):
        sys.stdout.write("\n")
    return 0


async def _run_review(
    settings: GatewaySettings,
    file_path: str,
    content: str | None,
    edits: list[EditOperation] | None,
) -> ApprovalResponse:
    surface = ConsoleReviewSurface()
    gateway = ApprovalGateway.from_settings(
        settings,
        surface=surface,
        confirmer=SyncConfirmerAdapter(InteractiveConfirmer(surface.console)),
    )
    try:
        if edits is not None:
            return await gateway.request_edit_approval(file_path, edits)
        if content is None:
            raise _UsageError("either content or edits is required")
        return await gateway.request_write_approval(file_path, content)
    finally:
        gateway.dispose()


def _apply(
    settings: GatewaySettings,
    file_path: str,
    content: str | None,
    edits: list[EditOperation] | None,
    response: ApprovalResponse,
) -> int:
    generator = DiffGenerator(settings.workspace_root)
    if edits is None and response.approved_hunks is None:
        new_content = content
    else:
        try:
            new_content = resolve_content(_generate(generator, file_path, content, edits), response)
        except (DiffGenerationError, HunkApplicationError) as exc:
            print(f"apply failed: {exc}", file=sys.stderr)
            return 1
    if new_content is None:
        return 1
    path = generator.resolve_path(file_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(new_content, encoding="utf-8")
    except OSError as exc:
        print(f"apply failed: {exc}", file=sys.stderr)
        return 1
    return 0


def _cmd_review(args: argparse.Namespace, settings: GatewaySettings) -> int:
    content, edits = _load_proposal(args)
    response = asyncio.run(_run_review(settings, args.path, content, edits))
    print(json.dumps(to_wire(response), ensure_ascii=False))
    if not response.approved:
        return 1
    if args.apply:
        return _apply(settings, args.path, content, edits, response)
    return 0


def _add_proposal_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", help="File path, relative to the workspace root")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--content-file", type=Path, help="File holding the full new content")
    source.add_argument(
        "--edits",
        type=Path,
        help='JSON array of {"old_string": ..., "new_string": ...} edit operations',
    )
    parser.add_argument("--workspace", type=Path, help="Workspace root (default: $DIFFGATE_WORKSPACE_ROOT or cwd)")
    parser.add_argument("--log-level", help="Logging level (default: $DIFFGATE_LOG_LEVEL or INFO)")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="diffgate", add_help=True)
    subparsers = parser.add_subparsers(dest="command", required=True)

    diff_parser = subparsers.add_parser("diff", help="Show the diff for a proposed write or edit")
    _add_proposal_args(diff_parser)
    diff_parser.add_argument("--json", action="store_true", help="Output the diff as JSON")

    preview_parser = subparsers.add_parser(
        "preview", help="Print the content with only the given hunks applied"
    )
    _add_proposal_args(preview_parser)
    preview_parser.add_argument("--hunks", required=True, help="Comma-separated hunk ids to apply")

    review_parser = subparsers.add_parser(
        "review", help="Review a proposed write or edit interactively"
    )
    _add_proposal_args(review_parser)
    review_parser.add_argument("--apply", action="store_true", help="Write the approved content")
    review_parser.add_argument("--audit-log", type=Path, help="Append the decision to this JSONL file")

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv if argv is not None else sys.argv[1:])
    try:
        settings = _settings(args)
    except ValidationError as exc:
        print(f"invalid settings: {exc}", file=sys.stderr)
        return 2
    _configure_logging(settings.log_level)
    try:
        if args.command == "diff":
            return _cmd_diff(args, settings)
        if args.command == "preview":
            return _cmd_preview(args, settings)
        if args.command == "review":
            return _cmd_review(args, settings)
    except _UsageError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    print("unknown command", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
