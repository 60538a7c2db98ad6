"""CLI entry points for the pdf2quiz configuration file."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from .core import settings as settings_mod
from .core import workspace as workspace_mod


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf2quiz config",
        description="Manage the pdf2quiz.toml configuration file.",
    )
    sub = parser.add_subparsers(dest="action", required=True)
    init = sub.add_parser("init", help="Write the default configuration file.")
    init.add_argument(
        "--path",
        type=Path,
        help=(
            "Destination file (defaults to <workspace>/config/"
            f"{settings_mod.CONFIG_FILENAME})."
        ),
    )
    init.add_argument(
        "--workspace",
        type=Path,
        help=(
            f"Override the workspace root (defaults to "
            f"{workspace_mod.WORKSPACE_ENV} or ~/.pdf2quiz-data)."
        ),
    )
    init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing file.",
    )
    return parser


def _cmd_init(args: argparse.Namespace) -> int:
    target = args.path
    if target is None:
        try:
            layout = workspace_mod.ensure_workspace(path=args.workspace)
        except workspace_mod.WorkspaceError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        target = layout.path_for("config") / settings_mod.CONFIG_FILENAME
    try:
        written = settings_mod.write_config_template(
            target, overwrite=args.force
        )
    except settings_mod.SettingsError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Created template {written}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.action == "init":
        return _cmd_init(args)
    parser.print_help()  # pragma: no cover - subparser is required
    return 2
