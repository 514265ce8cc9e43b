"""CLI entrypoints for techdocs commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .catalog import resolve_root
from .config import ConfigError, default_config, load_config
from .llm.guides import select_guides
from .logging import configure_logging
from .orchestrator import Orchestrator


def _add_verbose_option(parser: argparse.ArgumentParser, *, suppress_default: bool = False) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
        "default": argparse.SUPPRESS if suppress_default else False,
    }
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    _add_verbose_option(parser, suppress_default=True)
    parser.add_argument("project_root", help="Path to the codebase to document.")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML or JSON configuration file (built-in defaults when omitted).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("docs/architecture"),
        help="Directory for guides, the index and analysis results.",
    )
    parser.add_argument(
        "--guides",
        default=None,
        help="Comma separated guide names or domain ids to restrict the run to.",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also write debug logs to this file.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="techdocs",
        description="Generate architecture documentation from codebase analysis.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Analyse, generate every guide and validate the results.")
    _add_common_options(run_parser)

    analyze_parser = subparsers.add_parser("analyze", help="Analyse the codebase and persist the results only.")
    _add_common_options(analyze_parser)

    validate_parser = subparsers.add_parser("validate", help="Re-validate previously generated guides.")
    _add_common_options(validate_parser)

    return parser


def _parse_guides(parser: argparse.ArgumentParser, value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    names = [name.strip() for name in value.split(",") if name.strip()]
    try:
        select_guides(names)
    except ValueError as exc:
        parser.error(str(exc))
    return names or None


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    guides = _parse_guides(parser, args.guides)

    try:
        config = load_config(args.config) if args.config is not None else default_config()
    except ConfigError as exc:
        print(f"techdocs: configuration error: {exc}", file=sys.stderr)
        return 1

    try:
        root = resolve_root(args.project_root)
    except OSError as exc:
        print(f"techdocs: project root is not readable: {exc}", file=sys.stderr)
        return 1

    orchestrator = Orchestrator(config)
    if args.command == "analyze":
        analysis = orchestrator.analyze(root)
        path = orchestrator.persist(analysis, args.output)
        print(f"Analysis results saved to {_relativize(path)}")
        if analysis.metadata.partial:
            print("Analysis incomplete; results are partial")
    elif args.command == "run":
        outcome = orchestrator.run(root, args.output, guides)
        failed = [result.guide.name for result in outcome.generation if not result.ok]
        flagged = sorted(name for name, report in outcome.reports.items() if report.review_required)
        print(f"Generated {len(outcome.generation) - len(failed)} guides in {_relativize(Path(args.output))}")
        if failed:
            print(f"Failed guides: {', '.join(failed)}")
        if flagged:
            print(f"Guides flagged for review: {', '.join(flagged)}")
    elif args.command == "validate":
        analysis, _ = orchestrator.load_or_analyze(root, args.output)
        reports = orchestrator.validate(analysis, args.output, guides)
        flagged = sorted(name for name, report in reports.items() if report.review_required)
        print(f"Validated {len(reports)} guides; {len(flagged)} flagged for review")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")
    return 0


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
