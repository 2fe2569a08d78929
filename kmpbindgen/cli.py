"""CLI entrypoints for kmpbindgen commands."""

from __future__ import annotations

import argparse
import os
import shlex
import sys
from pathlib import Path

from .config import ConfigError, KotlinTarget, load_document
from .logging import configure_logging
from .merge import MergeInputs, merge_config, write_merged_config
from .models import GenerationSettings, load_interface
from .orchestrator import GenerationError, Orchestrator

FORMATTER_ENV_KEY = "KMPBINDGEN_FORMATTER"


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_multiplatform_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--multiplatform",
        action="store_true",
        help="Force Kotlin Multiplatform output regardless of configuration files.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kmpbindgen",
        description="Generate Kotlin Multiplatform bindings for native components.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write detailed logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate bindings for one or more interface descriptions.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_multiplatform_option(generate_parser)
    generate_parser.add_argument(
        "interfaces",
        nargs="+",
        type=Path,
        help="Interface description files (JSON or YAML).",
    )
    generate_parser.add_argument(
        "-o",
        "--out-dir",
        type=Path,
        required=True,
        help="Directory that receives the generated source sets.",
    )
    generate_parser.add_argument(
        "-c",
        "--config",
        type=Path,
        action="append",
        default=[],
        help="Bindings config (TOML or YAML). Give once to share, or once per interface.",
    )
    generate_parser.add_argument(
        "--cdylib",
        help="Native library name used by components that do not set cdylib_name.",
    )
    generate_parser.add_argument(
        "--no-format",
        action="store_true",
        help="Skip running the Kotlin formatter over generated files.",
    )
    generate_parser.add_argument(
        "--format-timeout",
        type=float,
        default=None,
        help="Seconds to wait for the formatter before giving up on a file.",
    )
    generate_parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="Generate components in parallel using this many workers.",
    )

    merge_parser = subparsers.add_parser(
        "merge-config",
        help="Merge build settings into a component's bindings config.",
    )
    _add_verbose_option(merge_parser, suppress_default=True)
    merge_parser.add_argument("-o", "--output", type=Path, required=True)
    merge_parser.add_argument("-c", "--config", type=Path, default=None)
    merge_parser.add_argument("--crate-name")
    merge_parser.add_argument("--package-root")
    merge_parser.add_argument("--package-name")
    merge_parser.add_argument("--cdylib-name")
    merge_parser.add_argument("--kotlin-version")
    merge_parser.add_argument(
        "--multiplatform",
        action="store_true",
        default=None,
        help="Record kotlin_multiplatform = true unless the config sets it.",
    )
    merge_parser.add_argument(
        "--target",
        dest="targets",
        action="append",
        choices=[target.value for target in KotlinTarget],
        default=None,
    )
    merge_parser.add_argument(
        "--external-config",
        dest="external_configs",
        type=Path,
        action="append",
        default=[],
        help="Merged config of another component whose package should be referenced.",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for kmpbindgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "generate":
        _run_generate(parser, args)
    elif args.command == "merge-config":
        _run_merge(parser, args)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_generate(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    settings = GenerationSettings(
        out_dir=args.out_dir.expanduser().resolve(),
        cdylib=args.cdylib,
        try_format_code=not args.no_format,
        format_timeout=args.format_timeout,
    )
    formatter_override = os.environ.get(FORMATTER_ENV_KEY, "")
    try:
        formatter_command = shlex.split(formatter_override)
    except ValueError as exc:
        parser.exit(1, f"kmpbindgen generate failed: invalid {FORMATTER_ENV_KEY}: {exc}\n")
    # A blank override keeps the default formatter.
    if formatter_command:
        settings.formatter = formatter_command

    orchestrator = Orchestrator().with_multiplatform(bool(args.multiplatform))
    try:
        interfaces = [load_interface(path) for path in args.interfaces]
        report = orchestrator.run_from_paths(
            settings,
            interfaces,
            args.config,
            max_workers=args.jobs,
        )
    except ConfigError as exc:
        parser.exit(1, f"kmpbindgen generate failed: configuration error: {exc}\n")
    except GenerationError as exc:
        parser.exit(1, f"kmpbindgen generate failed: {exc}\nRun with --verbose for more details.\n")
    except (OSError, ValueError) as exc:
        parser.exit(1, f"kmpbindgen generate failed: {exc}\n")

    for path in report.written:
        print(f"Wrote {_relativize(path)}")
    for warning in report.format_warnings:
        print(f"Warning: unable to auto-format {_relativize(warning.path)}: {warning.message}")


def _run_merge(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    inputs = MergeInputs(
        crate_name=args.crate_name,
        package_root=args.package_root,
        package_name=args.package_name,
        cdylib_name=args.cdylib_name,
        kotlin_multiplatform=args.multiplatform,
        kotlin_targets=args.targets,
        kotlin_version=args.kotlin_version,
        external_package_configs=list(args.external_configs),
    )
    try:
        original = load_document(args.config) if args.config is not None else None
        merged = merge_config(original, inputs)
        output = write_merged_config(merged, args.output)
    except ConfigError as exc:
        parser.exit(1, f"kmpbindgen merge-config failed: {exc}\n")
    print(f"Merged config written to {_relativize(output)}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
