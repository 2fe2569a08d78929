"""Writes generated bindings into a Gradle source-set tree."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Callable, List, Sequence

from .logging import get_logger

SOURCE_LANGUAGE_DIR = "kotlin"
SOURCE_EXTENSION = "kt"
HEADER_ROOT = ("nativeInterop", "cinterop", "headers")


class WriteError(RuntimeError):
    """Raised when a destination directory or file cannot be written."""

    def __init__(self, path: Path, exc: OSError) -> None:
        self.path = path
        super().__init__(f"Unable to write {path}: {exc.strerror or exc}")


@dataclass
class FormatResult:
    """Outcome of running the external formatter over one file."""

    path: Path
    ok: bool
    message: str = ""


def source_set_name(variant: str, multiplatform: bool) -> str:
    return f"{variant}Main" if multiplatform else "main"


def binding_destination(
    package_name: str,
    namespace: str,
    variant: str,
    multiplatform: bool,
) -> PurePath:
    """Return the path of a variant's source file relative to the output root.

    Single-target builds collapse every variant into ``main``; the variant in
    the file name keeps them apart.
    """
    package_path = PurePath(*package_name.split("."))
    file_name = f"{namespace}.{variant}.{SOURCE_EXTENSION}"
    return (
        PurePath(source_set_name(variant, multiplatform))
        / SOURCE_LANGUAGE_DIR
        / package_path
        / file_name
    )


def header_destination(namespace: str) -> PurePath:
    return PurePath(*HEADER_ROOT) / namespace / f"{namespace}.h"


class BindingsWriter:
    """Lays out binding files under an output directory and formats them."""

    def __init__(
        self,
        out_dir: Path,
        *,
        try_format_code: bool = False,
        formatter: Sequence[str] = ("ktlint", "-F"),
        format_timeout: float | None = None,
        runner: Callable[..., subprocess.CompletedProcess] | None = None,
    ) -> None:
        self.out_dir = Path(out_dir)
        self.try_format_code = try_format_code
        self.formatter = list(formatter)
        self.format_timeout = format_timeout
        self._runner = runner or subprocess.run
        self.logger = get_logger("writer")
        self.format_results: List[FormatResult] = []

    def write_target(
        self,
        namespace: str,
        package_name: str,
        variant: str,
        multiplatform: bool,
        content: str,
    ) -> Path:
        """Write one Kotlin source variant, replacing any previous file."""
        file_path = self.out_dir / binding_destination(package_name, namespace, variant, multiplatform)
        self._write(file_path, content)
        self.logger.debug("Wrote %s bindings for %s to %s", variant, namespace, file_path)

        if self.try_format_code:
            result = self.format_file(file_path)
            self.format_results.append(result)
        return file_path

    def write_cinterop(self, namespace: str, content: str) -> Path:
        """Write the C header used by Kotlin/Native cinterop."""
        file_path = self.out_dir / header_destination(namespace)
        self._write(file_path, content)
        self.logger.debug("Wrote cinterop header for %s to %s", namespace, file_path)
        return file_path

    def format_file(self, file_path: Path) -> FormatResult:
        """Run the formatter over *file_path*; failures become warnings."""
        if not self.formatter:
            return self._format_failed(file_path, "no formatter command configured")
        command = [*self.formatter, str(file_path)]
        self.logger.info(
            "Formatting %s with %s (use --no-format to disable)", file_path.name, self.formatter[0]
        )
        try:
            completed = self._runner(
                command,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.format_timeout,
            )
        except FileNotFoundError:
            return self._format_failed(file_path, f"{self.formatter[0]} not found")
        except subprocess.TimeoutExpired:
            return self._format_failed(file_path, f"{self.formatter[0]} timed out")
        except OSError as exc:
            return self._format_failed(file_path, str(exc))

        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip()
            message = f"{self.formatter[0]} exited with status {completed.returncode}"
            if detail:
                message = f"{message}: {detail.splitlines()[0]}"
            return self._format_failed(file_path, message)
        return FormatResult(path=file_path, ok=True)

    def _format_failed(self, file_path: Path, message: str) -> FormatResult:
        self.logger.warning("Unable to auto-format %s: %s", file_path.name, message)
        return FormatResult(path=file_path, ok=False, message=message)

    def _write(self, file_path: Path, content: str) -> None:
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise WriteError(file_path, exc) from exc


def failed_formats(results: Sequence[FormatResult]) -> List[FormatResult]:
    return [result for result in results if not result.ok]


__all__ = [
    "BindingsWriter",
    "FormatResult",
    "WriteError",
    "binding_destination",
    "failed_formats",
    "header_destination",
    "source_set_name",
]
