"""Pipeline orchestration for binding generation runs."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Sequence

from .config import KotlinConfig, load_document, resolve_config
from .generator import BindingGenerator, TemplateBindingGenerator
from .linker import link_components
from .logging import component_logger, get_logger
from .models import Component, GenerationSettings, InterfaceDescription
from .writer import BindingsWriter, FormatResult, WriteError, failed_formats


class GenerationError(RuntimeError):
    """Raised when bindings for a component cannot be produced or written."""

    def __init__(self, namespace: str, phase: str, message: str) -> None:
        self.namespace = namespace
        self.phase = phase
        super().__init__(f"[{namespace}] {phase} failed: {message}")


@dataclass
class GenerationReport:
    """Files written by a run and any formatting problems encountered."""

    written: List[Path] = field(default_factory=list)
    format_warnings: List[FormatResult] = field(default_factory=list)


class Orchestrator:
    """Coordinates config resolution, linking, and emission for a build."""

    def __init__(
        self,
        generator: BindingGenerator | None = None,
        *,
        force_multiplatform: bool = False,
        writer_factory=None,
    ) -> None:
        self.generator = generator or TemplateBindingGenerator()
        self.force_multiplatform = force_multiplatform
        self._writer_factory = writer_factory or _default_writer
        self.logger = get_logger("orchestrator")

    def with_multiplatform(self, enabled: bool) -> "Orchestrator":
        self.force_multiplatform = enabled
        return self

    def new_config(self, document: Mapping[str, Any], *, source: str | None = None) -> KotlinConfig:
        """Resolve a raw document with this run's command-line overrides."""
        return resolve_config(document, force_multiplatform=self.force_multiplatform, source=source)

    def update_component_configs(
        self,
        settings: GenerationSettings,
        components: Sequence[Component],
        *,
        max_workers: int | None = None,
    ) -> None:
        link_components(settings, components, max_workers=max_workers)

    def write_bindings(
        self,
        settings: GenerationSettings,
        components: Sequence[Component],
        *,
        max_workers: int | None = None,
    ) -> GenerationReport:
        """Generate every component and write the resulting files.

        The first failing component aborts the run; files already written for
        other components stay on disk.
        """
        writer = self._writer_factory(settings)
        report = GenerationReport()

        if max_workers and max_workers > 1 and len(components) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                for written in pool.map(lambda c: self._emit_component(writer, c), components):
                    report.written.extend(written)
        else:
            for component in components:
                report.written.extend(self._emit_component(writer, component))

        report.format_warnings = failed_formats(writer.format_results)
        self.logger.info(
            "Generated %d files for %d components", len(report.written), len(components)
        )
        return report

    def run(
        self,
        settings: GenerationSettings,
        interfaces: Sequence[InterfaceDescription],
        documents: Sequence[Mapping[str, Any]],
        *,
        max_workers: int | None = None,
    ) -> GenerationReport:
        """Resolve, link, and emit a whole build in one pass."""
        if len(interfaces) != len(documents):
            raise ValueError("each interface needs exactly one configuration document")

        # ConfigError already names the component through ``source``.
        components = [
            Component(ci=ci, config=self.new_config(document, source=ci.namespace))
            for ci, document in zip(interfaces, documents)
        ]

        self.update_component_configs(settings, components, max_workers=max_workers)
        return self.write_bindings(settings, components, max_workers=max_workers)

    def run_from_paths(
        self,
        settings: GenerationSettings,
        interfaces: Sequence[InterfaceDescription],
        config_paths: Sequence[Path],
        *,
        max_workers: int | None = None,
    ) -> GenerationReport:
        """Run with configuration read from disk.

        Pass one path per interface, a single path shared by all of them, or
        none to use defaults everywhere.
        """
        self.logger.info("Starting generation run into %s", settings.out_dir)
        if len(config_paths) > 1 and len(config_paths) != len(interfaces):
            raise ValueError(
                f"expected 1 or {len(interfaces)} config files, got {len(config_paths)}"
            )
        loaded = [load_document(path) for path in config_paths]
        if not loaded:
            documents: List[Mapping[str, Any]] = [{} for _ in interfaces]
        elif len(loaded) == 1:
            documents = [loaded[0] for _ in interfaces]
        else:
            documents = list(loaded)
        return self.run(settings, interfaces, documents, max_workers=max_workers)

    def _emit_component(self, writer: BindingsWriter, component: Component) -> List[Path]:
        ci, config = component.ci, component.config
        log = component_logger("orchestrator", ci.namespace)
        log.info("Generating bindings for %s", ci.namespace)
        try:
            bundle = self.generator.generate(config, ci)
        except Exception as exc:
            raise GenerationError(ci.namespace, "generation", str(exc)) from exc

        package_name = config.package_for(ci.namespace)
        written: List[Path] = []
        try:
            for variant, content in bundle.source_variants():
                written.append(
                    writer.write_target(
                        ci.namespace,
                        package_name,
                        variant,
                        config.kotlin_multiplatform,
                        content,
                    )
                )
            if bundle.header is not None:
                written.append(writer.write_cinterop(ci.namespace, bundle.header))
        except WriteError as exc:
            raise GenerationError(ci.namespace, "write", str(exc)) from exc
        log.debug("Wrote %d files", len(written))
        return written


def _default_writer(settings: GenerationSettings) -> BindingsWriter:
    return BindingsWriter(
        settings.out_dir,
        try_format_code=settings.try_format_code,
        formatter=settings.formatter,
        format_timeout=settings.format_timeout,
    )


__all__ = ["GenerationError", "GenerationReport", "Orchestrator"]
