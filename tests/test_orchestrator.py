"""Tests for kmpbindgen.orchestrator."""

from __future__ import annotations

from pathlib import Path

import pytest

from kmpbindgen.config import ConfigError, KotlinConfig
from kmpbindgen.models import Component, EmissionBundle, GenerationSettings, InterfaceDescription
from kmpbindgen.orchestrator import GenerationError, Orchestrator


class RecordingGenerator:
    """Returns a fixed bundle and remembers what it was asked to generate."""

    def __init__(self, **variants: str) -> None:
        self.variants = variants
        self.calls: list[tuple[str, KotlinConfig]] = []

    def generate(self, config: KotlinConfig, ci: InterfaceDescription) -> EmissionBundle:
        self.calls.append((ci.namespace, config))
        return EmissionBundle(common=f"// common {ci.namespace}\n", **self.variants)


class FailingGenerator:
    def __init__(self, failing_namespace: str) -> None:
        self.failing_namespace = failing_namespace

    def generate(self, config: KotlinConfig, ci: InterfaceDescription) -> EmissionBundle:
        if ci.namespace == self.failing_namespace:
            raise RuntimeError("template exploded")
        return EmissionBundle(common="// ok\n")


def _settings(tmp_path: Path) -> GenerationSettings:
    return GenerationSettings(out_dir=tmp_path / "out", try_format_code=False)


def test_new_config_applies_multiplatform_override() -> None:
    orchestrator = Orchestrator(RecordingGenerator()).with_multiplatform(True)
    config = orchestrator.new_config({"bindings": {"kotlin": {"kotlin_multiplatform": False}}})

    assert config.kotlin_multiplatform is True
    assert len(config.kotlin_targets) == 3


def test_write_bindings_routes_every_variant(make_interface, tmp_path: Path) -> None:
    generator = RecordingGenerator(jvm="// jvm\n", native="// native\n", stub="// stub\n", header="// h\n")
    component = Component(
        ci=make_interface("math"),
        config=KotlinConfig(package_name="com.example.math", kotlin_multiplatform=True),
    )

    report = Orchestrator(generator).write_bindings(_settings(tmp_path), [component])

    out = tmp_path / "out"
    expected = [
        out / "commonMain/kotlin/com/example/math/math.common.kt",
        out / "jvmMain/kotlin/com/example/math/math.jvm.kt",
        out / "nativeMain/kotlin/com/example/math/math.native.kt",
        out / "stubMain/kotlin/com/example/math/math.stub.kt",
        out / "nativeInterop/cinterop/headers/math/math.h",
    ]
    assert report.written == expected
    assert all(path.exists() for path in expected)
    assert not (out / "androidMain").exists()


def test_single_target_collapses_into_main(make_interface, tmp_path: Path) -> None:
    generator = RecordingGenerator(jvm="// jvm\n")
    component = Component(ci=make_interface("math"), config=KotlinConfig())

    report = Orchestrator(generator).write_bindings(_settings(tmp_path), [component])

    assert [path.name for path in report.written] == ["math.common.kt", "math.jvm.kt"]
    assert {path.parent for path in report.written} == {tmp_path / "out/main/kotlin/uniffi/math"}


def test_generator_failure_is_tagged_with_namespace(make_interface, tmp_path: Path) -> None:
    components = [
        Component(ci=make_interface("alpha"), config=KotlinConfig()),
        Component(ci=make_interface("beta"), config=KotlinConfig()),
    ]

    with pytest.raises(GenerationError) as excinfo:
        Orchestrator(FailingGenerator("beta")).write_bindings(_settings(tmp_path), components)

    assert excinfo.value.namespace == "beta"
    assert excinfo.value.phase == "generation"
    assert "template exploded" in str(excinfo.value)
    # Earlier components are not rolled back.
    assert (tmp_path / "out/main/kotlin/uniffi/alpha/alpha.common.kt").exists()


def test_write_failure_is_tagged_with_namespace(make_interface, tmp_path: Path) -> None:
    settings = _settings(tmp_path)
    settings.out_dir.mkdir(parents=True)
    (settings.out_dir / "main").write_text("blocker", encoding="utf-8")
    component = Component(ci=make_interface("alpha"), config=KotlinConfig())

    with pytest.raises(GenerationError) as excinfo:
        Orchestrator(RecordingGenerator()).write_bindings(settings, [component])

    assert excinfo.value.namespace == "alpha"
    assert excinfo.value.phase == "write"


def test_run_links_components_before_generation(make_interface, tmp_path: Path) -> None:
    generator = RecordingGenerator()
    interfaces = [make_interface("alpha"), make_interface("beta")]
    documents = [
        {"bindings": {"kotlin": {"package_name": "com.example.alpha"}}},
        {"package_name": "com.example.beta", "external_packages": {"alpha_crate": "org.pinned"}},
    ]

    Orchestrator(generator).run(_settings(tmp_path), interfaces, documents)

    configs = dict(generator.calls)
    assert configs["alpha"].external_packages == {"beta_crate": "com.example.beta"}
    assert configs["beta"].external_packages == {"alpha_crate": "org.pinned"}
    assert configs["alpha"].cdylib_name == "uniffi_alpha"


def test_run_parallel_matches_sequential(make_interface, tmp_path: Path) -> None:
    interfaces = [make_interface(name) for name in ("alpha", "beta", "gamma")]
    documents = [{} for _ in interfaces]

    sequential = Orchestrator(RecordingGenerator(jvm="// jvm\n")).run(
        GenerationSettings(out_dir=tmp_path / "seq", try_format_code=False), interfaces, documents
    )
    parallel = Orchestrator(RecordingGenerator(jvm="// jvm\n")).run(
        GenerationSettings(out_dir=tmp_path / "par", try_format_code=False),
        interfaces,
        documents,
        max_workers=3,
    )

    assert [p.relative_to(tmp_path / "seq") for p in sequential.written] == [
        p.relative_to(tmp_path / "par") for p in parallel.written
    ]


def test_run_propagates_configuration_errors(make_interface, tmp_path: Path) -> None:
    with pytest.raises(ConfigError) as excinfo:
        Orchestrator(RecordingGenerator()).run(
            _settings(tmp_path), [make_interface("alpha")], [{"kotlin_targets": "jvm"}]
        )
    assert "alpha" in str(excinfo.value)
    assert not (tmp_path / "out").exists()


def test_formatter_failures_do_not_abort_run(make_interface, tmp_path: Path, monkeypatch) -> None:
    def missing(*args, **kwargs):  # type: ignore[no-untyped-def]
        raise FileNotFoundError("ktlint")

    monkeypatch.setattr("kmpbindgen.writer.subprocess.run", missing)
    settings = GenerationSettings(out_dir=tmp_path / "out", try_format_code=True)

    report = Orchestrator(RecordingGenerator()).run(settings, [make_interface("alpha")], [{}])

    assert len(report.written) == 1
    assert report.written[0].read_text(encoding="utf-8") == "// common alpha\n"
    assert [warning.path for warning in report.format_warnings] == report.written


def test_run_from_paths_shares_single_config(make_interface, tmp_path: Path) -> None:
    config_file = tmp_path / "uniffi.toml"
    config_file.write_text("[bindings.kotlin]\nkotlin_multiplatform = true\n", encoding="utf-8")
    generator = RecordingGenerator()

    Orchestrator(generator).run_from_paths(
        _settings(tmp_path), [make_interface("alpha"), make_interface("beta")], [config_file]
    )

    assert all(config.kotlin_multiplatform for _, config in generator.calls)


def test_run_from_paths_rejects_mismatched_config_count(make_interface, tmp_path: Path) -> None:
    interfaces = [make_interface(name) for name in ("alpha", "beta", "gamma")]
    with pytest.raises(ValueError):
        Orchestrator(RecordingGenerator()).run_from_paths(
            _settings(tmp_path), interfaces, [tmp_path / "a.toml", tmp_path / "b.toml"]
        )


def test_default_generator_end_to_end(make_interface, tmp_path: Path) -> None:
    settings = _settings(tmp_path)
    orchestrator = Orchestrator().with_multiplatform(True)

    report = orchestrator.run(settings, [make_interface("math")], [{}])

    relative = sorted(str(path.relative_to(settings.out_dir)) for path in report.written)
    assert relative == [
        "androidMain/kotlin/uniffi/math/math.android.kt",
        "commonMain/kotlin/uniffi/math/math.common.kt",
        "jvmMain/kotlin/uniffi/math/math.jvm.kt",
        "nativeInterop/cinterop/headers/math/math.h",
        "nativeMain/kotlin/uniffi/math/math.native.kt",
    ]
