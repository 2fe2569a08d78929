"""Tests for kmpbindgen.linker."""

from __future__ import annotations

from pathlib import Path

import pytest

from kmpbindgen.config import KotlinConfig
from kmpbindgen.linker import link_components
from kmpbindgen.models import Component, GenerationSettings


def _components(make_interface, *namespaces: str) -> list[Component]:
    return [Component(ci=make_interface(name), config=KotlinConfig()) for name in namespaces]


def test_defaults_are_filled_in(make_interface, tmp_path: Path) -> None:
    components = _components(make_interface, "alpha")

    link_components(GenerationSettings(out_dir=tmp_path), components)

    assert components[0].config.package_name == "uniffi.alpha"
    assert components[0].config.cdylib_name == "uniffi_alpha"


def test_build_wide_cdylib_is_used_when_unset(make_interface, tmp_path: Path) -> None:
    components = _components(make_interface, "alpha", "beta")
    components[1].config.cdylib_name = "beta_native"

    link_components(GenerationSettings(out_dir=tmp_path, cdylib="megazord"), components)

    assert components[0].config.cdylib_name == "megazord"
    assert components[1].config.cdylib_name == "beta_native"


@pytest.mark.parametrize("max_workers", [None, 4])
def test_every_component_maps_all_siblings(make_interface, tmp_path: Path, max_workers) -> None:
    components = _components(make_interface, "alpha", "beta", "gamma")
    components[2].config.package_name = "com.example.gamma"

    packages = link_components(
        GenerationSettings(out_dir=tmp_path), components, max_workers=max_workers
    )

    assert dict(packages) == {
        "alpha_crate": "uniffi.alpha",
        "beta_crate": "uniffi.beta",
        "gamma_crate": "com.example.gamma",
    }
    for component in components:
        external = component.config.external_packages
        assert len(external) == 2
        assert component.ci.crate_name not in external
        for crate_name, package in packages.items():
            if crate_name != component.ci.crate_name:
                assert external[crate_name] == package


def test_explicit_external_packages_are_not_overwritten(make_interface, tmp_path: Path) -> None:
    components = _components(make_interface, "alpha", "beta")
    components[0].config.external_packages["beta_crate"] = "org.override.beta"

    link_components(GenerationSettings(out_dir=tmp_path), components)

    assert components[0].config.external_packages == {"beta_crate": "org.override.beta"}
    assert components[1].config.external_packages == {"alpha_crate": "uniffi.alpha"}


def test_linking_uses_crate_name_not_cdylib(make_interface, tmp_path: Path) -> None:
    components = [
        Component(ci=make_interface("alpha", "alpha_core"), config=KotlinConfig(cdylib_name="libalpha")),
        Component(ci=make_interface("beta", "beta_core"), config=KotlinConfig()),
    ]

    link_components(GenerationSettings(out_dir=tmp_path), components)

    assert components[1].config.external_packages == {"alpha_core": "uniffi.alpha"}


def test_package_name_is_stable_across_linking(make_interface, tmp_path: Path) -> None:
    component = _components(make_interface, "alpha")[0]
    before = component.config.package_for(component.ci.namespace)

    link_components(GenerationSettings(out_dir=tmp_path), [component])

    assert component.config.package_for(component.ci.namespace) == before
    assert component.config.external_packages == {}


def test_result_is_independent_of_order(make_interface, tmp_path: Path) -> None:
    forward = _components(make_interface, "alpha", "beta", "gamma")
    backward = list(reversed(_components(make_interface, "alpha", "beta", "gamma")))

    link_components(GenerationSettings(out_dir=tmp_path), forward)
    link_components(GenerationSettings(out_dir=tmp_path), backward)

    by_namespace = {c.ci.namespace: c.config.external_packages for c in backward}
    for component in forward:
        assert component.config.external_packages == by_namespace[component.ci.namespace]
