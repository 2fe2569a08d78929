"""Cross-component package resolution for multi-crate builds."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType
from typing import Mapping, Sequence

from .logging import get_logger
from .models import Component, GenerationSettings

_LOGGER = get_logger("linker")


def link_components(
    settings: GenerationSettings,
    components: Sequence[Component],
    *,
    max_workers: int | None = None,
) -> Mapping[str, str]:
    """Fill in defaults and point every component at its siblings' packages.

    Returns the read-only ``crate name -> package`` snapshot that was applied.
    Entries a user already placed in ``external_packages`` are left untouched.
    """
    for component in components:
        namespace = component.ci.namespace
        config = component.config
        if config.package_name is None:
            config.package_name = config.package_for(namespace)
        if config.cdylib_name is None:
            config.cdylib_name = config.cdylib_for(namespace, settings.cdylib)

    packages: Mapping[str, str] = MappingProxyType(
        {c.ci.crate_name: c.config.package_for(c.ci.namespace) for c in components}
    )

    if max_workers and max_workers > 1 and len(components) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            list(pool.map(lambda c: _apply_external_packages(c, packages), components))
    else:
        for component in components:
            _apply_external_packages(component, packages)

    _LOGGER.debug("Linked %d components: %s", len(components), dict(packages))
    return packages


def _apply_external_packages(component: Component, packages: Mapping[str, str]) -> None:
    own_crate = component.ci.crate_name
    external = component.config.external_packages
    for crate_name, package in packages.items():
        if crate_name != own_crate:
            external.setdefault(crate_name, package)


__all__ = ["link_components"]
