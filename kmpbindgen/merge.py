"""Merges build-tool supplied settings into a component's bindings config.

The merged document always uses the nested ``bindings.kotlin`` shape. Values
already present in the original document win over supplied ones.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, TypeVar

import tomli_w
import yaml

from .config import ConfigError, load_document, select_kotlin_section
from .logging import get_logger

_LOGGER = get_logger("merge")

T = TypeVar("T")

_SCALAR_KEYS = (
    "package_name",
    "cdylib_name",
    "kotlin_multiplatform",
    "generate_immutable_records",
    "omit_checksums",
    "disable_java_cleaner",
    "generate_serializable_types",
    "use_pascal_case_enum_class",
)

_LIST_KEYS = (
    "kotlin_targets",
    "jvm_dynamic_library_dependencies",
    "android_dynamic_library_dependencies",
    "dynamic_library_dependencies",
)


@dataclass
class MergeInputs:
    """Values the build tool knows about a component."""

    crate_name: Optional[str] = None
    package_root: Optional[str] = None
    package_name: Optional[str] = None
    cdylib_name: Optional[str] = None
    kotlin_multiplatform: Optional[bool] = None
    kotlin_targets: Optional[List[str]] = None
    generate_immutable_records: Optional[bool] = None
    omit_checksums: Optional[bool] = None
    custom_types: Optional[Dict[str, Dict[str, Any]]] = None
    kotlin_version: Optional[str] = None
    disable_java_cleaner: Optional[bool] = None
    generate_serializable_types: Optional[bool] = None
    use_pascal_case_enum_class: Optional[bool] = None
    jvm_dynamic_library_dependencies: Optional[List[str]] = None
    android_dynamic_library_dependencies: Optional[List[str]] = None
    dynamic_library_dependencies: Optional[List[str]] = None
    external_package_configs: List[Path] = field(default_factory=list)


def merge_config(original: Mapping[str, Any] | None, inputs: MergeInputs) -> Dict[str, Any]:
    """Return a new nested-shape document combining *original* and *inputs*."""
    document: Dict[str, Any] = dict(original or {})
    original_kotlin = _original_kotlin_section(original)

    kotlin: Dict[str, Any] = {}
    for key in _SCALAR_KEYS:
        _put(kotlin, key, _first(original_kotlin.get(key), getattr(inputs, key)))
    for key in _LIST_KEYS:
        _put(kotlin, key, merge_list(original_kotlin.get(key), getattr(inputs, key)))

    _put(kotlin, "custom_types", merge_map(original_kotlin.get("custom_types"), inputs.custom_types))
    harvested = (
        retrieve_external_package_names(inputs.external_package_configs)
        if inputs.external_package_configs
        else None
    )
    _put(
        kotlin,
        "external_packages",
        merge_map(original_kotlin.get("external_packages"), harvested),
    )

    kotlin_version = inputs.kotlin_version if inputs.kotlin_version and inputs.kotlin_version.strip() else None
    _put(kotlin, "kotlin_target_version", _first(original_kotlin.get("kotlin_target_version"), kotlin_version))

    _put(document, "crate_name", inputs.crate_name, replace=True)
    _put(document, "package_root", inputs.package_root, replace=True)
    existing = document.get("bindings")
    bindings = dict(existing) if isinstance(existing, Mapping) else {}
    bindings["kotlin"] = kotlin
    document["bindings"] = bindings
    return document


def retrieve_external_package_names(config_paths: Sequence[Path]) -> Dict[str, str]:
    """Collect ``crate -> package`` entries from sibling components' configs.

    The first file that names a crate wins; later files never overwrite it.
    """
    result: Dict[str, str] = {}
    for path in config_paths:
        document = load_document(path)
        crate_name = document.get("crate_name")
        bindings = document.get("bindings")
        kotlin = bindings.get("kotlin") if isinstance(bindings, Mapping) else None
        if not isinstance(crate_name, str) or not isinstance(kotlin, Mapping):
            _LOGGER.debug("Skipping %s: no crate_name or [bindings.kotlin]", path)
            continue
        package_name = kotlin.get("package_name")
        if isinstance(package_name, str):
            result.setdefault(crate_name, package_name)
        external = kotlin.get("external_packages")
        if isinstance(external, Mapping):
            for external_crate, external_package in external.items():
                result.setdefault(str(external_crate), str(external_package))
    return result


def write_merged_config(document: Mapping[str, Any], output: Path) -> Path:
    """Serialize a merged document as TOML or YAML, chosen by *output*'s suffix."""
    suffix = output.suffix.lower()
    if suffix == ".toml":
        try:
            text = tomli_w.dumps(dict(document))
        except TypeError as exc:
            raise ConfigError(f"cannot be written as TOML: {exc}", source=output.name) from exc
    elif suffix in {".yml", ".yaml"}:
        text = yaml.safe_dump(dict(document), sort_keys=False)
    else:
        raise ConfigError("merged configuration must be a .toml or .yml file", source=output.name)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    return output


def merge_map(original: Mapping[str, T] | None, new: Mapping[str, T] | None) -> Optional[Dict[str, T]]:
    if original is None:
        return dict(new) if new is not None else None
    if new is None:
        return dict(original)
    merged = dict(original)
    for key, value in new.items():
        merged.setdefault(key, value)
    return merged


def merge_list(lhs: Sequence[str] | None, rhs: Sequence[str] | None) -> Optional[List[str]]:
    if lhs is None:
        return list(rhs) if rhs is not None else None
    if rhs is None:
        return list(lhs)
    return [*lhs, *rhs]


def _original_kotlin_section(original: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return select_kotlin_section(original) if original else {}


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _put(target: Dict[str, Any], key: str, value: Any, *, replace: bool = False) -> None:
    if value is None:
        if replace:
            target.pop(key, None)
        return
    target[key] = value


__all__ = [
    "MergeInputs",
    "merge_config",
    "merge_list",
    "merge_map",
    "retrieve_external_package_names",
    "write_merged_config",
]
