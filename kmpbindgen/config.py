"""Configuration loading and resolution for Kotlin bindings (uniffi.toml)."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

DEFAULT_PACKAGE_PREFIX = "uniffi"
NESTED_CONFIG_PATH = ("bindings", "kotlin")


class ConfigError(RuntimeError):
    """Raised when a configuration document cannot be parsed or has bad values."""

    def __init__(self, message: str, *, key: str | None = None, source: str | None = None) -> None:
        self.key = key
        self.source = source
        prefix = f"{source}: " if source else ""
        super().__init__(f"{prefix}{message}")


class KotlinTarget(str, Enum):
    """Platforms a multiplatform build can specialize bindings for."""

    JVM = "jvm"
    ANDROID = "android"
    NATIVE = "native"


DEFAULT_TARGETS = (KotlinTarget.JVM, KotlinTarget.ANDROID, KotlinTarget.NATIVE)


@dataclass
class CustomType:
    """Kotlin mapping for a custom builtin type."""

    imports: List[str] = field(default_factory=list)
    type_name: Optional[str] = None
    lift: Optional[str] = None
    lower: Optional[str] = None


@dataclass
class KotlinConfig:
    """Resolved per-component settings read from ``[bindings.kotlin]``."""

    package_name: Optional[str] = None
    cdylib_name: Optional[str] = None
    kotlin_multiplatform: bool = False
    kotlin_targets: List[KotlinTarget] = field(default_factory=list)
    external_packages: Dict[str, str] = field(default_factory=dict)
    generate_immutable_records: bool = False
    omit_checksums: bool = False
    custom_types: Dict[str, CustomType] = field(default_factory=dict)
    kotlin_target_version: Optional[str] = None
    disable_java_cleaner: bool = False
    generate_serializable_types: bool = False
    use_pascal_case_enum_class: bool = False
    jvm_dynamic_library_dependencies: List[str] = field(default_factory=list)
    android_dynamic_library_dependencies: List[str] = field(default_factory=list)
    dynamic_library_dependencies: List[str] = field(default_factory=list)

    def package_for(self, namespace: str) -> str:
        """Return the effective package name for the component named *namespace*."""
        return self.package_name or default_package_name(namespace)

    def cdylib_for(self, namespace: str, build_cdylib: str | None = None) -> str:
        """Return the effective native library name for *namespace*."""
        return self.cdylib_name or build_cdylib or default_cdylib_name(namespace)


def default_package_name(namespace: str) -> str:
    return f"{DEFAULT_PACKAGE_PREFIX}.{namespace}"


def default_cdylib_name(namespace: str) -> str:
    return f"{DEFAULT_PACKAGE_PREFIX}_{namespace}"


def load_document(path: Path) -> Dict[str, Any]:
    """Read a raw configuration document from a TOML or YAML file.

    A missing file is not an error: it resolves to an empty document so every
    setting falls back to its default.
    """
    path = path.expanduser()
    if not path.exists():
        return {}

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read configuration: {exc}", source=path.name) from exc
    if not text.strip():
        return {}

    if path.suffix.lower() in {".yml", ".yaml"}:
        try:
            loaded = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse YAML: {exc}", source=path.name) from exc
    else:
        try:
            loaded = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Failed to parse TOML: {exc}", source=path.name) from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError("configuration must contain a mapping at the root", source=path.name)
    return loaded


def select_kotlin_section(
    document: Mapping[str, Any], *, source: str | None = None
) -> Mapping[str, Any]:
    """Pick ``bindings.kotlin`` when present, otherwise the document root.

    The two shapes are never merged: a nested section shadows every root key,
    even when it is malformed.
    """
    bindings = document.get(NESTED_CONFIG_PATH[0])
    if isinstance(bindings, Mapping) and NESTED_CONFIG_PATH[1] in bindings:
        nested = bindings[NESTED_CONFIG_PATH[1]]
        if not isinstance(nested, Mapping):
            key = ".".join(NESTED_CONFIG_PATH)
            raise ConfigError(
                f"invalid value for '{key}': expected a table, got {type(nested).__name__}",
                key=key,
                source=source,
            )
        return nested
    return document


def parse_kotlin_config(section: Mapping[str, Any], *, source: str | None = None) -> KotlinConfig:
    """Deserialize a Kotlin section, ignoring keys that are not recognized."""
    reader = _SectionReader(section, source)
    return KotlinConfig(
        package_name=reader.optional_str("package_name"),
        cdylib_name=reader.optional_str("cdylib_name"),
        kotlin_multiplatform=reader.flag("kotlin_multiplatform"),
        kotlin_targets=reader.targets("kotlin_targets"),
        external_packages=reader.str_mapping("external_packages"),
        generate_immutable_records=reader.flag("generate_immutable_records"),
        omit_checksums=reader.flag("omit_checksums"),
        custom_types=reader.custom_types("custom_types"),
        kotlin_target_version=reader.optional_str("kotlin_target_version"),
        disable_java_cleaner=reader.flag("disable_java_cleaner"),
        generate_serializable_types=reader.flag("generate_serializable_types"),
        use_pascal_case_enum_class=reader.flag("use_pascal_case_enum_class"),
        jvm_dynamic_library_dependencies=reader.str_list("jvm_dynamic_library_dependencies"),
        android_dynamic_library_dependencies=reader.str_list("android_dynamic_library_dependencies"),
        dynamic_library_dependencies=reader.str_list("dynamic_library_dependencies"),
    )


def resolve_config(
    document: Mapping[str, Any],
    *,
    force_multiplatform: bool = False,
    source: str | None = None,
) -> KotlinConfig:
    """Resolve one component's configuration.

    Precedence is command-line override, then the document, then built-in
    defaults. Forcing multiplatform mode fills in the default targets only when
    the document selected none; an explicit list is kept as written.
    """
    config = parse_kotlin_config(select_kotlin_section(document, source=source), source=source)
    if force_multiplatform:
        config.kotlin_multiplatform = True
        if not config.kotlin_targets:
            config.kotlin_targets = list(DEFAULT_TARGETS)
    return config


class _SectionReader:
    def __init__(self, section: Mapping[str, Any], source: str | None, prefix: str = "") -> None:
        self._section = section
        self._source = source
        self._prefix = prefix

    def _error(self, key: str, expected: str, value: Any) -> ConfigError:
        key = f"{self._prefix}{key}"
        return ConfigError(
            f"invalid value for '{key}': expected {expected}, got {type(value).__name__}",
            key=key,
            source=self._source,
        )

    def optional_str(self, key: str) -> Optional[str]:
        value = self._section.get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            raise self._error(key, "a string", value)
        return value

    def flag(self, key: str) -> bool:
        value = self._section.get(key)
        if value is None:
            return False
        if not isinstance(value, bool):
            raise self._error(key, "a boolean", value)
        return value

    def str_list(self, key: str) -> List[str]:
        value = self._section.get(key)
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise self._error(key, "a list of strings", value)
        return list(value)

    def str_mapping(self, key: str) -> Dict[str, str]:
        value = self._section.get(key)
        if value is None:
            return {}
        if not isinstance(value, Mapping) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in value.items()
        ):
            raise self._error(key, "a table of strings", value)
        return dict(value)

    def targets(self, key: str) -> List[KotlinTarget]:
        names = self.str_list(key)
        targets: List[KotlinTarget] = []
        for name in names:
            try:
                target = KotlinTarget(name)
            except ValueError:
                allowed = ", ".join(t.value for t in KotlinTarget)
                raise ConfigError(
                    f"unknown target '{name}' in '{key}' (expected one of: {allowed})",
                    key=key,
                    source=self._source,
                ) from None
            if target not in targets:
                targets.append(target)
        return targets

    def custom_types(self, key: str) -> Dict[str, CustomType]:
        value = self._section.get(key)
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise self._error(key, "a table", value)
        result: Dict[str, CustomType] = {}
        for name, entry in value.items():
            if not isinstance(entry, Mapping):
                raise self._error(f"{key}.{name}", "a table", entry)
            nested = _SectionReader(entry, self._source, prefix=f"{key}.{name}.")
            result[str(name)] = CustomType(
                imports=nested.str_list("imports"),
                type_name=nested.optional_str("type_name"),
                lift=nested.optional_str("lift"),
                lower=nested.optional_str("lower"),
            )
        return result


__all__ = [
    "ConfigError",
    "CustomType",
    "DEFAULT_TARGETS",
    "KotlinConfig",
    "KotlinTarget",
    "default_cdylib_name",
    "default_package_name",
    "load_document",
    "parse_kotlin_config",
    "resolve_config",
    "select_kotlin_section",
]
