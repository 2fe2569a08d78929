"""Core data models shared across kmpbindgen components."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml

from .config import KotlinConfig


@dataclass(frozen=True)
class InterfaceDescription:
    """Language-neutral view of one native component's exported surface."""

    namespace: str
    crate_name: str
    functions: Tuple[Dict[str, Any], ...] = ()
    records: Tuple[Dict[str, Any], ...] = ()
    enums: Tuple[Dict[str, Any], ...] = ()


@dataclass
class Component:
    """An interface description paired with its resolved configuration."""

    ci: InterfaceDescription
    config: KotlinConfig


@dataclass
class EmissionBundle:
    """Binding text produced for a single component, one blob per variant."""

    common: str
    jvm: Optional[str] = None
    android: Optional[str] = None
    native: Optional[str] = None
    stub: Optional[str] = None
    header: Optional[str] = None

    def source_variants(self) -> Iterator[Tuple[str, str]]:
        """Yield ``(variant, content)`` for every populated Kotlin source blob."""
        yield "common", self.common
        for name in ("jvm", "android", "native", "stub"):
            content = getattr(self, name)
            if content is not None:
                yield name, content


@dataclass
class GenerationSettings:
    """Build-wide settings supplied by the invoking tool."""

    out_dir: Path
    cdylib: Optional[str] = None
    try_format_code: bool = True
    formatter: List[str] = field(default_factory=lambda: ["ktlint", "-F"])
    format_timeout: Optional[float] = None


def load_interface(path: Path) -> InterfaceDescription:
    """Load an interface description from a JSON or YAML file."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Failed to parse {path.name}: {exc}") from exc
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"{path.name} must contain a mapping at the root")

    namespace = data.get("namespace")
    if not isinstance(namespace, str) or not namespace:
        raise ValueError(f"{path.name} is missing a 'namespace'")
    crate_name = data.get("crate_name") or namespace

    return InterfaceDescription(
        namespace=namespace,
        crate_name=str(crate_name),
        functions=_as_items(data.get("functions")),
        records=_as_items(data.get("records")),
        enums=_as_items(data.get("enums")),
    )


def _as_items(value: Any) -> Tuple[Dict[str, Any], ...]:
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, dict))
