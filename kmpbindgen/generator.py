"""Binding text generators that turn an interface description into Kotlin."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Protocol, Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .config import CustomType, KotlinConfig, KotlinTarget
from .models import EmissionBundle, InterfaceDescription

_KOTLIN_TYPES: Dict[str, str] = {
    "u8": "UByte",
    "i8": "Byte",
    "u16": "UShort",
    "i16": "Short",
    "u32": "UInt",
    "i32": "Int",
    "u64": "ULong",
    "i64": "Long",
    "f32": "Float",
    "f64": "Double",
    "bool": "Boolean",
    "string": "String",
    "bytes": "ByteArray",
}

_C_TYPES: Dict[str, str] = {
    "u8": "uint8_t",
    "i8": "int8_t",
    "u16": "uint16_t",
    "i16": "int16_t",
    "u32": "uint32_t",
    "i32": "int32_t",
    "u64": "uint64_t",
    "i64": "int64_t",
    "f32": "float",
    "f64": "double",
    "bool": "int8_t",
}

_WORD_SPLIT = re.compile(r"[_\-\s]+")


class BindingGenerator(Protocol):
    """Produces the per-variant binding text for one component."""

    def generate(self, config: KotlinConfig, ci: InterfaceDescription) -> EmissionBundle:
        ...


class TemplateBindingGenerator:
    """Renders bindings from the Jinja2 templates bundled with kmpbindgen.

    Multiplatform builds get an ``expect`` surface in ``common`` plus one
    ``actual`` file per selected target; a Kotlin/Native target also gets the
    cinterop header. Single-target builds emit ``common`` and ``jvm`` only.
    """

    def __init__(self, templates_dir: Path | None = None, *, emit_stub: bool = False) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self.emit_stub = emit_stub
        self._env = self._create_env(self.templates_dir)

    def generate(self, config: KotlinConfig, ci: InterfaceDescription) -> EmissionBundle:
        context = self._build_context(config, ci)
        bundle = EmissionBundle(common=self._render("common.kt.j2", context))

        if not config.kotlin_multiplatform:
            bundle.jvm = self._render_platform(context, KotlinTarget.JVM.value)
            return bundle

        for target in config.kotlin_targets:
            rendered = self._render_platform(context, target.value)
            setattr(bundle, target.value, rendered)
        if KotlinTarget.NATIVE in config.kotlin_targets:
            bundle.header = self._render("header.h.j2", context)
        if self.emit_stub:
            bundle.stub = self._render_platform(context, "stub")
        return bundle

    def _render_platform(self, context: Dict[str, Any], target: str) -> str:
        config: KotlinConfig = context["config"]
        return self._render(
            "platform.kt.j2",
            {**context, "target": target, "dynamic_libraries": dynamic_libraries(config, target)},
        )

    def _render(self, template_name: str, context: Dict[str, Any]) -> str:
        template = self._env.get_template(template_name)
        return template.render(**context).rstrip() + "\n"

    def _build_context(self, config: KotlinConfig, ci: InterfaceDescription) -> Dict[str, Any]:
        external: List[Tuple[str, str]] = sorted(config.external_packages.items())
        return {
            "ci": ci,
            "config": config,
            "package_name": config.package_for(ci.namespace),
            "cdylib_name": config.cdylib_for(ci.namespace),
            "external_packages": external,
            "custom_types": config.custom_types,
            "custom_imports": custom_imports(config.custom_types),
        }

    def _create_env(self, templates_dir: Path) -> Environment:
        env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        env.filters["camel"] = camel_case
        env.filters["pascal"] = pascal_case
        env.filters["kotlin_type"] = kotlin_type
        env.filters["c_type"] = c_type
        env.filters["lower_expr"] = lower_expr
        env.filters["lift_expr"] = lift_expr
        return env


def pascal_case(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in _WORD_SPLIT.split(name) if part)


def camel_case(name: str) -> str:
    pascal = pascal_case(name)
    return pascal[:1].lower() + pascal[1:]


def kotlin_type(type_name: str | None, custom_types: Dict[str, Any] | None = None) -> str:
    """Map an interface type name onto the Kotlin type used in signatures."""
    if not type_name:
        return "Unit"
    if type_name.endswith("?"):
        return kotlin_type(type_name[:-1], custom_types) + "?"
    if type_name.startswith("sequence<") and type_name.endswith(">"):
        return f"List<{kotlin_type(type_name[9:-1], custom_types)}>"
    if custom_types and type_name in custom_types:
        custom = custom_types[type_name]
        if custom.type_name:
            return custom.type_name
    return _KOTLIN_TYPES.get(type_name, pascal_case(type_name))


def c_type(type_name: str | None) -> str:
    """Map an interface type name onto the C ABI type used in the header."""
    if not type_name:
        return "void"
    # Everything that is not a primitive crosses the ABI serialized.
    return _C_TYPES.get(type_name, "RustBuffer")


def custom_imports(custom_types: Dict[str, CustomType]) -> List[str]:
    """Return the sorted, de-duplicated imports required by custom types."""
    return sorted({imp for custom in custom_types.values() for imp in custom.imports})


def lower_expr(name: str, type_name: str | None, custom_types: Dict[str, CustomType]) -> str:
    """Wrap the Kotlin expression *name* in its custom type's lowering, if any."""
    custom = custom_types.get(type_name or "")
    if custom is None or not custom.lower:
        return name
    return custom.lower.replace("{}", name)


def lift_expr(expression: str, type_name: str | None, custom_types: Dict[str, CustomType]) -> str:
    custom = custom_types.get(type_name or "")
    if custom is None or not custom.lift:
        return expression
    return custom.lift.replace("{}", expression)


def dynamic_libraries(config: KotlinConfig, target: str) -> List[str]:
    """Native libraries a target must load before the component's own library."""
    per_target = {
        "jvm": config.jvm_dynamic_library_dependencies,
        "android": config.android_dynamic_library_dependencies,
    }.get(target, [])
    ordered: List[str] = []
    for name in [*per_target, *config.dynamic_library_dependencies]:
        if name not in ordered:
            ordered.append(name)
    return ordered


__all__ = [
    "BindingGenerator",
    "TemplateBindingGenerator",
    "c_type",
    "custom_imports",
    "dynamic_libraries",
    "lift_expr",
    "lower_expr",
    "camel_case",
    "kotlin_type",
    "pascal_case",
]
