"""Kotlin Multiplatform binding generation for native components."""

from .config import ConfigError, KotlinConfig, KotlinTarget, resolve_config
from .generator import BindingGenerator, TemplateBindingGenerator
from .linker import link_components
from .models import Component, EmissionBundle, GenerationSettings, InterfaceDescription
from .orchestrator import GenerationError, GenerationReport, Orchestrator
from .writer import BindingsWriter, FormatResult, WriteError

__all__ = [
    "BindingGenerator",
    "BindingsWriter",
    "Component",
    "ConfigError",
    "EmissionBundle",
    "FormatResult",
    "GenerationError",
    "GenerationReport",
    "GenerationSettings",
    "InterfaceDescription",
    "KotlinConfig",
    "KotlinTarget",
    "Orchestrator",
    "TemplateBindingGenerator",
    "WriteError",
    "link_components",
    "resolve_config",
]
