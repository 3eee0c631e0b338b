"""Switchboard dependency injection framework.

Switchboard resolves services by name. Providers are registered under string
keys, each declaring the keys it depends on, and an injector builds every
service on first request, exactly once, resolving its dependencies left to
right. Circular dependencies are reported with the full resolution path.

Applications are assembled from modules. Loading runs in two phases: a
configuration phase, in which modules register providers and configure
provider objects, and a run phase, in which the frozen registry serves
instances for the lifetime of the application.

Key Features:
    - Six provider kinds: value, constant, factory, service, provider, decorator
    - Explicit dependency annotation (inline ``["a", "b", fn]`` or ``@inject``)
    - Optional parameter-name inference when strict mode is off
    - Deterministic module ordering with cycle detection
    - No global state: injectors and module registries are explicit objects

Basic Usage:
    >>> from switchboard import ModuleRegistry, bootstrap
    >>>
    >>> modules = ModuleRegistry()
    >>> app = modules.module("app", requires=[])
    >>> app.constant("greeting", "hi")
    >>> app.factory("greeter", ["greeting", lambda g: Greeter(g)])
    >>>
    >>> injector = bootstrap(["app"], modules).run_injector
    >>> injector.get("greeter").greet()

The framework consists of several core modules:
    - annotations: Dependency key extraction
    - registry: Provider definitions and the config-phase registrar
    - injector: Resolution, caching and cycle detection
    - module, module_loader: Modules and two-phase bootstrap
    - builders: High-level entry points
    - errors: Framework-specific exceptions
"""

from switchboard.annotations import dependency_keys, extract_dependency_keys, inject
from switchboard.builders import bootstrap, make_injector, make_injectors
from switchboard.config import DuplicatePolicy, InjectorConfig
from switchboard.domain import Phase, ProviderDefinition, ProviderKind
from switchboard.errors import (
    AnnotationError,
    CircularDependencyError,
    ConfigurationFrozenError,
    DependencyError,
    DuplicateProviderError,
    InvalidProviderError,
    ModuleCycleError,
    UnknownModuleError,
    UnknownProviderError,
)
from switchboard.injector import Injector
from switchboard.module import Module, ModuleRegistry
from switchboard.module_loader import InjectorHierarchy, ModuleLoader
from switchboard.registry import ProviderRegistry, Registrar

__all__ = [
    "inject",
    "dependency_keys",
    "extract_dependency_keys",
    "bootstrap",
    "make_injector",
    "make_injectors",
    "DuplicatePolicy",
    "InjectorConfig",
    "Phase",
    "ProviderDefinition",
    "ProviderKind",
    "AnnotationError",
    "CircularDependencyError",
    "ConfigurationFrozenError",
    "DependencyError",
    "DuplicateProviderError",
    "InvalidProviderError",
    "ModuleCycleError",
    "UnknownModuleError",
    "UnknownProviderError",
    "Injector",
    "Module",
    "ModuleRegistry",
    "InjectorHierarchy",
    "ModuleLoader",
    "ProviderRegistry",
    "Registrar",
]
