"""Loading of modules into a two-phase injector hierarchy.

Loading proceeds in three steps:

1. Order the requested modules and everything they transitively require,
   each module after its requirements and at most once. A cycle in
   ``requires`` aborts loading before anything is executed.
2. Configuration phase: for each module in order, replay its registrations
   into a fresh :class:`~switchboard.registry.ProviderRegistry`, then run its
   config blocks with the config-phase injector.
3. Run phase: finalize the registry into the run-phase injector, then run
   every module's run blocks in the same order.

The first error raised at any step aborts the bootstrap.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from switchboard.config import DEFAULT_CONFIG, InjectorConfig
from switchboard.domain import Invokable, ProviderKind
from switchboard.errors import ModuleCycleError, UnknownModuleError
from switchboard.injector import Injector, make_config_injector, make_run_injector
from switchboard.module import Module, ModuleRegistry
from switchboard.registry import ProviderRegistry

__all__ = ["InjectorHierarchy", "ModuleLoader", "ModuleRoot"]

logger = logging.getLogger(__name__)


ModuleRoot = Union[str, Module, Invokable]
"""Something that can be passed to :meth:`ModuleLoader.load`.

A module name, a :class:`~switchboard.module.Module`, or an invokable that is
run as an anonymous config block at its position in the load order.
"""


@dataclass(frozen=True)
class InjectorHierarchy:
    """The injectors produced by one bootstrap.

    Attributes:
        config_injector: Sees constants and provider objects only.
        run_injector: Sees every service; used for the lifetime of the application.
        registry: The (now frozen) registry both injectors were built from.
        loaded_modules: Names of the loaded modules, in load order.
    """

    config_injector: Injector
    run_injector: Injector
    registry: ProviderRegistry
    loaded_modules: tuple[str, ...]


class _ModuleGraph:
    """
    Internal helper ordering modules so that requirements come first.

    Traversal is depth first, following ``requires`` in declaration order, so
    the resulting order is deterministic for a given set of roots.
    """

    def __init__(self, modules: ModuleRegistry):
        self._modules = modules

    def traverse(self, roots: Iterable[Module]) -> list[Module]:
        """
        Return the roots and their transitive requirements in load order.

        Raises:
            ModuleCycleError: If any module transitively requires itself.
            UnknownModuleError: If a required module is not registered.
        """
        ordered: list[Module] = []
        visited: set[str] = set()
        for root in roots:
            self._visit(root, [], visited, ordered)
        return ordered

    def _visit(self, module: Module, path: list[str], visited: set[str], ordered: list[Module]):
        if module.name in path:
            raise ModuleCycleError(path[path.index(module.name):] + [module.name])
        if module.name in visited:
            return

        path.append(module.name)
        for required_name in module.requires:
            if required_name not in self._modules:
                raise UnknownModuleError(required_name, module.name)
            self._visit(self._modules[required_name], path, visited, ordered)
        path.pop()

        visited.add(module.name)
        ordered.append(module)


class ModuleLoader:
    """Bootstrap modules into an :class:`InjectorHierarchy`.

    Args:
        modules: Registry used to look up modules by name. A private one is
            created if omitted; :class:`Module` roots are added to it on load.
        config: Configuration for the registry and both injectors.
    """

    def __init__(
        self,
        modules: Optional[ModuleRegistry] = None,
        config: InjectorConfig = DEFAULT_CONFIG,
    ):
        self._modules = modules if modules is not None else ModuleRegistry()
        self._config = config

    def load(self, roots: Iterable[ModuleRoot]) -> InjectorHierarchy:
        """Load ``roots`` and everything they require.

        Args:
            roots: Module names, modules, or anonymous config invokables.

        Returns:
            The config- and run-phase injectors built from the loaded modules.

        Raises:
            ModuleCycleError: If the ``requires`` graph has a cycle.
            UnknownModuleError: If a root or required module is not registered.
            DependencyError: Any error raised while registering, configuring or running.
        """
        order = _ModuleGraph(self._modules).traverse(self._root_modules(roots))
        logger.debug("Module load order: %s", [module.name for module in order])

        registry = ProviderRegistry(self._config)
        config_injector = make_config_injector(registry)

        for module in order:
            self._configure(module, registry, config_injector)

        run_injector = make_run_injector(registry, config_injector)

        for module in order:
            for block in module.run_blocks:
                run_injector.invoke(block)

        logger.info("Bootstrapped %d modules", len(order))
        return InjectorHierarchy(
            config_injector,
            run_injector,
            registry,
            tuple(module.name for module in order),
        )

    def _configure(self, module: Module, registry: ProviderRegistry, config_injector: Injector):
        logger.debug("Loading module '%s'", module.name)
        # Decorators go last so they can wrap providers declared after them.
        registrations = sorted(
            module.registrations, key=lambda r: r.kind is ProviderKind.DECORATOR
        )
        for registration in registrations:
            registry.register(registration.name, registration.kind, registration.invokable)
        for block in module.config_blocks:
            config_injector.invoke(block)

    def _root_modules(self, roots: Iterable[ModuleRoot]) -> list[Module]:
        modules = []
        for index, root in enumerate(roots):
            if isinstance(root, str):
                modules.append(self._modules[root])
            elif isinstance(root, Module):
                modules.append(self._modules.add(root))
            else:
                anonymous = Module(f"<config block {index}>")
                anonymous.config(root)
                modules.append(anonymous)
        return modules
