# registry.py
# Allow-list of backend modules and known identifiers.
#
# The decoder resolves symbolic references (backend module, backend
# function, config keys) only against this registry. Decoding never writes
# to it and never imports anything: a string that is not registered is a
# hard failure. Only trusted startup code (the host, or load_modules() fed
# from operator settings) grows the registry.

import importlib
import logging
from types import ModuleType
from typing import TYPE_CHECKING, Any, Callable, Iterable

from dynamic_form.errors import BackendConfigError, UnknownSymbolError

if TYPE_CHECKING:
    from dynamic_form.backends.base import SubmitFn

logger = logging.getLogger(__name__)


class Registry:
    """
    Process-wide table of backend modules and identifier names.

    Example:
        registry = Registry()
        registry.register_module(my_backend)
        registry.resolve_module("myapp.my_backend")   # -> "myapp.my_backend"
        registry.resolve_symbol("submit")              # -> "submit"
        registry.resolve_symbol("rm_rf")               # UnknownSymbolError
    """

    def __init__(self) -> None:
        self._modules: dict[str, Any] = {}
        self._functions: dict[str, frozenset[str]] = {}
        self._symbols: set[str] = set()

    # ------------------------------------------------------------------
    # Population (trusted callers only)
    # ------------------------------------------------------------------

    def register_module(
        self,
        module: Any,
        name: str | None = None,
        functions: Iterable[str] | None = None,
    ) -> str:
        """
        Register a backend module (or any namespace object).

        `functions` defaults to the module's `__all__`. The module name,
        its functions and its CONFIG_KEYS all become known identifiers.
        """
        name = name or getattr(module, "__name__", None)
        if not name:
            raise ValueError("Cannot register a module without a name.")

        exported = list(functions if functions is not None else getattr(module, "__all__", ()))
        callables = frozenset(f for f in exported if callable(getattr(module, f, None)))

        self._modules[name] = module
        self._functions[name] = callables
        self._symbols.add(name)
        self._symbols.update(callables)
        self._symbols.update(getattr(module, "CONFIG_KEYS", ()))
        logger.debug("Registered backend module %s (functions: %s)", name, sorted(callables))
        return name

    def register_symbols(self, *names: str) -> None:
        self._symbols.update(names)

    def load_modules(self, paths: Iterable[str]) -> list[str]:
        """
        Import and register operator-configured module paths.

        Only ever call this with trusted configuration, never with decoded
        form data.
        """
        loaded: list[str] = []
        for path in paths:
            path = path.strip()
            if not path:
                continue
            module = importlib.import_module(path)
            loaded.append(self.register_module(module))
        return loaded

    # ------------------------------------------------------------------
    # Resolution (read-only)
    # ------------------------------------------------------------------

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and (name in self._symbols or name in self._modules)

    @property
    def modules(self) -> list[str]:
        return sorted(self._modules)

    def resolve_module(self, name: Any) -> str:
        if isinstance(name, ModuleType):
            name = name.__name__
        if isinstance(name, str) and name in self._modules:
            return name
        raise UnknownSymbolError(name, kind="module")

    def resolve_symbol(self, name: Any) -> str:
        if isinstance(name, str) and name in self._symbols:
            return name
        raise UnknownSymbolError(name)

    # ------------------------------------------------------------------
    # Invocation support
    # ------------------------------------------------------------------

    def function_for(self, module_name: str, function: str) -> "SubmitFn":
        """
        Fetch the callable for a decoded backend reference.

        A module that is registered but does not export `function` is a
        configuration error raised here, at first invocation.
        """
        if module_name not in self._modules:
            raise BackendConfigError(f"Backend module '{module_name}' is not registered.")
        if function not in self._functions[module_name]:
            raise BackendConfigError(
                f"Backend module '{module_name}' does not implement '{function}'."
            )
        return getattr(self._modules[module_name], function)

    def config_validator(self, module_name: str) -> Callable[[dict[str, Any]], str | None] | None:
        module = self._modules.get(module_name)
        check = getattr(module, "validate_config", None)
        return check if callable(check) else None


REGISTRY = Registry()
