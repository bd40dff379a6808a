"""Security isolation components for running bot code."""

import builtins
import logging
from types import ModuleType
from typing import Any, Callable, Dict, Optional, Set

from domain.exceptions import ModuleNotAvailable
from infrastructure.logging import get_bot_logger, get_logger

logger = get_logger(__name__)

BOT_MODULE_NAME = "__bot__"


class BotConsole:
    """Logging facade handed to bot code as ``console``.

    Every line is prefixed with the instance's display name so output from
    concurrently running bots stays attributable.
    """

    def __init__(self, display_name: str, bot_logger: Optional[logging.Logger] = None):
        self.display_name = display_name
        self._logger = bot_logger or get_bot_logger(display_name)

    def _emit(self, level: int, args: tuple) -> None:
        message = " ".join(str(arg) for arg in args)
        self._logger.log(level, f"[{self.display_name}] {message}")

    def log(self, *args: Any) -> None:
        self._emit(logging.INFO, args)

    def info(self, *args: Any) -> None:
        self._emit(logging.INFO, args)

    def warn(self, *args: Any) -> None:
        self._emit(logging.WARNING, args)

    warning = warn

    def error(self, *args: Any) -> None:
        self._emit(logging.ERROR, args)

    def debug(self, *args: Any) -> None:
        self._emit(logging.DEBUG, args)

    def print(self, *args: Any, sep: str = " ", end: str = "\n", **_: Any) -> None:
        """Replacement for the ``print`` builtin."""
        self._emit(logging.INFO, (sep.join(str(arg) for arg in args),))


class SecurityIsolator:
    """Builds the restricted builtins and import hook for bot code."""

    def __init__(self, allowed_builtins: Set[str] = None):
        """
        Initialize security isolator.

        Args:
            allowed_builtins: Set of allowed builtin names
        """
        self.allowed_builtins = allowed_builtins or self._get_default_builtins()

    def create_safe_builtins(
        self, import_hook: Callable[..., Any], print_hook: Callable[..., None]
    ) -> Dict[str, Any]:
        """Create dictionary of safe builtin functions."""
        safe_builtins = {}

        for name in self.allowed_builtins:
            if hasattr(builtins, name):
                safe_builtins[name] = getattr(builtins, name)

        safe_builtins["__import__"] = import_hook
        safe_builtins["print"] = print_hook
        return safe_builtins

    def create_import_hook(self, allowed_name: str, module: ModuleType) -> Callable[..., Any]:
        """Return an ``__import__`` that resolves exactly one module name."""

        def guarded_import(name, globals=None, locals=None, fromlist=(), level=0):
            if level == 0 and name == allowed_name:
                return module
            logger.warning(f"Blocked import of {name!r} from bot code")
            raise ModuleNotAvailable(name)

        return guarded_import

    def _get_default_builtins(self) -> Set[str]:
        """Get default set of allowed builtin names."""
        return {
            # values and containers
            "None", "True", "False", "Ellipsis", "NotImplemented",
            "bool", "int", "float", "complex", "str", "bytes", "bytearray",
            "list", "dict", "tuple", "set", "frozenset", "object", "slice",
            # functions
            "len", "min", "max", "sum", "abs", "round", "sorted", "reversed",
            "enumerate", "zip", "range", "map", "filter", "any", "all", "iter",
            "next", "divmod", "pow", "hash", "id", "chr", "ord", "hex", "oct",
            "bin", "format", "repr", "ascii", "callable",
            "type", "isinstance", "issubclass", "hasattr", "getattr", "setattr",
            # class definitions and decorators used by event handlers
            "__build_class__", "super", "property", "staticmethod", "classmethod",
            # exceptions
            "Exception", "ValueError", "TypeError", "KeyError", "IndexError",
            "AttributeError", "RuntimeError", "LookupError", "ArithmeticError",
            "ZeroDivisionError", "NotImplementedError", "StopIteration",
            "StopAsyncIteration", "ImportError",
        }


class ExecutionEnvironmentBuilder:
    """Constructs the namespace bot code runs in.

    The namespace is the only binding surface visible to the code: restricted
    builtins, an import hook that resolves only the gateway module, a prefixed
    ``console``, and an ``exports`` placeholder. The host process, ``sys`` and
    the host's globals are never bound.
    """

    def __init__(self, isolator: Optional[SecurityIsolator] = None):
        """Initialize environment builder."""
        self.security_isolator = isolator or SecurityIsolator()

    def build(
        self,
        display_name: str,
        gateway_name: str,
        gateway_module: ModuleType,
        entry_file: str = "main.py",
    ) -> Dict[str, Any]:
        """
        Build a fresh namespace for one bot.

        Args:
            display_name: Instance name used to prefix console output
            gateway_name: Import name bot code uses for the gateway library
            gateway_module: Module object returned for that import
            entry_file: File name reported as ``__file__``

        Returns:
            Namespace dictionary to execute the bot code in
        """
        console = BotConsole(display_name)
        import_hook = self.security_isolator.create_import_hook(gateway_name, gateway_module)

        return {
            "__builtins__": self.security_isolator.create_safe_builtins(import_hook, console.print),
            "__name__": BOT_MODULE_NAME,
            "__file__": entry_file,
            "console": console,
            "exports": {},
        }
