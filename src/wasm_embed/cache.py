"""Identifier-keyed cache of compiled modules."""

import logging
import threading
from typing import TYPE_CHECKING

from .engine import Engine, default_engine
from .errors import CompileError

if TYPE_CHECKING:
    from .module import Module

logger = logging.getLogger(__name__)


class ModuleCache:
    """Maps module identifiers to compiled modules.

    Compiling with an identifier that is already cached returns the cached
    module without looking at the bytes: the caller guarantees that an
    identifier always stands for the same module. Entries live until
    ``clear()``.

    Only one cache should be shared per process to get cache hits across
    call sites; independent caches are useful for tests.
    """

    def __init__(self, engine: Engine | None = None) -> None:
        self.engine = engine or default_engine()
        self._modules: dict[str, "Module"] = {}
        self._lock = threading.RLock()

    def compile(self, data: bytes, identifier: str | None = None) -> "Module":
        """Compile bytes into a module, going through the cache if identified."""
        if identifier is None:
            return self._compile(data, None)

        # Check and insert under one lock so a new identifier compiles once
        with self._lock:
            module = self._modules.get(identifier)
            if module is not None:
                logger.debug("Module cache hit for %r", identifier)
                return module
            module = self._compile(data, identifier)
            self._modules[identifier] = module
            return module

    def _compile(self, data: bytes, identifier: str | None) -> "Module":
        from .module import Module

        artifact = self.engine.compile(data)
        if artifact is None:
            raise CompileError(
                "An error happened while compiling the module:",
                self.engine.get_last_error(),
            )
        return Module(self.engine, artifact, identifier)

    def get(self, identifier: str) -> "Module | None":
        with self._lock:
            return self._modules.get(identifier)

    def __contains__(self, identifier: str) -> bool:
        with self._lock:
            return identifier in self._modules

    def __len__(self) -> int:
        with self._lock:
            return len(self._modules)

    def clear(self) -> None:
        """Drop every entry. Modules already handed out stay usable."""
        with self._lock:
            count = len(self._modules)
            self._modules.clear()
        logger.info("Cleared %d cached module(s)", count)


_default_cache: ModuleCache | None = None
_default_cache_lock = threading.Lock()


def default_cache() -> ModuleCache:
    """Get or create the process-wide module cache."""
    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            _default_cache = ModuleCache()
        return _default_cache
