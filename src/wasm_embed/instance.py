"""Instantiated modules and their call surface."""

import os
import threading
from typing import TYPE_CHECKING, Any

from .dispatch import ExportedFunction, InvocationDispatcher
from .engine import Engine, InstanceHandle, default_engine
from .errors import (
    CompileError,
    InstantiateError,
    SignatureResolutionError,
    UnknownFunctionError,
)
from .memory import MemoryView

if TYPE_CHECKING:
    from .module import Module


class ExportNamespace:
    """Attribute and item access to the exported functions of an instance."""

    def __init__(self, instance: "Instance") -> None:
        self._instance = instance

    def _export_name(self, name: str) -> str:
        # Exports like `add-one` are reachable as `add_one`
        functions = self._instance.function_names()
        if name in functions:
            return name
        for function in functions:
            if function.replace("-", "_") == name:
                return function
        return name

    def __getattr__(self, name: str) -> ExportedFunction:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._instance.function(self._export_name(name))
        except SignatureResolutionError as e:
            raise AttributeError(name) from e

    def __getitem__(self, name: str) -> ExportedFunction:
        try:
            return self._instance.function(name)
        except (UnknownFunctionError, SignatureResolutionError) as e:
            raise KeyError(name) from e

    def __dir__(self) -> list[str]:
        names = []
        for name in self._instance.function_names():
            safe_name = name.replace("-", "_")
            if safe_name.isidentifier():
                names.append(safe_name)
        return names


_UNSET = object()


class Instance:
    """A live instance of a WebAssembly module.

    The usual entry point is ``Instance.from_file``, which compiles and
    instantiates a binary in a single pass:

        instance = Instance.from_file("my_program.wasm")
        instance.call("sum", 1, 2)  # 3
        instance.exports.sum(1, 2)  # 3

    Arguments are checked against the export's signature before the call:
    integers for ``i32``/``i64`` parameters, floats for ``f32``/``f64``.
    """

    def __init__(
        self, engine: Engine, handle: InstanceHandle, module: "Module | None" = None
    ) -> None:
        self.engine = engine
        self.module = module
        self._handle = handle
        self._dispatcher = InvocationDispatcher(engine)
        self._functions: dict[str, ExportedFunction] = {}
        self._memory: Any = _UNSET
        self._memory_lock = threading.Lock()
        self.exports = ExportNamespace(self)

    @classmethod
    def from_file(cls, path: str | os.PathLike, engine: Engine | None = None) -> "Instance":
        """Compile and instantiate a WebAssembly binary file.

        Raises ``MissingFileError`` or ``UnreadableFileError`` if the file
        cannot be read, ``CompileError`` or ``InstantiateError`` otherwise.
        """
        engine = engine or default_engine()
        data = engine.fetch_bytes(path)
        return cls._compile_and_instantiate(
            engine,
            data,
            f"An error happened while compiling or instantiating the module `{path}`:",
        )

    @classmethod
    def from_bytes(cls, data: bytes, engine: Engine | None = None) -> "Instance":
        return cls._compile_and_instantiate(
            engine or default_engine(),
            data,
            "An error happened while compiling or instantiating the module:",
        )

    @classmethod
    def from_module(cls, module: "Module") -> "Instance":
        return module.new_instance()

    @classmethod
    def _compile_and_instantiate(
        cls, engine: Engine, data: bytes, message: str
    ) -> "Instance":
        from .module import Module

        artifact = engine.compile(data)
        if artifact is None:
            raise CompileError(message, engine.get_last_error())
        handle = engine.new_instance_from_module(artifact)
        if handle is None:
            raise InstantiateError(message, engine.get_last_error())
        return cls(engine, handle, Module(engine, artifact))

    def call(self, name: str, *args: Any) -> Any:
        """Call the exported function ``name`` with positional arguments."""
        return self._dispatcher.invoke(self._handle, name, args)

    def function(self, name: str) -> ExportedFunction:
        """Return a callable for one export, resolving its signature once."""
        func = self._functions.get(name)
        if func is None:
            func = ExportedFunction(self._dispatcher, self._handle, name)
            self._functions[name] = func
        return func

    def export_names(self) -> list[str]:
        return self.engine.export_names(self._handle)

    def function_names(self) -> list[str]:
        return self.engine.function_names(self._handle)

    def memory_buffer(self) -> MemoryView | None:
        """Return a view over the exported memory, or None if there is none.

        The engine is queried once; later calls return the same view (or
        the same None).
        """
        if self._memory is _UNSET:
            with self._memory_lock:
                if self._memory is _UNSET:
                    self._memory = self.engine.get_memory_buffer(self._handle)
        return self._memory

    def __repr__(self) -> str:
        return f"<Instance exports={self.export_names()!r}>"
