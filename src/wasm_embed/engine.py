"""Adapter over the wasmtime runtime.

Operations never raise for engine failures: they return ``None`` (or
``INVOKE_FAILED`` for calls) and record a diagnostic that can be read back
with ``get_last_error()``. The layers above turn these into exceptions.
"""

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import wasmtime

from .config import EngineSettings, get_settings
from .errors import MissingFileError, UnreadableFileError
from .memory import MemoryView
from .types import (
    Signature,
    Value,
    ValueKind,
    VALTYPE_I32,
    VALTYPE_I64,
    VALTYPE_F32,
    VALTYPE_F64,
    VALTYPE_VOID,
)

logger = logging.getLogger(__name__)

# Serialized modules: 7 byte tag + 1 byte format version, then the native artifact
SERIALIZED_MAGIC = b"WASMEMB\x01"

DESERIALIZE_FAILED = "Failed to deserialize the module"


class _InvokeFailed:
    """Sentinel returned by ``Engine.invoke_function`` on failure."""

    def __repr__(self) -> str:
        return "INVOKE_FAILED"

    def __bool__(self) -> bool:
        return False


INVOKE_FAILED = _InvokeFailed()


@dataclass
class InstanceHandle:
    """An instantiated module together with the store that owns it."""

    store: wasmtime.Store
    instance: wasmtime.Instance
    module: wasmtime.Module


def _valtype_kinds() -> list[tuple[wasmtime.ValType, ValueKind]]:
    return [
        (wasmtime.ValType.i32(), VALTYPE_I32),
        (wasmtime.ValType.i64(), VALTYPE_I64),
        (wasmtime.ValType.f32(), VALTYPE_F32),
        (wasmtime.ValType.f64(), VALTYPE_F64),
    ]


def kind_of(valtype: wasmtime.ValType) -> ValueKind:
    """Map an engine value type to a value kind.

    Types this layer does not model keep the engine's name for them.
    """
    for candidate, kind in _valtype_kinds():
        if valtype == candidate:
            return kind
    return str(valtype)


def _format_kinds(kinds: Sequence[ValueKind]) -> str:
    return "[" + ", ".join(kind.upper() for kind in kinds) + "]"


class Engine:
    """Compiles, instantiates and runs WebAssembly through wasmtime."""

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self.settings = settings or get_settings()
        self._engine = wasmtime.Engine(self._make_config(self.settings))
        self._errors = threading.local()

    @staticmethod
    def _make_config(settings: EngineSettings) -> wasmtime.Config:
        config = wasmtime.Config()
        config.cranelift_opt_level = settings.OPT_LEVEL.value
        config.debug_info = settings.DEBUG_INFO
        config.consume_fuel = settings.CONSUME_FUEL
        return config

    # Last error channel

    def get_last_error(self) -> str | None:
        """Return the diagnostic of the last failed operation on this thread."""
        return getattr(self._errors, "message", None)

    def _set_error(self, message: str) -> None:
        logger.debug("Engine error: %s", message)
        self._errors.message = message

    def _clear_error(self) -> None:
        self._errors.message = None

    # Bytes and modules

    def fetch_bytes(self, path: str | os.PathLike) -> bytes:
        """Read a WebAssembly binary from disk."""
        path = Path(path)
        if not path.exists():
            raise MissingFileError(str(path))
        if path.is_dir() or not os.access(path, os.R_OK):
            raise UnreadableFileError(str(path))
        try:
            return path.read_bytes()
        except OSError as e:
            raise UnreadableFileError(str(path), e.strerror) from e

    def validate(self, data: bytes) -> bool:
        """Check that the bytes are a valid module without compiling them."""
        try:
            wasmtime.Module.validate(self._engine, data)
        except wasmtime.WasmtimeError as e:
            self._set_error(f'Validation error "{e}"')
            return False
        self._clear_error()
        return True

    def compile(self, data: bytes) -> wasmtime.Module | None:
        """Validate and compile bytes into a module."""
        logger.debug("Compiling %d bytes", len(data))
        try:
            module = wasmtime.Module(self._engine, data)
        except wasmtime.WasmtimeError as e:
            self._set_error(str(e))
            return None
        self._clear_error()
        return module

    def serialize_module(self, module: wasmtime.Module) -> bytes | None:
        try:
            artifact = module.serialize()
        except wasmtime.WasmtimeError as e:
            self._set_error(str(e))
            return None
        self._clear_error()
        return SERIALIZED_MAGIC + bytes(artifact)

    def deserialize_module(self, data: bytes) -> wasmtime.Module | None:
        """Load a module produced by ``serialize_module``.

        The artifact is trusted: it is not validated again.
        """
        data = bytes(data)
        if not data.startswith(SERIALIZED_MAGIC):
            self._set_error(DESERIALIZE_FAILED)
            return None
        try:
            module = wasmtime.Module.deserialize(
                self._engine, data[len(SERIALIZED_MAGIC) :]
            )
        except wasmtime.WasmtimeError as e:
            self._set_error(f"{DESERIALIZE_FAILED}\n{e}")
            return None
        self._clear_error()
        return module

    # Instances

    def _new_store(self) -> wasmtime.Store:
        store = wasmtime.Store(self._engine)
        if self.settings.CONSUME_FUEL:
            store.set_fuel(self.settings.FUEL)
        return store

    def new_instance_from_module(self, module: wasmtime.Module) -> InstanceHandle | None:
        store = self._new_store()
        try:
            instance = wasmtime.Instance(store, module, [])
        except (wasmtime.WasmtimeError, wasmtime.Trap) as e:
            self._set_error(str(e))
            return None
        self._clear_error()
        logger.debug("Instantiated module with %d exports", len(module.exports))
        return InstanceHandle(store, instance, module)

    def new_instance_from_bytes(self, data: bytes) -> InstanceHandle | None:
        """Compile then instantiate in a single step."""
        module = self.compile(data)
        if module is None:
            return None
        return self.new_instance_from_module(module)

    def export_names(self, handle: InstanceHandle) -> list[str]:
        return [export.name for export in handle.module.exports]

    def function_names(self, handle: InstanceHandle) -> list[str]:
        """Names of the exports that are functions."""
        return [
            export.name
            for export in handle.module.exports
            if isinstance(export.type, wasmtime.FuncType)
        ]

    def get_function_signature(
        self, handle: InstanceHandle, name: str
    ) -> Signature | None:
        """Resolve the signature of an exported function.

        Returns ``None`` without a last error when there is no such export,
        and ``None`` with a diagnostic when the export cannot be called.
        """
        export = handle.instance.exports(handle.store).get(name)
        if export is None:
            self._clear_error()
            return None
        if not isinstance(export, wasmtime.Func):
            self._set_error(f"export `{name}` is not a function")
            return None

        func_type = export.type(handle.store)
        results = list(func_type.results)
        if len(results) > 1:
            self._set_error(
                f"export `{name}` returns {len(results)} values, "
                "only a single return value is supported"
            )
            return None

        params = [kind_of(param) for param in func_type.params]
        result = kind_of(results[0]) if results else VALTYPE_VOID
        self._clear_error()
        return Signature.from_types(params, result)

    def make_value(self, kind: ValueKind, host_value: Any) -> Value | None:
        if kind in (VALTYPE_I32, VALTYPE_I64):
            return Value(kind, int(host_value))
        if kind in (VALTYPE_F32, VALTYPE_F64):
            return Value(kind, float(host_value))
        return None

    @staticmethod
    def _to_val(value: Value) -> wasmtime.Val:
        if value.kind == VALTYPE_I32:
            return wasmtime.Val.i32(value.payload)
        if value.kind == VALTYPE_I64:
            return wasmtime.Val.i64(value.payload)
        if value.kind == VALTYPE_F32:
            return wasmtime.Val.f32(value.payload)
        return wasmtime.Val.f64(value.payload)

    def invoke_function(
        self, handle: InstanceHandle, name: str, values: Sequence[Value]
    ) -> Any:
        """Call an exported function.

        Returns the host-native result, or ``INVOKE_FAILED`` with the last
        error set.
        """
        func = handle.instance.exports(handle.store).get(name)
        if not isinstance(func, wasmtime.Func):
            self._set_error(f"Call error: no exported function named `{name}`")
            return INVOKE_FAILED

        func_type = func.type(handle.store)
        params = [kind_of(param) for param in func_type.params]
        results = [kind_of(result) for result in func_type.results]
        given = [value.kind for value in values]
        if given != params:
            self._set_error(
                f"Call error: Parameters of type {_format_kinds(given)} did not "
                f"match signature {_format_kinds(params)} -> {_format_kinds(results)}"
            )
            return INVOKE_FAILED

        logger.debug("Invoking %s%r", name, tuple(values))
        try:
            result = func(handle.store, *[self._to_val(value) for value in values])
        except (wasmtime.Trap, wasmtime.WasmtimeError) as e:
            self._set_error(str(e))
            return INVOKE_FAILED
        self._clear_error()
        return result

    # Memory

    def get_memory_buffer(self, handle: InstanceHandle) -> MemoryView | None:
        """Return a view over the exported linear memory, if any."""
        exports = handle.instance.exports(handle.store)
        memory = exports.get("memory")
        if not isinstance(memory, wasmtime.Memory):
            memory = None
            for export in handle.module.exports:
                candidate = exports.get(export.name)
                if isinstance(candidate, wasmtime.Memory):
                    memory = candidate
                    break
        self._clear_error()
        if memory is None:
            return None
        return MemoryView(self, handle, memory)

    def memory_size(self, handle: InstanceHandle, memory: wasmtime.Memory) -> int:
        """Current size of a memory in bytes."""
        return memory.data_len(handle.store)

    def memory_read(
        self, handle: InstanceHandle, memory: wasmtime.Memory, start: int, stop: int
    ) -> bytes:
        return bytes(memory.read(handle.store, start, stop))


_default_engine: Engine | None = None
_default_engine_lock = threading.Lock()


def default_engine() -> Engine:
    """Get or create the process-wide engine."""
    global _default_engine
    with _default_engine_lock:
        if _default_engine is None:
            _default_engine = Engine()
        return _default_engine
