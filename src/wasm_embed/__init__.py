"""Load, compile, cache, instantiate and call WebAssembly modules.

A thin embedding layer over the wasmtime runtime with a dynamically typed
call interface and read access to linear memory.
"""

import logging

from .cache import ModuleCache, default_cache
from .config import EngineSettings, get_settings, reset_settings
from .dispatch import ExportedFunction, InvocationDispatcher
from .engine import Engine, InstanceHandle, INVOKE_FAILED, SERIALIZED_MAGIC, default_engine
from .errors import (
    WasmError,
    MissingFileError,
    UnreadableFileError,
    EngineError,
    ValidationError,
    CompileError,
    InstantiateError,
    SerializeError,
    DeserializeError,
    InvocationError,
    UnknownFunctionError,
    SignatureResolutionError,
    UnsupportedSignatureTypeError,
    ArityError,
    MissingArgumentsError,
    ExtraArgumentsError,
    ArgumentTypeError,
    InvocationRuntimeError,
    OutOfBoundsError,
)
from .instance import Instance
from .memory import MemoryView
from .module import Module
from .types import (
    Signature,
    Value,
    VALTYPE_I32,
    VALTYPE_I64,
    VALTYPE_F32,
    VALTYPE_F64,
    VALTYPE_VOID,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Main API
    "Instance",
    "Module",
    "ModuleCache",
    "MemoryView",
    "default_cache",
    # Engine boundary
    "Engine",
    "InstanceHandle",
    "InvocationDispatcher",
    "ExportedFunction",
    "INVOKE_FAILED",
    "SERIALIZED_MAGIC",
    "default_engine",
    # Configuration
    "EngineSettings",
    "get_settings",
    "reset_settings",
    # Types
    "Signature",
    "Value",
    "VALTYPE_I32",
    "VALTYPE_I64",
    "VALTYPE_F32",
    "VALTYPE_F64",
    "VALTYPE_VOID",
    # Errors
    "WasmError",
    "MissingFileError",
    "UnreadableFileError",
    "EngineError",
    "ValidationError",
    "CompileError",
    "InstantiateError",
    "SerializeError",
    "DeserializeError",
    "InvocationError",
    "UnknownFunctionError",
    "SignatureResolutionError",
    "UnsupportedSignatureTypeError",
    "ArityError",
    "MissingArgumentsError",
    "ExtraArgumentsError",
    "ArgumentTypeError",
    "InvocationRuntimeError",
    "OutOfBoundsError",
]
