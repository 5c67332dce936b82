"""Compiled WebAssembly modules."""

import os
from typing import TYPE_CHECKING

import wasmtime

from .engine import Engine, default_engine
from .errors import (
    DeserializeError,
    InstantiateError,
    SerializeError,
    ValidationError,
)

if TYPE_CHECKING:
    from .cache import ModuleCache
    from .instance import Instance


class Module:
    """A validated, compiled, not yet instantiated WebAssembly module.

    Create modules with ``Module.compile`` or ``Module.from_file``; a module
    compiled with an identifier is shared through the module cache.

    Example:

        module = Module.from_file("my_program.wasm", identifier="my_program")
        instance = module.new_instance()
        instance.call("sum", 1, 2)
    """

    def __init__(
        self, engine: Engine, artifact: wasmtime.Module, identifier: str | None = None
    ) -> None:
        self.engine = engine
        self.artifact = artifact
        self.identifier = identifier

    @classmethod
    def compile(
        cls,
        data: bytes,
        identifier: str | None = None,
        cache: "ModuleCache | None" = None,
    ) -> "Module":
        from .cache import default_cache

        if cache is None:
            cache = default_cache()
        return cache.compile(data, identifier)

    @classmethod
    def from_file(
        cls,
        path: str | os.PathLike,
        identifier: str | None = None,
        cache: "ModuleCache | None" = None,
    ) -> "Module":
        """Read and compile a WebAssembly binary file.

        When ``identifier`` is already cached the file is not read at all.
        """
        from .cache import default_cache

        if cache is None:
            cache = default_cache()
        if identifier is not None:
            module = cache.get(identifier)
            if module is not None:
                return module
        data = cache.engine.fetch_bytes(path)
        return cache.compile(data, identifier)

    @staticmethod
    def validate(
        data: bytes, engine: Engine | None = None, strict: bool = False
    ) -> bool:
        """Check whether the bytes are a valid WebAssembly module.

        With ``strict`` an invalid module raises ``ValidationError`` instead
        of returning False.
        """
        engine = engine or default_engine()
        valid = engine.validate(data)
        if not valid and strict:
            raise ValidationError("The module is not valid:", engine.get_last_error())
        return valid

    def serialize(self) -> bytes:
        """Export the compiled module to bytes, see ``Module.deserialize``."""
        data = self.engine.serialize_module(self.artifact)
        if data is None:
            raise SerializeError(
                "Failed to serialize the module:", self.engine.get_last_error()
            )
        return data

    @classmethod
    def deserialize(cls, data: bytes, engine: Engine | None = None) -> "Module":
        """Load a module from bytes produced by ``serialize``.

        The bytes must come from a trusted source; they are not validated
        as WebAssembly again.
        """
        engine = engine or default_engine()
        artifact = engine.deserialize_module(data)
        if artifact is None:
            raise DeserializeError(
                "Cannot load the serialized module:", engine.get_last_error()
            )
        return cls(engine, artifact)

    def new_instance(self) -> "Instance":
        from .instance import Instance

        handle = self.engine.new_instance_from_module(self.artifact)
        if handle is None:
            raise InstantiateError(
                "An error happened while instantiating the module:",
                self.engine.get_last_error(),
            )
        return Instance(self.engine, handle, self)

    def export_names(self) -> list[str]:
        return [export.name for export in self.artifact.exports]

    def __repr__(self) -> str:
        if self.identifier is not None:
            return f"<Module {self.identifier!r}>"
        return f"<Module at {id(self):#x}>"
