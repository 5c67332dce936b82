"""Dynamic call path: resolve, validate, marshal, invoke."""

import logging
from typing import Any, Sequence

import numpy as np

from .engine import Engine, InstanceHandle, INVOKE_FAILED
from .errors import (
    ArgumentTypeError,
    ExtraArgumentsError,
    InvocationRuntimeError,
    MissingArgumentsError,
    SignatureResolutionError,
    UnknownFunctionError,
    UnsupportedSignatureTypeError,
)
from .types import (
    Signature,
    Value,
    ValueKind,
    FLOAT_KINDS,
    INTEGER_KINDS,
    INTEGER_RANGES,
    KIND_DESCRIPTIONS,
)

logger = logging.getLogger(__name__)


def is_integral(value: Any) -> bool:
    """True for host integers; booleans are not integers here."""
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, (int, np.integer))


def is_floating(value: Any) -> bool:
    return isinstance(value, (float, np.floating))


class InvocationDispatcher:
    """Calls exported functions by name with positional host arguments."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def resolve_signature(self, handle: InstanceHandle, name: str) -> Signature:
        signature = self.engine.get_function_signature(handle, name)
        if signature is None:
            error = self.engine.get_last_error()
            if error is None:
                raise UnknownFunctionError(name)
            raise SignatureResolutionError(name, error)
        return signature

    @staticmethod
    def check_arity(name: str, signature: Signature, arguments: Sequence[Any]) -> None:
        expected = signature.arity
        given = len(arguments)
        if given < expected:
            raise MissingArgumentsError(name, expected, given)
        if given > expected:
            raise ExtraArgumentsError(name, expected, given)

    def marshal_argument(
        self, name: str, position: int, kind: ValueKind, argument: Any
    ) -> Value:
        """Check one host argument against its declared kind and wrap it.

        ``position`` is 1-indexed.
        """
        if kind in INTEGER_KINDS:
            if not is_integral(argument):
                raise ArgumentTypeError(name, position, kind, KIND_DESCRIPTIONS[kind])
            low, high = INTEGER_RANGES[kind]
            if not low <= int(argument) <= high:
                raise ArgumentTypeError(
                    name, position, kind, f"{argument} is out of range"
                )
        elif kind in FLOAT_KINDS:
            if not is_floating(argument):
                raise ArgumentTypeError(name, position, kind, KIND_DESCRIPTIONS[kind])
        else:
            raise UnsupportedSignatureTypeError(name, position, kind)

        value = self.engine.make_value(kind, argument)
        if value is None:
            raise UnsupportedSignatureTypeError(name, position, kind)
        return value

    def marshal_arguments(
        self, name: str, signature: Signature, arguments: Sequence[Any]
    ) -> list[Value]:
        self.check_arity(name, signature, arguments)
        return [
            self.marshal_argument(name, i + 1, kind, argument)
            for i, (kind, argument) in enumerate(zip(signature.params, arguments))
        ]

    def call(
        self,
        handle: InstanceHandle,
        name: str,
        signature: Signature,
        arguments: Sequence[Any],
    ) -> Any:
        """Validate, marshal and invoke against an already resolved signature."""
        values = self.marshal_arguments(name, signature, arguments)
        result = self.engine.invoke_function(handle, name, values)
        if result is INVOKE_FAILED:
            error = self.engine.get_last_error()
            logger.debug("Invocation of %s failed: %s", name, error)
            raise InvocationRuntimeError(name, error)
        return result

    def invoke(self, handle: InstanceHandle, name: str, arguments: Sequence[Any]) -> Any:
        """Resolve ``name`` and call it with ``arguments``."""
        signature = self.resolve_signature(handle, name)
        return self.call(handle, name, signature, arguments)


class ExportedFunction:
    """A callable bound to one export of an instance.

    The signature is resolved once, on creation; arguments are still
    validated on every call.
    """

    def __init__(
        self, dispatcher: InvocationDispatcher, handle: InstanceHandle, name: str
    ) -> None:
        self._dispatcher = dispatcher
        self._handle = handle
        self.name = name
        self.signature = dispatcher.resolve_signature(handle, name)

    def __call__(self, *args: Any) -> Any:
        return self._dispatcher.call(self._handle, self.name, self.signature, args)

    def __repr__(self) -> str:
        return f"<ExportedFunction {self.name} {self.signature!r}>"
