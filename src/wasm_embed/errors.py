"""Exception classes for the WebAssembly embedding layer."""


def indent_diagnostic(diagnostic: str | None, indent: str = "    ") -> str:
    """Re-indent a (possibly multi-line) engine diagnostic for display."""
    if not diagnostic:
        return ""
    return diagnostic.replace("\n", "\n" + indent)


class WasmError(Exception):
    """Base class for all embedding layer errors."""

    pass


class MissingFileError(WasmError, FileNotFoundError):
    """The WebAssembly binary file does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File path to Wasm binary `{path}` does not exist.")
        self.path = path


class UnreadableFileError(WasmError, PermissionError):
    """The WebAssembly binary file exists but cannot be read."""

    def __init__(self, path: str, reason: str | None = None) -> None:
        message = f"File `{path}` is not readable."
        if reason:
            message += f" {reason}"
        super().__init__(message)
        self.path = path


class EngineError(WasmError):
    """An error carrying a diagnostic string reported by the engine."""

    def __init__(self, message: str, diagnostic: str | None = None) -> None:
        if diagnostic:
            message = f"{message}\n    {indent_diagnostic(diagnostic)}"
        super().__init__(message)
        self.diagnostic = diagnostic


class ValidationError(EngineError):
    """The bytes are not a valid WebAssembly module."""

    pass


class CompileError(EngineError):
    """Compilation of a module failed."""

    pass


class InstantiateError(EngineError):
    """Instantiation of a module failed."""

    pass


class SerializeError(EngineError):
    """The engine could not export a compiled module."""

    pass


class DeserializeError(EngineError):
    """The bytes are not a valid serialized module."""

    pass


class InvocationError(WasmError):
    """Calling an exported function failed."""

    def __init__(self, function: str, message: str) -> None:
        super().__init__(message)
        self.function = function


class UnknownFunctionError(InvocationError, AttributeError):
    """The instance has no export with the requested name."""

    def __init__(self, function: str) -> None:
        super().__init__(function, f"Function `{function}` does not exist.")


class SignatureResolutionError(InvocationError):
    """The export exists but its signature could not be resolved."""

    def __init__(self, function: str, diagnostic: str) -> None:
        super().__init__(
            function,
            f"Cannot invoke the function `{function}` because: "
            f"{indent_diagnostic(diagnostic)}.",
        )
        self.diagnostic = diagnostic


class UnsupportedSignatureTypeError(InvocationError):
    """The engine reported a value kind this layer cannot marshal."""

    def __init__(self, function: str, position: int, kind: str) -> None:
        super().__init__(
            function,
            f"Unknown argument type `{kind}` at position #{position} of `{function}`.",
        )
        self.position = position
        self.kind = kind


class ArityError(InvocationError, TypeError):
    """The number of given arguments does not match the signature."""

    def __init__(
        self, function: str, message: str, count: int, expected: int, given: int
    ) -> None:
        super().__init__(
            function,
            f"{message} when calling `{function}`: "
            f"Expect {expected} arguments, given {given}.",
        )
        self.count = count
        self.expected = expected
        self.given = given


class MissingArgumentsError(ArityError):
    """Fewer arguments than declared parameters."""

    def __init__(self, function: str, expected: int, given: int) -> None:
        count = expected - given
        super().__init__(
            function, f"Missing {count} argument(s)", count, expected, given
        )


class ExtraArgumentsError(ArityError):
    """More arguments than declared parameters."""

    def __init__(self, function: str, expected: int, given: int) -> None:
        count = given - expected
        super().__init__(
            function, f"Given {count} extra argument(s)", count, expected, given
        )


class ArgumentTypeError(InvocationError, TypeError):
    """A host argument does not match its declared value kind."""

    def __init__(
        self, function: str, position: int, kind: str, reason: str | None = None
    ) -> None:
        message = f"Argument #{position} of `{function}` must be a `{kind}`"
        message += f" ({reason})." if reason else "."
        super().__init__(function, message)
        self.position = position
        self.kind = kind


class InvocationRuntimeError(InvocationError):
    """The engine failed while executing the function (trap, ABI mismatch)."""

    def __init__(self, function: str, diagnostic: str | None = None) -> None:
        message = f"Got an error when invoking `{function}`."
        if diagnostic:
            message += f"\n    {indent_diagnostic(diagnostic)}"
        super().__init__(function, message)
        self.diagnostic = diagnostic


class OutOfBoundsError(WasmError, IndexError):
    """A memory read reaches past the current size of linear memory."""

    def __init__(self, offset: int, length: int, size: int) -> None:
        super().__init__(
            f"Memory read of {length} byte(s) at offset {offset} is out of "
            f"bounds (memory size is {size} bytes)"
        )
        self.offset = offset
        self.length = length
        self.size = size
