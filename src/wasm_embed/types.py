"""Value kinds, tagged values and function signatures."""

from dataclasses import dataclass
from typing import Any, Iterator


# Value kind constants
VALTYPE_I32 = "i32"
VALTYPE_I64 = "i64"
VALTYPE_F32 = "f32"
VALTYPE_F64 = "f64"
# Return kind of a function producing no value
VALTYPE_VOID = "void"

ValueKind = str  # One of the VALTYPE_* constants, or an engine-specific name

INTEGER_KINDS = frozenset({VALTYPE_I32, VALTYPE_I64})
FLOAT_KINDS = frozenset({VALTYPE_F32, VALTYPE_F64})
SUPPORTED_KINDS = INTEGER_KINDS | FLOAT_KINDS

# Accepted host integer range per kind (signed minimum, unsigned maximum)
INTEGER_RANGES = {
    VALTYPE_I32: (-(1 << 31), (1 << 32) - 1),
    VALTYPE_I64: (-(1 << 63), (1 << 64) - 1),
}

# Human readable host type per kind, used in error messages
KIND_DESCRIPTIONS = {
    VALTYPE_I32: "integer",
    VALTYPE_I64: "integer",
    VALTYPE_F32: "float",
    VALTYPE_F64: "float",
}


@dataclass(frozen=True)
class Value:
    """A WebAssembly ABI value: a kind and its host-native payload."""

    kind: ValueKind
    payload: int | float

    def __repr__(self) -> str:
        return f"{self.kind}:{self.payload!r}"


@dataclass(frozen=True)
class Signature:
    """Parameter kinds followed by the single return kind.

    A function with N parameters has a signature of length N + 1; the last
    entry is always the return kind.
    """

    kinds: tuple[ValueKind, ...]

    def __post_init__(self) -> None:
        if not self.kinds:
            raise ValueError("A signature always has at least a return kind")

    @classmethod
    def from_types(
        cls, params: tuple[ValueKind, ...] | list[ValueKind], result: ValueKind
    ) -> "Signature":
        return cls(tuple(params) + (result,))

    @property
    def params(self) -> tuple[ValueKind, ...]:
        return self.kinds[:-1]

    @property
    def result(self) -> ValueKind:
        return self.kinds[-1]

    @property
    def arity(self) -> int:
        """Number of declared parameters."""
        return len(self.kinds) - 1

    def __len__(self) -> int:
        return len(self.kinds)

    def __iter__(self) -> Iterator[ValueKind]:
        return iter(self.kinds)

    def __getitem__(self, index: Any) -> Any:
        return self.kinds[index]

    def __repr__(self) -> str:
        params = ", ".join(self.params)
        return f"({params}) -> {self.result}"
