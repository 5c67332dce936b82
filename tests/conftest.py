"""Shared fixtures: test modules assembled from WAT."""

from pathlib import Path

import pytest
import wasmtime

from wasm_embed import Engine, EngineSettings, ModuleCache, reset_settings


TESTS_WAT = r"""
(module
  (memory (export "memory") 17)
  (global (export "answer") i32 (i32.const 42))
  (data (i32.const 1048576) "Hello, World!\00")

  (func (export "arity_0") (result i32)
    i32.const 42)
  (func (export "sum") (param i32 i32) (result i32)
    local.get 0
    local.get 1
    i32.add)
  (func (export "i32_i32") (param i32) (result i32)
    local.get 0)
  (func (export "i64_i64") (param i64) (result i64)
    local.get 0)
  (func (export "f32_f32") (param f32) (result f32)
    local.get 0)
  (func (export "f64_f64") (param f64) (result f64)
    local.get 0)
  (func (export "i32_i64_f32_f64_f64") (param i32 i64 f32 f64) (result f64)
    local.get 0
    f64.convert_i32_s
    local.get 1
    f64.convert_i64_s
    f64.add
    local.get 2
    f64.promote_f32
    f64.add
    local.get 3
    f64.add)
  (func (export "bool_casted_to_i32") (result i32)
    i32.const 1)
  (func (export "string") (result i32)
    i32.const 1048576)
  (func (export "nothing"))
  (func (export "pair") (result i32 i32)
    i32.const 1
    i32.const 2)
  (func (export "unreachable") (result i32)
    unreachable)
  (func (export "div_s") (param i32 i32) (result i32)
    local.get 0
    local.get 1
    i32.div_s)
  (func (export "grow") (param i32) (result i32)
    local.get 0
    memory.grow)
  (func (export "add-one") (param i32) (result i32)
    local.get 0
    i32.const 1
    i32.add)
  (func (export "funcref_param") (param funcref) (result i32)
    i32.const 0)
)
"""

NO_MEMORY_WAT = """
(module
  (func (export "string") (result i32)
    i32.const 42))
"""

NEEDS_IMPORT_WAT = """
(module
  (import "env" "callback" (func))
  (func (export "run")
    call 0))
"""

START_TRAPS_WAT = """
(module
  (func $start
    unreachable)
  (start $start))
"""

# Valid header followed by an unknown section id
INVALID_WASM = b"\x00asm\x01\x00\x00\x00\xff\x00"


@pytest.fixture(autouse=True)
def fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def engine() -> Engine:
    return Engine(EngineSettings())


@pytest.fixture
def cache(engine: Engine) -> ModuleCache:
    return ModuleCache(engine)


@pytest.fixture(scope="session")
def tests_wasm() -> bytes:
    return bytes(wasmtime.wat2wasm(TESTS_WAT))


@pytest.fixture(scope="session")
def no_memory_wasm() -> bytes:
    return bytes(wasmtime.wat2wasm(NO_MEMORY_WAT))


@pytest.fixture(scope="session")
def needs_import_wasm() -> bytes:
    return bytes(wasmtime.wat2wasm(NEEDS_IMPORT_WAT))


@pytest.fixture(scope="session")
def start_traps_wasm() -> bytes:
    return bytes(wasmtime.wat2wasm(START_TRAPS_WAT))


@pytest.fixture
def write_wasm(tmp_path: Path):
    """Write bytes to a .wasm file under tmp_path and return its path."""

    def write(data: bytes, name: str = "module.wasm") -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return write
