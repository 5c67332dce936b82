#!/usr/bin/env python3
"""Run Fibonacci through the embedding layer.

Compiles a small WebAssembly module (written in the text format and
assembled with wasmtime's wat2wasm) through the module cache, then calls
its exports by name. The second compilation with the same identifier is a
cache hit and skips compilation entirely.
"""

import time

import wasmtime

from wasm_embed import Module, WasmError

FIBONACCI_WAT = """
(module
  (func $fib (export "fib") (param $n i32) (result i32)
    local.get $n
    i32.const 2
    i32.lt_s
    if (result i32)
      local.get $n
    else
      local.get $n
      i32.const 1
      i32.sub
      call $fib
      local.get $n
      i32.const 2
      i32.sub
      call $fib
      i32.add
    end)
  (func (export "fib_iter") (param $n i64) (result i64)
    (local $a i64) (local $b i64) (local $tmp i64)
    i64.const 0
    local.set $a
    i64.const 1
    local.set $b
    block $done
      loop $next
        local.get $n
        i64.eqz
        br_if $done
        local.get $a
        local.get $b
        i64.add
        local.set $tmp
        local.get $b
        local.set $a
        local.get $tmp
        local.set $b
        local.get $n
        i64.const 1
        i64.sub
        local.set $n
        br $next
      end
    end
    local.get $a))
"""


def main():
    wasm_bytes = bytes(wasmtime.wat2wasm(FIBONACCI_WAT))
    print(f"Loading Fibonacci WASM module ({len(wasm_bytes)} bytes)...")

    for attempt in ("first", "second"):
        start = time.perf_counter()
        module = Module.compile(wasm_bytes, identifier="fibonacci")
        elapsed = time.perf_counter() - start
        print(f"  {attempt} compile: {elapsed * 1000:.3f}ms")

    instance = module.new_instance()
    fib = instance.exports.fib

    print("\nFibonacci sequence using recursive implementation:")
    print("  n  | fib(n) | time")
    print("-----|--------|--------")
    for n in range(15):
        start = time.perf_counter()
        result = fib(n)
        elapsed = time.perf_counter() - start
        print(f"  {n:2} | {result:6} | {elapsed:.6f}s")

    print("\nFibonacci sequence using iterative implementation:")
    for n in [10, 20, 30, 40, 50]:
        print(f"  {n:2} | {instance.call('fib_iter', n):12}")

    # Passing a float where an i32 is expected is rejected before the call
    try:
        fib(3.0)
    except WasmError as e:
        print(f"\nRejected: {e}")

    expected = [0, 1, 1, 2, 3, 5, 8, 13, 21, 34, 55, 89, 144, 233, 377]
    print("\nVerifying correctness...")
    failures = [n for n, exp in enumerate(expected) if fib(n) != exp]
    if failures:
        for n in failures:
            print(f"  FAIL: fib({n}) = {fib(n)}, expected {expected[n]}")
        return 1
    print("  All values correct!")
    return 0


if __name__ == "__main__":
    exit(main())
