"""Tests for the identifier-keyed module cache."""

import threading
import time
from unittest.mock import patch

import pytest

from wasm_embed import CompileError, ModuleCache, default_cache

from conftest import INVALID_WASM


class TestCompileWithoutIdentifier:
    """Modules compiled without an identifier are never cached."""

    def test_compile(self, cache, tests_wasm):
        module = cache.compile(tests_wasm)
        assert module.identifier is None
        assert len(cache) == 0

    def test_compiles_are_independent(self, cache, tests_wasm):
        first = cache.compile(tests_wasm)
        second = cache.compile(tests_wasm)
        assert first is not second
        assert first.artifact is not second.artifact

    def test_compile_invalid_bytes(self, cache):
        with pytest.raises(CompileError) as excinfo:
            cache.compile(INVALID_WASM)
        assert excinfo.value.diagnostic


class TestCompileWithIdentifier:
    """Modules compiled with an identifier are shared."""

    def test_compile_stores_module(self, cache, tests_wasm):
        module = cache.compile(tests_wasm, "tests")
        assert module.identifier == "tests"
        assert "tests" in cache
        assert cache.get("tests") is module

    def test_second_compile_returns_cached_module(self, cache, tests_wasm):
        first = cache.compile(tests_wasm, "tests")
        second = cache.compile(tests_wasm, "tests")
        assert first is second

    def test_cache_hit_does_not_touch_engine(self, cache, tests_wasm):
        cache.compile(tests_wasm, "tests")
        with patch.object(cache.engine, "compile") as compile_:
            # The bytes are not even looked at
            cache.compile(b"not wasm at all", "tests")
        compile_.assert_not_called()

    def test_cache_hit_is_much_faster(self, cache, tests_wasm):
        start = time.perf_counter()
        cache.compile(tests_wasm, "speed")
        first = time.perf_counter() - start

        start = time.perf_counter()
        cache.compile(tests_wasm, "speed")
        second = time.perf_counter() - start

        assert first / max(second, 1e-9) > 100, (
            "If this is failing, the module is compiled again on a cache hit"
        )

    def test_failed_compile_is_not_stored(self, cache):
        with pytest.raises(CompileError):
            cache.compile(INVALID_WASM, "broken")
        assert "broken" not in cache
        assert len(cache) == 0

    def test_distinct_identifiers(self, cache, tests_wasm, no_memory_wasm):
        first = cache.compile(tests_wasm, "a")
        second = cache.compile(no_memory_wasm, "b")
        assert first is not second
        assert len(cache) == 2

    def test_concurrent_compile_happens_once(self, cache, tests_wasm):
        real_compile = cache.engine.compile
        calls = []

        def counting_compile(data):
            calls.append(data)
            return real_compile(data)

        results = []
        with patch.object(cache.engine, "compile", side_effect=counting_compile):
            threads = [
                threading.Thread(
                    target=lambda: results.append(cache.compile(tests_wasm, "shared"))
                )
                for _ in range(8)
            ]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        assert len(calls) == 1
        assert len({id(module) for module in results}) == 1


class TestClear:
    """Test bulk invalidation."""

    def test_clear(self, cache, tests_wasm):
        cache.compile(tests_wasm, "a")
        cache.compile(tests_wasm, "b")
        cache.clear()
        assert len(cache) == 0
        assert "a" not in cache

    def test_compile_after_clear_recompiles(self, cache, tests_wasm):
        first = cache.compile(tests_wasm, "tests")
        cache.clear()
        second = cache.compile(tests_wasm, "tests")
        assert first is not second

    def test_module_held_before_clear_stays_usable(self, cache, tests_wasm):
        module = cache.compile(tests_wasm, "tests")
        cache.clear()
        assert module.new_instance().call("sum", 1, 2) == 3

    def test_instances_do_not_evict(self, cache, tests_wasm):
        module = cache.compile(tests_wasm, "tests")
        instance = module.new_instance()
        del instance
        assert cache.get("tests") is module


class TestDefaultCache:
    """Test the process-wide cache."""

    def test_default_cache_is_shared(self):
        assert default_cache() is default_cache()
        assert isinstance(default_cache(), ModuleCache)
