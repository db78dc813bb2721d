"""Pytest configuration and fixtures."""

import threading
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from lmcode.config import BudgetSettings, ContextSettings
from lmcode.context import ContextAssembler, ModelBudgetCache, ModelBudgetOracle

# Enable pytest-asyncio for all tests
pytest_plugins = ("pytest_asyncio",)

UNREACHABLE_ENDPOINT = "http://127.0.0.1:9"


def _fixed_oracle(capacity: int, model_name: str = "test-model") -> ModelBudgetOracle:
    """Oracle whose cache already holds ``capacity``, so no query is made."""
    cache = ModelBudgetCache(ttl_seconds=3600)
    cache.store(capacity)
    return ModelBudgetOracle(
        UNREACHABLE_ENDPOINT, model_name, cache, budget_settings=BudgetSettings()
    )


@pytest.fixture
def make_oracle() -> Callable[..., ModelBudgetOracle]:
    """Factory for oracles with a pre-filled budget cache."""
    return _fixed_oracle


@pytest.fixture
def make_assembler() -> Callable[..., ContextAssembler]:
    """Factory for assemblers with a fixed budget."""

    def _make(capacity: int, **overrides: object) -> ContextAssembler:
        return ContextAssembler(
            _fixed_oracle(capacity),
            context_settings=ContextSettings(**overrides),
        )

    return _make


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Small TypeScript project with imports, a cycle and root manifests.

    Layout::

        package.json
        tsconfig.json
        yarn.lock            (larger than the lockfile limit)
        src/a.ts             imports ./util, ./lib, lodash
        src/util.ts          imports ./a, ../shared/helpers
        src/notes.md
        src/lib/index.ts
        shared/helpers.ts
        node_modules/lodash/index.js
    """
    root = tmp_path / "project"
    (root / "src" / "lib").mkdir(parents=True)
    (root / "shared").mkdir()
    (root / "node_modules" / "lodash").mkdir(parents=True)

    (root / "package.json").write_text('{"name": "demo", "version": "1.0.0"}\n')
    (root / "tsconfig.json").write_text('{"compilerOptions": {"strict": true}}\n')
    (root / "yarn.lock").write_text("# yarn lockfile v1\n" + "x" * 150_000)

    (root / "src" / "a.ts").write_text(
        "import { helper } from './util';\n"
        "import lib from './lib';\n"
        "import _ from 'lodash';\n"
        "export const a = helper(lib);\n"
    )
    (root / "src" / "util.ts").write_text(
        "import { a } from './a';\n"
        "import { shared } from '../shared/helpers';\n"
        "export function helper(x: unknown) { return shared(x); }\n"
    )
    (root / "src" / "notes.md").write_text("# Notes\n")
    (root / "src" / "lib" / "index.ts").write_text("export default 42;\n")
    (root / "shared" / "helpers.ts").write_text(
        "export function shared(x: unknown) { return x; }\n"
    )
    (root / "node_modules" / "lodash" / "index.js").write_text("module.exports = {};\n")

    return root


# Thread names that are expected to be long-running and should be ignored
# by the resource tracker.
_IGNORED_THREAD_PREFIXES = (
    "MainThread",
    "ThreadPoolExecutor",
    "asyncio_",
    "concurrent.futures",
    "Thread-",
)


def _is_tracked_thread(t: threading.Thread) -> bool:
    if t.daemon:
        return False
    return not any(t.name.startswith(prefix) for prefix in _IGNORED_THREAD_PREFIXES)


@pytest.fixture(autouse=True)
def thread_leak_tracker(
    request: pytest.FixtureRequest,
) -> Generator[None, None, None]:
    """Fail tests that leave non-daemon threads running.

    To skip this check for a specific test, use:
        @pytest.mark.no_resource_tracking
    """
    if request.node.get_closest_marker("no_resource_tracking"):
        yield
        return

    baseline = {t for t in threading.enumerate() if _is_tracked_thread(t)}

    yield

    leaked = {t for t in threading.enumerate() if _is_tracked_thread(t)} - baseline
    if leaked:
        pytest.fail(
            f"Thread leak detected - {len(leaked)} thread(s): "
            f"{[t.name for t in leaked]}"
        )


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "no_resource_tracking: skip resource leak checking for this test",
    )
