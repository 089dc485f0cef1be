"""Fixtures for the runnable Vista examples.

Each example directory holds an ``app.py`` that builds its views and
renders at import time, plus a ``test_*.py`` that checks the results
through the ``example_app`` fixture.
"""

import contextvars
import importlib.util
from pathlib import Path
from types import ModuleType

import pytest

from vista.handlers import reset_handlers


def load_app(app_path: Path) -> ModuleType:
    """Execute *app_path* as a fresh module named after its example directory."""
    spec = importlib.util.spec_from_file_location(
        f"vista_example_{app_path.parent.name}", app_path
    )
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def example_app(request: pytest.FixtureRequest):
    """The sibling ``app.py``, rendered in its own context.

    The app runs in a copied ``contextvars`` context, so an external
    encoding it sets does not leak into other tests. Handlers it registers
    are removed afterwards.
    """
    app_path = Path(request.path).parent / "app.py"
    yield contextvars.copy_context().run(load_app, app_path)
    reset_handlers()
