import sys
from pathlib import Path

import pytest


def pytest_configure() -> None:
    """Make `src/` importable in tests without requiring installation."""
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    sys.path.insert(0, str(src_dir))


@pytest.fixture
def matrix():
    """Leaf tensor A of shape (2, 3), the running example of the IR docs."""
    from tensorexpr.ir import Tensor, float32

    return Tensor((2, 3), name="A", dtype=float32)
