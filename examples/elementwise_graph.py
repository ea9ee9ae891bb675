from __future__ import annotations

import logging
import sys
from pathlib import Path

import numpy as np

repo_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(repo_root / "src"))

from tensorexpr.ir import Tensor, compute, format_node, placeholder
from tensorexpr.passes import ReferenceEvaluator, format_graph

def build_graph(rows: int = 4, cols: int = 3):
    x = placeholder((rows, cols), name="x")
    bias = Tensor((cols,), name="bias")

    shifted = compute((rows, cols), lambda i, j: x[i][j] + bias[j], name="shifted")
    lo, hi = compute((rows, cols), lambda i, j: (shifted[i][j] - 1, shifted[i][j] + 1), name="band")
    out = compute((cols, rows), lambda j, i: hi[i][j] * lo[i][j], name="out")
    return x, bias, out

def main() -> None:
    logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(levelname)s - %(message)s")

    print("Building graph...")
    x, bias, out = build_graph()
    print(format_graph([out]))

    print("\nBody of 'out':")
    print(f"  {format_node(out.op.node.body[0])}")

    print("\nEvaluating...")
    rng = np.random.default_rng(0)
    xs = rng.standard_normal((4, 3)).astype(np.float32)
    bs = rng.standard_normal(3).astype(np.float32)
    result = ReferenceEvaluator().run([out], {x: xs, bias: bs})[out]

    expected = ((xs + bs) ** 2 - 1).T
    print(f"max abs error vs numpy: {np.abs(result - expected).max():.2e}")

if __name__ == "__main__":
    main()
