from __future__ import annotations

from typing import Iterable

from tensorexpr.ir import Expr, Operation, Tensor, TensorRead
from tensorexpr.ir.expr import post_order_visit


def collect_reads(expr: Expr) -> list[TensorRead]:
    """Return every tensor read inside `expr`, in evaluation order."""
    reads: list[TensorRead] = []

    def visit(e: Expr) -> None:
        if isinstance(e, TensorRead):
            reads.append(e)

    post_order_visit(expr, visit)
    return reads


def post_order_ops(tensors: Iterable[Tensor]) -> list[Operation]:
    """Operations reachable from `tensors`, producers before consumers.

    Each operation appears once. Leaf tensors (no producing op) are skipped.
    Deduplication relies on `Operation` hashing by node identity.
    """
    order: list[Operation] = []
    visited: set[Operation] = set()

    # Iterative DFS; graphs built by unrolled loops can get deep.
    stack: list[tuple[Operation, bool]] = []
    for t in reversed(list(tensors)):
        if t.op is not None:
            stack.append((t.op, False))

    while stack:
        op, expanded = stack.pop()
        if expanded:
            if op not in visited:
                visited.add(op)
                order.append(op)
            continue
        if op in visited:
            continue
        stack.append((op, True))
        for inp in reversed(op.input_tensors()):
            if inp.op is not None and inp.op not in visited:
                stack.append((inp.op, False))
    return order


def format_graph(tensors: Iterable[Tensor]) -> str:
    """Human-readable listing of the operations behind `tensors`."""
    tensors = list(tensors)
    ops = post_order_ops(tensors)
    lines: list[str] = [f"Graph(outputs={len(tensors)}, ops={len(ops)})"]
    for op in ops:
        ins = ", ".join(f"{t.name}:{_dims(t)}" for t in op.input_tensors())
        outs = ", ".join(f"{t.name}:{_dims(t)}" for t in op.outputs())
        lines.append(f"- {op.name}: {op.node.kind}({ins}) -> {outs}")
    return "\n".join(lines)


def _dims(t: Tensor) -> tuple:
    return tuple(getattr(d, "value", getattr(d, "name", "?")) for d in t.shape)
