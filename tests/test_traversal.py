from tensorexpr.ir import Tensor, compute, placeholder
from tensorexpr.passes import collect_reads, format_graph, post_order_ops


def _diamond():
    # A -> B, A -> C, (B, C) -> D
    a = placeholder((4,), name="A")
    b = compute((4,), lambda i: a[i] + 1, name="B")
    c = compute((4,), lambda i: a[i] * 2, name="C")
    d = compute((4,), lambda i: b[i] + c[i], name="D")
    return a, b, c, d


def test_post_order_visits_producers_first() -> None:
    a, b, c, d = _diamond()
    ops = post_order_ops([d])
    assert [op.name for op in ops] == ["A", "B", "C", "D"]


def test_post_order_deduplicates_by_identity() -> None:
    a, b, c, d = _diamond()
    ops = post_order_ops([d, b, d, a])
    assert len(ops) == 4
    assert len(set(ops)) == 4


def test_post_order_skips_leaf_tensors() -> None:
    leaf = Tensor((4,), name="L")
    y = compute((4,), lambda i: leaf[i] + leaf[i], name="Y")
    assert [op.name for op in post_order_ops([y, leaf])] == ["Y"]


def test_multi_output_op_appears_once() -> None:
    x = placeholder((3,), name="X")
    lo, hi = compute((3,), lambda i: (x[i] - 1, x[i] + 1), name="band")
    z = compute((3,), lambda i: hi[i] - lo[i], name="Z")
    assert [op.name for op in post_order_ops([z])] == ["X", "band", "Z"]


def test_collect_reads() -> None:
    a, b, c, d = _diamond()
    body = d.op.node.body[0]
    reads = collect_reads(body)
    assert [r.tensor.name for r in reads] == ["B", "C"]
    assert reads[0].op == b.op


def test_collect_reads_includes_index_reads() -> None:
    idx = Tensor((2,), name="idx")
    data = Tensor((8,), name="data")
    reads = collect_reads(data[idx[0]] * 2)
    assert [r.tensor.name for r in reads] == ["idx", "data"]


def test_format_graph() -> None:
    a, b, c, d = _diamond()
    text = format_graph([d])
    assert text.splitlines() == [
        "Graph(outputs=1, ops=4)",
        "- A: PlaceholderOp() -> A:(4,)",
        "- B: ComputeOp(A:(4,)) -> B:(4,)",
        "- C: ComputeOp(A:(4,)) -> C:(4,)",
        "- D: ComputeOp(B:(4,), C:(4,)) -> D:(4,)",
    ]
