import operator

import pytest

from tensorexpr.ir import RankMismatchError, Tensor, TensorRead, Var, bool_, float32, int32
from tensorexpr.ir import expr as E


@pytest.fixture
def vec():
    return Tensor((4,), name="v")


@pytest.fixture
def other():
    return Tensor((4,), name="w")


BINARY = [
    (operator.add, E.Add),
    (operator.sub, E.Sub),
    (operator.mul, E.Mul),
    (operator.truediv, E.Div),
    (operator.floordiv, E.FloorDiv),
    (operator.mod, E.Mod),
    (operator.lshift, E.ShiftLeft),
    (operator.rshift, E.ShiftRight),
    (operator.and_, E.And),
    (operator.or_, E.Or),
    (operator.eq, E.EQ),
    (operator.ne, E.NE),
    (operator.lt, E.LT),
    (operator.le, E.LE),
    (operator.gt, E.GT),
    (operator.ge, E.GE),
]


@pytest.mark.parametrize("fn, node_type", BINARY)
def test_slice_on_the_left(vec, fn, node_type) -> None:
    e = fn(vec[1], 3)
    assert isinstance(e, node_type)
    assert isinstance(e.a, TensorRead)
    assert e.a.tensor is vec.node
    assert isinstance(e.b, E.IntImm) and e.b.value == 3


@pytest.mark.parametrize("fn, node_type", BINARY)
def test_slice_with_slice(vec, other, fn, node_type) -> None:
    e = fn(vec[0], other[2])
    assert isinstance(e, node_type)
    assert e.a.tensor is vec.node
    assert e.b.tensor is other.node


@pytest.mark.parametrize("fn, node_type", BINARY)
def test_expr_with_slice(vec, fn, node_type) -> None:
    i = Var("i")
    e = fn(i, vec[i])
    assert isinstance(e, node_type)
    assert e.a is i
    assert isinstance(e.b, TensorRead)


@pytest.mark.parametrize(
    "fn, node_type",
    [(fn, t) for fn, t in BINARY if t not in (E.EQ, E.NE, E.LT, E.LE, E.GT, E.GE)],
)
def test_number_on_the_left(vec, fn, node_type) -> None:
    e = fn(2, vec[0])
    assert isinstance(e, node_type)
    assert isinstance(e.a, E.IntImm) and e.a.value == 2
    assert isinstance(e.b, TensorRead)


def test_reflected_comparison_swaps_direction(vec) -> None:
    # `2 < s` is evaluated as `s > 2`.
    e = 2 < vec[0]
    assert isinstance(e, E.GT)
    assert isinstance(e.a, TensorRead)


def test_unary_operators(vec) -> None:
    neg = -vec[0]
    assert isinstance(neg, E.Neg)
    assert neg.dtype == float32

    inv = ~vec[0]
    assert isinstance(inv, E.Not)
    assert inv.dtype == bool_


def test_lifting_checks_rank_at_conversion() -> None:
    m = Tensor((2, 2), name="m")
    with pytest.raises(RankMismatchError):
        m[0] + 1
    with pytest.raises(RankMismatchError):
        1 + m[0]
    with pytest.raises(RankMismatchError):
        -m[0]


def test_slices_are_unhashable(vec) -> None:
    with pytest.raises(TypeError):
        hash(vec[0])


def test_nested_index_expression(vec, other) -> None:
    idx = Tensor((4,), name="idx", dtype=int32)
    e = vec[idx[1]] + other[0]
    assert isinstance(e, E.Add)
    inner = e.a.indices[0]
    assert isinstance(inner, TensorRead)
    assert inner.tensor is idx.node
