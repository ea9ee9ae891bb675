"""Reference evaluation of tensor expressions with numpy.

This is a slow, obviously-correct interpreter: it walks every point of each
compute op's domain and evaluates the body expression there. It is meant for
checking small graphs, not for running them fast.
"""

from __future__ import annotations

import logging
import operator
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

import numpy as np

from tensorexpr.ir import (
    ComputeOpNode,
    Expr,
    FloatImm,
    IntImm,
    Operation,
    PlaceholderOpNode,
    Tensor,
    TensorRead,
    Var,
)
from tensorexpr.ir import expr as E
from tensorexpr.passes.traversal import post_order_ops

logger = logging.getLogger(__name__)


class EvaluationError(Exception):
    """Raised when a graph or expression cannot be evaluated."""

    pass


def _integral(a: Any, b: Any) -> bool:
    return isinstance(a, (int, np.integer)) and isinstance(b, (int, np.integer))


def _nonzero(b: Any) -> None:
    # numpy integers divide by zero with a warning instead of raising.
    if b == 0:
        raise EvaluationError("Integer division by zero")


def _div(a: Any, b: Any) -> Any:
    if _integral(a, b):
        # Integer division truncates toward zero.
        _nonzero(b)
        q = abs(a) // abs(b)
        return q if (a >= 0) == (b >= 0) else -q
    return a / b


def _mod(a: Any, b: Any) -> Any:
    """Remainder paired with `_div`: `_div(a, b) * b + _mod(a, b) == a`."""
    if _integral(a, b):
        return a - b * _div(a, b)
    return np.fmod(a, b)


def _floordiv(a: Any, b: Any) -> Any:
    if _integral(a, b):
        _nonzero(b)
    return a // b


_BINARY: dict[type, Callable[[Any, Any], Any]] = {
    E.Add: operator.add,
    E.Sub: operator.sub,
    E.Mul: operator.mul,
    E.Div: _div,
    E.FloorDiv: _floordiv,
    E.Mod: _mod,
    E.ShiftLeft: operator.lshift,
    E.ShiftRight: operator.rshift,
    E.EQ: operator.eq,
    E.NE: operator.ne,
    E.LT: operator.lt,
    E.LE: operator.le,
    E.GT: operator.gt,
    E.GE: operator.ge,
    E.And: lambda a, b: bool(a) and bool(b),
    E.Or: lambda a, b: bool(a) or bool(b),
}


def evaluate(
    expr: Expr,
    env: Mapping[Var, Any] | None = None,
    buffers: Mapping[Tensor, np.ndarray] | None = None,
) -> Any:
    """Evaluate `expr` to a Python/numpy scalar.

    Args:
        expr: Expression to evaluate.
        env: Values of the free variables, keyed by `Var` node.
        buffers: Tensor contents, keyed by `Tensor` handle.

    Raises:
        EvaluationError: On an unbound variable, a read of a tensor without
            a buffer or outside its bounds, or a division by zero.
    """
    env = env or {}
    buffers = buffers or {}
    return _eval(expr, env, buffers)


def _eval(e: Expr, env: Mapping[Var, Any], buffers: Mapping[Tensor, np.ndarray]) -> Any:
    if isinstance(e, (IntImm, FloatImm)):
        return e.value
    if isinstance(e, Var):
        try:
            return env[e]
        except KeyError:
            raise EvaluationError(f"Unbound variable {e.name!r}") from None
    if isinstance(e, TensorRead):
        tensor = Tensor.from_node(e.tensor)
        buf = buffers.get(tensor)
        if buf is None:
            raise EvaluationError(f"No buffer for tensor {tensor.name!r}")
        idx = tuple(int(_eval(i, env, buffers)) for i in e.indices)
        if len(idx) != buf.ndim:
            raise EvaluationError(
                f"Read of {tensor.name!r} uses {len(idx)} coordinate(s), buffer has {buf.ndim}"
            )
        for axis, (c, extent) in enumerate(zip(idx, buf.shape)):
            if not 0 <= c < extent:
                raise EvaluationError(
                    f"Read of {tensor.name!r} out of bounds: coordinate {c} "
                    f"on axis {axis} not in [0, {extent})"
                )
        return buf[idx]
    if isinstance(e, E.Neg):
        return -_eval(e.a, env, buffers)
    if isinstance(e, E.Not):
        return not _eval(e.a, env, buffers)
    fn = _BINARY.get(type(e))
    if fn is None:
        raise EvaluationError(f"Cannot evaluate {e.type_key}")
    a = _eval(e.a, env, buffers)
    b = _eval(e.b, env, buffers)
    try:
        return fn(a, b)
    except ZeroDivisionError as err:
        raise EvaluationError(f"Division by zero in {e.type_key}") from err


@dataclass(slots=True)
class ReferenceEvaluator:
    """Materialize compute-op outputs as numpy arrays.

    Attributes:
        max_elements: Upper bound on the number of elements of any single
            realized output. Guards against accidentally interpreting a huge
            domain point by point.
    """

    max_elements: int = 1 << 20

    def __post_init__(self) -> None:
        if self.max_elements <= 0:
            raise ValueError(f"max_elements must be positive, got {self.max_elements}")

    def run(
        self,
        tensors: Iterable[Tensor],
        inputs: Mapping[Tensor, np.ndarray],
    ) -> dict[Tensor, np.ndarray]:
        """Evaluate `tensors` given the contents of every input tensor.

        Args:
            tensors: Tensors to realize.
            inputs: Arrays for placeholders and leaf tensors.

        Returns:
            Mapping from each requested tensor to its array.

        Raises:
            EvaluationError: If an input is missing or has the wrong shape, a
                shape is not a constant, or an output exceeds `max_elements`.
        """
        tensors = list(tensors)
        buffers: dict[Tensor, np.ndarray] = {}
        for t, arr in inputs.items():
            arr = np.asarray(arr)
            expected = self._const_shape(t.shape, t.name)
            if arr.shape != expected:
                raise EvaluationError(
                    f"Input {t.name!r} has shape {arr.shape}, expected {expected}"
                )
            buffers[t] = arr

        for op in post_order_ops(tensors):
            node = op.node
            if isinstance(node, PlaceholderOpNode):
                if op.output(0) not in buffers:
                    raise EvaluationError(f"Missing input for placeholder {op.name!r}")
            elif isinstance(node, ComputeOpNode):
                self._realize(op, node, buffers)
            else:
                raise EvaluationError(f"Cannot evaluate {node.kind} {op.name!r}")

        for t in tensors:
            if t not in buffers:
                raise EvaluationError(f"Missing input for tensor {t.name!r}")
        return {t: buffers[t] for t in tensors}

    def _realize(
        self,
        op: Operation,
        node: ComputeOpNode,
        buffers: dict[Tensor, np.ndarray],
    ) -> None:
        outputs = op.outputs()
        shape = self._const_shape(outputs[0].shape, op.name)
        numel = int(np.prod(shape, dtype=np.int64))
        if numel > self.max_elements:
            raise EvaluationError(
                f"{op.name!r} has {numel} elements, more than max_elements={self.max_elements}"
            )

        mins = [int(_eval(iv.dom.min, {}, buffers)) for iv in node.axis]
        arrays = [np.empty(shape, dtype=t.dtype.numpy_dtype) for t in outputs]
        for coords in np.ndindex(*shape):
            env = {iv.var: lo + c for iv, lo, c in zip(node.axis, mins, coords)}
            for arr, body in zip(arrays, node.body):
                arr[coords] = _eval(body, env, buffers)

        for t, arr in zip(outputs, arrays):
            buffers[t] = arr
        logger.debug("Realized %s %r with shape %s", node.kind, op.name, shape)

    def _const_shape(self, shape: tuple[Expr, ...], name: str) -> tuple[int, ...]:
        dims: list[int] = []
        for d in shape:
            try:
                value = _eval(d, {}, {})
            except EvaluationError as err:
                raise EvaluationError(f"Shape of {name!r} is not constant: {err}") from err
            dims.append(int(value))
        return tuple(dims)
