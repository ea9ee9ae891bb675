from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Iterable

from .dtypes import DType, float32
from .errors import IRValidationError
from .expr import Expr, IntImm, IterVar, Range, TensorRead, Var, as_expr, post_order_visit
from .operation import Operation, OperationNode
from .tensor import Tensor, as_shape


@dataclass(frozen=True, eq=False, slots=True)
class PlaceholderOpNode(OperationNode):
	"""An input fed from outside the graph: one output, no iteration domain."""

	type_key: ClassVar[str] = "PlaceholderOp"

	shape: tuple[Expr, ...]
	dtype: DType = float32

	def root_iter_vars(self) -> tuple[IterVar, ...]:
		return ()

	def num_outputs(self) -> int:
		return 1

	def output_name(self, i: int) -> str:
		self.check_output_index(i)
		return self.name

	def output_dtype(self, i: int) -> DType:
		self.check_output_index(i)
		return self.dtype

	def output_shape(self, i: int) -> tuple[Expr, ...]:
		self.check_output_index(i)
		return self.shape


@dataclass(frozen=True, eq=False, slots=True)
class ComputeOpNode(OperationNode):
	"""Elementwise computation over a rectangular domain.

	Output `i` at coordinates `axis` equals `body[i]`; every output shares
	the same domain.
	"""

	type_key: ClassVar[str] = "ComputeOp"

	axis: tuple[IterVar, ...]
	body: tuple[Expr, ...]

	def __post_init__(self) -> None:
		if not self.body:
			raise IRValidationError(f"ComputeOp {self.name!r} needs at least one body expression")

	def root_iter_vars(self) -> tuple[IterVar, ...]:
		return self.axis

	def num_outputs(self) -> int:
		return len(self.body)

	def output_name(self, i: int) -> str:
		i = self.check_output_index(i)
		return self.name if len(self.body) == 1 else f"{self.name}.v{i}"

	def output_dtype(self, i: int) -> DType:
		return self.body[self.check_output_index(i)].dtype

	def output_shape(self, i: int) -> tuple[Expr, ...]:
		self.check_output_index(i)
		return tuple(iv.dom.extent for iv in self.axis)

	def input_tensors(self) -> tuple[Tensor, ...]:
		seen: dict[Tensor, None] = {}

		def visit(e: Expr) -> None:
			if isinstance(e, TensorRead):
				seen.setdefault(Tensor.from_node(e.tensor), None)

		for b in self.body:
			post_order_visit(b, visit)
		return tuple(seen)


def placeholder(shape: Iterable[Any], dtype: DType = float32, name: str = "placeholder") -> Tensor:
	"""Create an input tensor produced by a `PlaceholderOpNode`."""
	node = PlaceholderOpNode(name, as_shape(shape), dtype)
	return Operation(node).output(0)


def _axis_names(fcompute: Callable[..., Any], ndim: int) -> list[str]:
	try:
		params = list(inspect.signature(fcompute).parameters.values())
	except (TypeError, ValueError):
		params = []
	names = [p.name for p in params if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)]
	if len(names) == ndim and len(params) == ndim:
		return names
	return [f"i{k}" for k in range(ndim)]


def compute(
	shape: Iterable[Any],
	fcompute: Callable[..., Any],
	name: str = "compute",
) -> Tensor | tuple[Tensor, ...]:
	"""Define a tensor by an expression over its coordinates.

	`fcompute` receives one index variable per dimension and returns an
	expression (or slice), or a list/tuple of them for a multi-output op.

	Example:
		>>> A = placeholder((4, 4), name="A")
		>>> B = compute((4, 4), lambda i, j: A[i][j] * 2, name="B")
	"""
	dims = as_shape(shape)
	axis = tuple(
		IterVar(Var(n), Range(IntImm(0), extent))
		for n, extent in zip(_axis_names(fcompute, len(dims)), dims)
	)
	result = fcompute(*(iv.var for iv in axis))
	multi = isinstance(result, (list, tuple))
	body = tuple(as_expr(r) for r in (result if multi else (result,)))

	op = Operation(ComputeOpNode(name, axis, body))
	outputs = op.outputs()
	return outputs if multi else outputs[0]
