from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Iterable, Sequence

from .dtypes import DType, float32
from .errors import OutputIndexError, RankMismatchError
from .expr import Expr, TensorRead, as_expr
from .node import Node, NodeRef

if TYPE_CHECKING:
	from .operation import Operation


Shape = tuple[Expr, ...]


@dataclass(frozen=True, eq=False, slots=True)
class TensorNode(Node):
	"""Data of one tensor value.

	Think of a tensor as an SSA value: it is either a free-standing input
	(`op is None`) or output number `value_index` of its producing op.
	"""

	type_key: ClassVar[str] = "Tensor"
	identity_only: ClassVar[bool] = True
	ref_key: ClassVar[str | None] = "Tensor"

	shape: Shape
	name: str
	dtype: DType
	op: Operation | None = None
	value_index: int = 0

	def __post_init__(self) -> None:
		# Frozen: normalize in place before the node is handed out.
		object.__setattr__(self, "shape", as_shape(self.shape))
		object.__setattr__(self, "value_index", operator.index(self.value_index))
		if self.op is not None:
			n = self.op.num_outputs()
			if not 0 <= self.value_index < n:
				raise OutputIndexError(self.op.name, self.value_index, n)

	@property
	def func_name(self) -> str:
		return self.name

	@property
	def outputs(self) -> int:
		return 1

	@staticmethod
	def make(
		shape: Iterable[Any],
		name: str,
		dtype: DType,
		op: Operation | None = None,
		value_index: int = 0,
	) -> TensorNode:
		return TensorNode(shape, name, dtype, op, value_index)

	def __repr__(self) -> str:  # pragma: no cover
		src = "" if self.op is None else f", op={self.op.name!r}, value_index={self.value_index}"
		return f"TensorNode(name={self.name!r}, ndim={len(self.shape)}, dtype={self.dtype}{src})"


class Tensor(NodeRef):
	"""Handle over a `TensorNode`.

	`Tensor(shape)` builds a leaf tensor; outputs of an operation come from
	`Operation.output(i)`. Handles compare and hash by node identity.

	Reads are built either all at once, `A(i, j)`, or coordinate by
	coordinate, `A[i][j]`; the latter goes through `Slice`.
	"""

	__slots__ = ()

	def __init__(self, shape: Iterable[Any], name: str = "tensor", dtype: DType = float32) -> None:
		super().__init__(TensorNode.make(shape, name, dtype))

	@property
	def node(self) -> TensorNode:
		return self._node

	@property
	def shape(self) -> Shape:
		return self._node.shape

	@property
	def name(self) -> str:
		return self._node.name

	@property
	def dtype(self) -> DType:
		return self._node.dtype

	@property
	def op(self) -> Operation | None:
		return self._node.op

	@property
	def value_index(self) -> int:
		return self._node.value_index

	@property
	def ndim(self) -> int:
		return len(self._node.shape)

	def __call__(self, *indices: Any) -> TensorRead:
		if len(indices) == 1 and isinstance(indices[0], (list, tuple)):
			indices = tuple(indices[0])
		return self.read(indices)

	def read(self, indices: Sequence[Any]) -> TensorRead:
		"""Build the expression reading this tensor at `indices`."""
		node = self._node
		if len(indices) != len(node.shape):
			raise RankMismatchError(node.name, len(node.shape), len(indices))
		args = tuple(as_expr(i) for i in indices)
		return TensorRead(node, args, node.op, node.value_index)

	def __getitem__(self, index: Any) -> Slice:
		if isinstance(index, tuple):
			return Slice(self, index)
		return Slice(self, (index,))

	def __iter__(self):
		raise TypeError("Tensor is not iterable")

	def __repr__(self) -> str:  # pragma: no cover
		dims = ", ".join(str(getattr(d, "value", d)) for d in self.shape)
		return f"Tensor(name={self.name!r}, shape=({dims}), dtype={self.dtype})"


class Slice:
	"""A read with its first k coordinates fixed.

	Exists so that `A[i][j]` parses as chained subscripts; it holds its own
	reference to the tensor and is turned into an `Expr` by `as_expr()` or by
	taking part in any arithmetic. Not meant to be stored in the IR.
	"""

	__slots__ = ("tensor", "indices")

	def __init__(self, tensor: Tensor, indices: tuple[Any, ...]) -> None:
		self.tensor = tensor
		self.indices = indices

	def __getitem__(self, index: Any) -> Slice:
		if isinstance(index, tuple):
			return Slice(self.tensor, self.indices + index)
		return Slice(self.tensor, self.indices + (index,))

	def as_expr(self) -> Expr:
		"""Convert to a read; only valid once every coordinate is fixed."""
		return self.tensor.read(self.indices)

	def __bool__(self) -> bool:
		return bool(self.as_expr())

	def __iter__(self):
		raise TypeError("Slice is not iterable")

	def __repr__(self) -> str:  # pragma: no cover
		return f"Slice(tensor={self.tensor.name!r}, indices={len(self.indices)}/{self.tensor.ndim})"

	__hash__ = None  # type: ignore[assignment]


# Operators a Slice forwards to its Expr form. Comparisons need no reflected
# variant: Python swaps `3 < s` into `s > 3` on its own.
_BINARY_OPERATORS = ("add", "sub", "mul", "truediv", "floordiv", "mod", "lshift", "rshift", "and", "or")
_COMPARISON_OPERATORS = ("eq", "ne", "lt", "le", "gt", "ge")
_UNARY_OPERATORS = ("neg", "invert")


def _lift_forward(name: str):
	def method(self: Slice, other: Any) -> Expr:
		return getattr(self.as_expr(), name)(other)

	method.__name__ = name
	return method


def _lift_reflected(name: str):
	def method(self: Slice, other: Any) -> Expr:
		return getattr(as_expr(other), name)(self.as_expr())

	method.__name__ = name.replace("__", "__r", 1)
	return method


def _lift_unary(name: str):
	def method(self: Slice) -> Expr:
		return getattr(self.as_expr(), name)()

	method.__name__ = name
	return method


for _op in _BINARY_OPERATORS:
	setattr(Slice, f"__{_op}__", _lift_forward(f"__{_op}__"))
	setattr(Slice, f"__r{_op}__", _lift_reflected(f"__{_op}__"))
for _op in _COMPARISON_OPERATORS:
	setattr(Slice, f"__{_op}__", _lift_forward(f"__{_op}__"))
for _op in _UNARY_OPERATORS:
	setattr(Slice, f"__{_op}__", _lift_unary(f"__{_op}__"))
del _op


def as_shape(dims: Iterable[Any]) -> Shape:
	return tuple(as_expr(d) for d in dims)
