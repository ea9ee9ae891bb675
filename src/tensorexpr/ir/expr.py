"""A small symbolic scalar expression language.

Expressions are immutable nodes built through Python operators:

	>>> i = Var("i")
	>>> e = (i + 1) * 2

Tensor reads are `TensorRead` nodes; they are created by indexing a
`Tensor`, never directly.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, ClassVar

from .dtypes import DType, bool_, float32, int32
from .node import Node, node_fields

if TYPE_CHECKING:
	from .operation import Operation
	from .tensor import TensorNode


class Expr(Node):
	"""Base class of symbolic expressions.

	Operators build new expression nodes, so `==` returns an `EQ` node rather
	than a bool. Hashing stays identity-based; use `structural_equal` to
	compare two expression trees.
	"""

	__slots__ = ()

	type_key: ClassVar[str] = "Expr"

	@property
	def dtype(self) -> DType:
		raise NotImplementedError

	def as_expr(self) -> Expr:
		return self

	def __add__(self, other: Any) -> Expr:
		return Add(self, as_expr(other))

	def __radd__(self, other: Any) -> Expr:
		return Add(as_expr(other), self)

	def __sub__(self, other: Any) -> Expr:
		return Sub(self, as_expr(other))

	def __rsub__(self, other: Any) -> Expr:
		return Sub(as_expr(other), self)

	def __mul__(self, other: Any) -> Expr:
		return Mul(self, as_expr(other))

	def __rmul__(self, other: Any) -> Expr:
		return Mul(as_expr(other), self)

	def __truediv__(self, other: Any) -> Expr:
		return Div(self, as_expr(other))

	def __rtruediv__(self, other: Any) -> Expr:
		return Div(as_expr(other), self)

	def __floordiv__(self, other: Any) -> Expr:
		return FloorDiv(self, as_expr(other))

	def __rfloordiv__(self, other: Any) -> Expr:
		return FloorDiv(as_expr(other), self)

	def __mod__(self, other: Any) -> Expr:
		return Mod(self, as_expr(other))

	def __rmod__(self, other: Any) -> Expr:
		return Mod(as_expr(other), self)

	def __lshift__(self, other: Any) -> Expr:
		return ShiftLeft(self, as_expr(other))

	def __rlshift__(self, other: Any) -> Expr:
		return ShiftLeft(as_expr(other), self)

	def __rshift__(self, other: Any) -> Expr:
		return ShiftRight(self, as_expr(other))

	def __rrshift__(self, other: Any) -> Expr:
		return ShiftRight(as_expr(other), self)

	def __and__(self, other: Any) -> Expr:
		return And(self, as_expr(other))

	def __rand__(self, other: Any) -> Expr:
		return And(as_expr(other), self)

	def __or__(self, other: Any) -> Expr:
		return Or(self, as_expr(other))

	def __ror__(self, other: Any) -> Expr:
		return Or(as_expr(other), self)

	def __eq__(self, other: Any) -> Expr:  # type: ignore[override]
		return EQ(self, as_expr(other))

	def __ne__(self, other: Any) -> Expr:  # type: ignore[override]
		return NE(self, as_expr(other))

	def __lt__(self, other: Any) -> Expr:
		return LT(self, as_expr(other))

	def __le__(self, other: Any) -> Expr:
		return LE(self, as_expr(other))

	def __gt__(self, other: Any) -> Expr:
		return GT(self, as_expr(other))

	def __ge__(self, other: Any) -> Expr:
		return GE(self, as_expr(other))

	def __neg__(self) -> Expr:
		return Neg(self)

	def __invert__(self) -> Expr:
		return Not(self)

	def __bool__(self) -> bool:
		raise TypeError(
			f"Cannot use symbolic expression {type(self).__name__} as a bool; "
			"use structural_equal() to compare expressions"
		)

	__hash__ = Node.__hash__


def as_expr(value: Any) -> Expr:
	"""Convert a Python scalar, an Expr or an Expr-convertible value to an Expr."""
	if isinstance(value, Expr):
		return value
	# bool before int: bool is an int subclass.
	if isinstance(value, bool):
		return IntImm(int(value), bool_)
	if isinstance(value, numbers.Integral):
		return IntImm(int(value), int32)
	if isinstance(value, numbers.Real):
		return FloatImm(float(value), float32)
	convert = getattr(value, "as_expr", None)
	if callable(convert):
		return convert()
	raise TypeError(f"Cannot convert {type(value).__name__} to Expr")


# =============================================================================
# Leaves
# =============================================================================


@dataclass(frozen=True, eq=False, slots=True)
class IntImm(Expr):
	type_key: ClassVar[str] = "IntImm"

	value: int
	dtype: DType = int32


@dataclass(frozen=True, eq=False, slots=True)
class FloatImm(Expr):
	type_key: ClassVar[str] = "FloatImm"

	value: float
	dtype: DType = float32


@dataclass(frozen=True, eq=False, slots=True)
class Var(Expr):
	"""A symbolic variable. Two variables are the same only if they are the same node."""

	type_key: ClassVar[str] = "Var"
	identity_only: ClassVar[bool] = True

	name: str
	dtype: DType = int32


# =============================================================================
# Operators
# =============================================================================


def _promote(a: DType, b: DType) -> DType:
	if a.is_float or b.is_float:
		floats = [t for t in (a, b) if t.is_float]
		return max(floats, key=lambda t: t.bits)
	if a.is_bool and b.is_bool:
		return a
	return a if a.bits >= b.bits else b


@dataclass(frozen=True, eq=False, slots=True)
class BinaryOp(Expr):
	a: Expr
	b: Expr

	@property
	def dtype(self) -> DType:
		return _promote(self.a.dtype, self.b.dtype)


@dataclass(frozen=True, eq=False, slots=True)
class Add(BinaryOp):
	type_key: ClassVar[str] = "Add"


@dataclass(frozen=True, eq=False, slots=True)
class Sub(BinaryOp):
	type_key: ClassVar[str] = "Sub"


@dataclass(frozen=True, eq=False, slots=True)
class Mul(BinaryOp):
	type_key: ClassVar[str] = "Mul"


@dataclass(frozen=True, eq=False, slots=True)
class Div(BinaryOp):
	type_key: ClassVar[str] = "Div"


@dataclass(frozen=True, eq=False, slots=True)
class FloorDiv(BinaryOp):
	type_key: ClassVar[str] = "FloorDiv"


@dataclass(frozen=True, eq=False, slots=True)
class Mod(BinaryOp):
	type_key: ClassVar[str] = "Mod"


@dataclass(frozen=True, eq=False, slots=True)
class ShiftLeft(BinaryOp):
	type_key: ClassVar[str] = "ShiftLeft"


@dataclass(frozen=True, eq=False, slots=True)
class ShiftRight(BinaryOp):
	type_key: ClassVar[str] = "ShiftRight"


@dataclass(frozen=True, eq=False, slots=True)
class CmpOp(BinaryOp):
	@property
	def dtype(self) -> DType:
		return bool_


@dataclass(frozen=True, eq=False, slots=True)
class EQ(CmpOp):
	type_key: ClassVar[str] = "EQ"

	def __bool__(self) -> bool:
		# Lets `expr in seq` fall back to identity of the operands.
		return self.a is self.b


@dataclass(frozen=True, eq=False, slots=True)
class NE(CmpOp):
	type_key: ClassVar[str] = "NE"

	def __bool__(self) -> bool:
		return self.a is not self.b


@dataclass(frozen=True, eq=False, slots=True)
class LT(CmpOp):
	type_key: ClassVar[str] = "LT"


@dataclass(frozen=True, eq=False, slots=True)
class LE(CmpOp):
	type_key: ClassVar[str] = "LE"


@dataclass(frozen=True, eq=False, slots=True)
class GT(CmpOp):
	type_key: ClassVar[str] = "GT"


@dataclass(frozen=True, eq=False, slots=True)
class GE(CmpOp):
	type_key: ClassVar[str] = "GE"


@dataclass(frozen=True, eq=False, slots=True)
class And(CmpOp):
	type_key: ClassVar[str] = "And"


@dataclass(frozen=True, eq=False, slots=True)
class Or(CmpOp):
	type_key: ClassVar[str] = "Or"


@dataclass(frozen=True, eq=False, slots=True)
class Neg(Expr):
	type_key: ClassVar[str] = "Neg"

	a: Expr

	@property
	def dtype(self) -> DType:
		return self.a.dtype


@dataclass(frozen=True, eq=False, slots=True)
class Not(Expr):
	type_key: ClassVar[str] = "Not"

	a: Expr

	@property
	def dtype(self) -> DType:
		return bool_


@dataclass(frozen=True, eq=False, slots=True)
class TensorRead(Expr):
	"""Read of `tensor` at `indices`.

	`op` and `value_index` record which operation output produced the tensor
	(both copied from the tensor node) so passes can trace provenance without
	going back through the tensor.
	"""

	type_key: ClassVar[str] = "TensorRead"

	tensor: TensorNode
	indices: tuple[Expr, ...]
	op: Operation | None = None
	value_index: int = 0

	@property
	def dtype(self) -> DType:
		return self.tensor.dtype


# =============================================================================
# Iteration domain
# =============================================================================


@dataclass(frozen=True, eq=False, slots=True)
class Range(Node):
	type_key: ClassVar[str] = "Range"

	min: Expr
	extent: Expr


@dataclass(frozen=True, eq=False, slots=True)
class IterVar(Node):
	"""An iteration variable together with its domain."""

	type_key: ClassVar[str] = "IterVar"
	identity_only: ClassVar[bool] = True

	var: Var
	dom: Range
	kind: str = "data_par"

	@property
	def name(self) -> str:
		return self.var.name


def post_order_visit(expr: Expr, fn: Callable[[Expr], None]) -> None:
	"""Call `fn` on every sub-expression of `expr`, children first.

	Tensor and operation references inside a read are not followed.
	"""
	stack: list[tuple[Expr, bool]] = [(expr, False)]
	while stack:
		node, expanded = stack.pop()
		if expanded:
			fn(node)
			continue
		stack.append((node, True))
		children: list[Expr] = []
		for _, value in node_fields(node):
			if isinstance(value, Expr):
				children.append(value)
			elif isinstance(value, tuple):
				children.extend(v for v in value if isinstance(v, Expr))
		for child in reversed(children):
			stack.append((child, False))
