from __future__ import annotations

import logging
import operator
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

from .errors import ContractError, OutputIndexError
from .node import Node, NodeRef
from .tensor import Tensor, TensorNode

if TYPE_CHECKING:
	from .dtypes import DType
	from .expr import Expr, IterVar


logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False, slots=True)
class OperationNode(Node, ABC):
	"""Base class for operations that produce tensors.

	Concrete variants describe their outputs through the five query methods
	below and nothing else; the base class owns no computation semantics.

	`_outputs` caches the output tensor nodes created by `Operation.output`
	so that asking twice for output `i` yields the same node. Each cached
	output points back here through `TensorNode.op`, so an operation and its
	outputs form a reference cycle: they are reclaimed together by the cycle
	collector once no handle outside the cycle refers to them.
	"""

	type_key: ClassVar[str] = "Operation"
	identity_only: ClassVar[bool] = True
	ref_key: ClassVar[str | None] = "Operation"

	name: str
	_outputs: dict[int, TensorNode] = field(
		default_factory=dict, init=False, repr=False, metadata={"visit": False}
	)

	@property
	def kind(self) -> str:
		return type(self).__name__.removesuffix("Node")

	@abstractmethod
	def root_iter_vars(self) -> tuple[IterVar, ...]:
		"""Iteration variables of the top-level loop nest."""

	@abstractmethod
	def num_outputs(self) -> int:
		...

	@abstractmethod
	def output_name(self, i: int) -> str:
		...

	@abstractmethod
	def output_dtype(self, i: int) -> DType:
		...

	@abstractmethod
	def output_shape(self, i: int) -> tuple[Expr, ...]:
		...

	def input_tensors(self) -> tuple[Tensor, ...]:
		"""Tensors read by this operation. Operations without inputs keep the default."""
		return ()

	def check_output_index(self, i: int) -> int:
		i = operator.index(i)
		n = self.num_outputs()
		if not 0 <= i < n:
			raise OutputIndexError(self.name, i, n)
		return i


class Operation(NodeRef):
	"""Handle over an `OperationNode`; compares and hashes by node identity."""

	__slots__ = ()

	def __init__(self, node: OperationNode) -> None:
		if not isinstance(node, OperationNode):
			raise TypeError(f"Operation expects an OperationNode, got {type(node).__name__}")
		super().__init__(node)

	@property
	def node(self) -> OperationNode:
		return self._node

	@property
	def name(self) -> str:
		return self._node.name

	def root_iter_vars(self) -> tuple[IterVar, ...]:
		return tuple(self._node.root_iter_vars())

	def num_outputs(self) -> int:
		return self._node.num_outputs()

	def output_name(self, i: int) -> str:
		return self._node.output_name(self._node.check_output_index(i))

	def output_dtype(self, i: int) -> DType:
		return self._node.output_dtype(self._node.check_output_index(i))

	def output_shape(self, i: int) -> tuple[Expr, ...]:
		return tuple(self._node.output_shape(self._node.check_output_index(i)))

	def input_tensors(self) -> tuple[Tensor, ...]:
		return tuple(self._node.input_tensors())

	def output(self, i: int) -> Tensor:
		"""Return output `i` as a tensor whose `op` is this operation.

		The tensor node is created on first request and reused afterwards.
		"""
		node = self._node
		i = node.check_output_index(i)
		cached = node._outputs.get(i)
		if cached is None:
			try:
				shape = node.output_shape(i)
				dtype = node.output_dtype(i)
				name = node.output_name(i)
			except IndexError as err:
				raise ContractError(
					f"{node.kind} {node.name!r} reports {node.num_outputs()} output(s) "
					f"but cannot describe output {i}"
				) from err
			created = TensorNode.make(shape, name, dtype, self, i)
			# setdefault publishes one node even if two callers race here.
			cached = node._outputs.setdefault(i, created)
			if cached is created:
				logger.debug("Created output %d of %s %r", i, node.kind, node.name)
		return Tensor.from_node(cached)

	def outputs(self) -> tuple[Tensor, ...]:
		return tuple(self.output(i) for i in range(self.num_outputs()))

	def __repr__(self) -> str:  # pragma: no cover
		return f"Operation(name={self.name!r}, kind={self._node.kind}, num_outputs={self.num_outputs()})"
