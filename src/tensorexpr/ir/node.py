"""Node base class, handle references and generic attribute visitation.

Every IR record is an immutable `Node`. Nodes enumerate their fields through
`visit_attrs`, and the generic helpers in this module (structural equality,
hashing, serialization, printing) are written once against that protocol
instead of per node type.

Graph nodes (tensors, operations, variables) are compared by identity: the
DAG is append-only and never edited, so the node instance *is* the value.
"""

from __future__ import annotations

from dataclasses import fields
from typing import Any, ClassVar, Protocol


class AttrVisitor(Protocol):
	def visit(self, name: str, value: Any) -> None: ...


class Node:
	"""Base of all IR records.

	Subclasses are frozen dataclasses declared with `eq=False`, so `==` and
	`hash()` keep object identity. Fields whose metadata sets `visit=False`
	(caches) are hidden from `visit_attrs`.
	"""

	__slots__ = ()

	type_key: ClassVar[str] = "Node"
	# Identity-only nodes are never unfolded by structural comparison.
	identity_only: ClassVar[bool] = False
	# Graph nodes serialize as references under this key instead of being unfolded.
	ref_key: ClassVar[str | None] = None

	def visit_attrs(self, visitor: AttrVisitor) -> None:
		for f in fields(self):
			if f.metadata.get("visit", True):
				visitor.visit(f.name, getattr(self, f.name))


class NodeRef:
	"""A lightweight handle over a node.

	Copying the handle shares the node. Two handles are equal iff they point
	to the same node instance.
	"""

	__slots__ = ("_node",)

	def __init__(self, node: Node) -> None:
		self._node = node

	@property
	def node(self) -> Node:
		return self._node

	def same_as(self, other: object) -> bool:
		return isinstance(other, NodeRef) and self._node is other._node

	def __eq__(self, other: object) -> bool:
		if not isinstance(other, NodeRef):
			return NotImplemented
		return self._node is other._node

	def __ne__(self, other: object) -> bool:
		if not isinstance(other, NodeRef):
			return NotImplemented
		return self._node is not other._node

	def __hash__(self) -> int:
		return id(self._node)

	def __copy__(self) -> NodeRef:
		return type(self).from_node(self._node)

	def __deepcopy__(self, memo: dict) -> NodeRef:
		# Nodes are immutable, deep copies share them too.
		return self.__copy__()

	@classmethod
	def from_node(cls, node: Node) -> NodeRef:
		ref = cls.__new__(cls)
		ref._node = node
		return ref


class _FieldCollector:
	__slots__ = ("items",)

	def __init__(self) -> None:
		self.items: list[tuple[str, Any]] = []

	def visit(self, name: str, value: Any) -> None:
		self.items.append((name, value))


def node_fields(node: Node) -> list[tuple[str, Any]]:
	"""Return the `(name, value)` pairs a node exposes to visitors."""
	collector = _FieldCollector()
	node.visit_attrs(collector)
	return collector.items


def structural_equal(a: Any, b: Any) -> bool:
	"""Compare two IR values field by field.

	Handles and identity-only nodes compare by identity. Other nodes compare
	equal when they have the same type and all visited fields are
	structurally equal. Sequences compare element-wise; anything else with
	plain `==`.
	"""
	if a is b:
		return True
	if isinstance(a, NodeRef) or isinstance(b, NodeRef):
		return isinstance(a, NodeRef) and a.same_as(b)
	if isinstance(a, Node) or isinstance(b, Node):
		if type(a) is not type(b) or a.identity_only:
			return False
		fa = node_fields(a)
		fb = node_fields(b)
		return all(
			na == nb and structural_equal(va, vb) for (na, va), (nb, vb) in zip(fa, fb)
		)
	if isinstance(a, (tuple, list)) and isinstance(b, (tuple, list)):
		return len(a) == len(b) and all(structural_equal(x, y) for x, y in zip(a, b))
	return type(a) is type(b) and a == b


def structural_hash(value: Any) -> int:
	"""Hash consistent with `structural_equal`."""
	if isinstance(value, NodeRef):
		return hash(value)
	if isinstance(value, Node):
		if value.identity_only:
			return id(value)
		return hash((value.type_key, *(
			(name, structural_hash(v)) for name, v in node_fields(value)
		)))
	if isinstance(value, (tuple, list)):
		return hash(tuple(structural_hash(v) for v in value))
	return hash(value)


def _ref_name(value: Node | NodeRef) -> str:
	node = value.node if isinstance(value, NodeRef) else value
	return getattr(node, "name", type(node).__name__)


def _is_graph_ref(value: Any) -> bool:
	if isinstance(value, NodeRef):
		return True
	return isinstance(value, Node) and value.ref_key is not None


def node_to_dict(node: Node) -> dict[str, Any]:
	"""Serialize a node into plain dicts and lists.

	Nested tensors and operations are emitted as `{"ref": ref_key, "name": ...}`
	so a read expression does not drag the whole producing graph along.
	"""
	out: dict[str, Any] = {"type_key": node.type_key}
	for name, value in node_fields(node):
		out[name] = _to_plain(value)
	return out


def _to_plain(value: Any) -> Any:
	if value is None or isinstance(value, (bool, int, float, str)):
		return value
	if _is_graph_ref(value):
		node = value.node if isinstance(value, NodeRef) else value
		return {"ref": node.ref_key, "name": _ref_name(node)}
	if isinstance(value, Node):
		return node_to_dict(value)
	if isinstance(value, (tuple, list)):
		return [_to_plain(v) for v in value]
	# DType and other value types serialize through their display form.
	return str(value)


def format_node(value: Any) -> str:
	"""One-line rendering of an IR value, for debugging."""
	if _is_graph_ref(value):
		node = value.node if isinstance(value, NodeRef) else value
		return f"{node.ref_key}({_ref_name(node)!r})"
	if isinstance(value, Node):
		args = ", ".join(f"{name}={format_node(v)}" for name, v in node_fields(value))
		return f"{value.type_key}({args})"
	if isinstance(value, (tuple, list)):
		return "[" + ", ".join(format_node(v) for v in value) + "]"
	if isinstance(value, str):
		return repr(value)
	return str(value)
