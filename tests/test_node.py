import numpy as np
import pytest

from tensorexpr.ir import (
	Bool,
	DType,
	Float,
	Int,
	Tensor,
	Var,
	bool_,
	compute,
	float32,
	format_node,
	int32,
	node_to_dict,
	placeholder,
	structural_equal,
	structural_hash,
)


class RecordingVisitor:
	def __init__(self) -> None:
		self.seen: list[str] = []

	def visit(self, name, value) -> None:
		self.seen.append(name)


def test_tensor_node_exposes_fields_in_order(matrix) -> None:
	v = RecordingVisitor()
	matrix.node.visit_attrs(v)
	assert v.seen == ["shape", "name", "dtype", "op", "value_index"]


def test_operation_node_hides_output_cache() -> None:
	a = placeholder((2,), name="A")
	b = compute((2,), lambda i: a[i] + 1, name="B")
	v = RecordingVisitor()
	b.op.node.visit_attrs(v)
	assert v.seen == ["name", "axis", "body"]


def test_named_callable_interface(matrix) -> None:
	assert matrix.node.func_name == "A"
	assert matrix.node.outputs == 1
	assert matrix.node.type_key == "Tensor"


def test_structural_equal_does_not_unfold_graph_nodes() -> None:
	a = Tensor((2,), name="A")
	b = Tensor((2,), name="A")
	assert not structural_equal(a.node, b.node)
	assert not structural_equal(a(0), b(0))
	assert structural_equal(a(0), a(0))


def test_vars_compare_by_identity() -> None:
	i = Var("i")
	assert structural_equal(i + 1, i + 1)
	assert not structural_equal(Var("i") + 1, Var("i") + 1)
	assert structural_hash(i * 2) == structural_hash(i * 2)


def test_structural_equal_distinguishes_literals() -> None:
	i = Var("i")
	assert not structural_equal(i + 1, i + 2)
	assert not structural_equal(i + 1, i + 1.0)
	assert not structural_equal(i + 1, i - 1)


def test_expr_truth_value_is_rejected() -> None:
	i = Var("i")
	with pytest.raises(TypeError):
		bool(i + 1)
	with pytest.raises(TypeError):
		if i < 3:
			pass


def test_expr_membership_uses_identity() -> None:
	i, j = Var("i"), Var("j")
	assert i in [j, i]
	assert i not in [j]
	assert len({i, j, i}) == 2


def test_node_to_dict_emits_references(matrix) -> None:
	d = node_to_dict(matrix(0, 1))
	assert d["type_key"] == "TensorRead"
	assert d["tensor"] == {"ref": "Tensor", "name": "A"}
	assert d["indices"] == [
		{"type_key": "IntImm", "value": 0, "dtype": "int32"},
		{"type_key": "IntImm", "value": 1, "dtype": "int32"},
	]
	assert d["op"] is None
	assert d["value_index"] == 0


def test_node_to_dict_of_computed_tensor() -> None:
	a = placeholder((3,), name="A")
	b = compute((3,), lambda i: a[i] * 2, name="B")
	d = node_to_dict(b.node)
	assert d["type_key"] == "Tensor"
	assert d["name"] == "B"
	assert d["dtype"] == "float32"
	assert d["op"] == {"ref": "Operation", "name": "B"}
	assert d["shape"] == [{"type_key": "IntImm", "value": 3, "dtype": "int32"}]


def test_raw_operation_nodes_serialize_as_references() -> None:
	a = placeholder((3,), name="A")
	b = compute((3,), lambda i: a[i] * 2, name="B")

	read = node_to_dict(b.op.node.body[0])["a"]
	assert read["tensor"] == {"ref": "Tensor", "name": "A"}
	assert read["op"] == {"ref": "Operation", "name": "A"}
	assert format_node(b.op.node) == "Operation('B')"
	assert format_node(a.op.node) == "Operation('A')"
	assert format_node(a.node) == "Tensor('A')"
	assert format_node(b.op) == "Operation('B')"


def test_format_node(matrix) -> None:
	text = format_node(matrix(0, 1) + 1)
	assert text.startswith("Add(a=TensorRead(tensor=Tensor('A'), indices=[IntImm(value=0")
	assert text.endswith("b=IntImm(value=1, dtype=int32))")


def test_expression_dtypes() -> None:
	i = Var("i")
	assert (i + 1).dtype == int32
	assert (i + 1.5).dtype == float32
	assert (i < 1).dtype == bool_
	assert (Var("x", Float(64)) * 2.0).dtype == Float(64)
	assert (True & (i < 2)).dtype == bool_


def test_dtype_descriptor() -> None:
	assert float32.name == "float32"
	assert float32.itemsize == 4
	assert float32.numpy_dtype == np.float32
	assert Int(64).numpy_dtype == np.int64
	assert Bool().name == "bool"
	assert Bool().numpy_dtype == np.bool_
	assert Float(16, lanes=4).name == "float16x4"
	with pytest.raises(ValueError):
		Float(16, lanes=4).numpy_dtype
	with pytest.raises(ValueError):
		DType("complex", 64)
