from .dtypes import DType, Bool, Float, Int, UInt, bool_, float32, float64, int32, int64
from .errors import ContractError, IRValidationError, OutputIndexError, RankMismatchError
from .expr import Expr, FloatImm, IntImm, IterVar, Range, TensorRead, Var, as_expr
from .node import Node, NodeRef, format_node, node_to_dict, structural_equal, structural_hash
from .operation import Operation, OperationNode
from .ops import ComputeOpNode, PlaceholderOpNode, compute, placeholder
from .tensor import Slice, Tensor, TensorNode

__all__ = [
	"DType",
	"Bool",
	"Float",
	"Int",
	"UInt",
	"bool_",
	"float32",
	"float64",
	"int32",
	"int64",
	"IRValidationError",
	"RankMismatchError",
	"OutputIndexError",
	"ContractError",
	"Expr",
	"IntImm",
	"FloatImm",
	"Var",
	"TensorRead",
	"Range",
	"IterVar",
	"as_expr",
	"Node",
	"NodeRef",
	"structural_equal",
	"structural_hash",
	"node_to_dict",
	"format_node",
	"Tensor",
	"TensorNode",
	"Slice",
	"Operation",
	"OperationNode",
	"PlaceholderOpNode",
	"ComputeOpNode",
	"placeholder",
	"compute",
]
