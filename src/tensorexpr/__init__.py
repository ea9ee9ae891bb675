"""mini-tensor-expr: node model of a tensor-expression IR.

Tensors and operations are small handles over immutable, shared graph nodes.
Indexing a tensor builds a symbolic read expression; equality and hashing
follow node identity so passes can memoize on them.
"""

from .ir.dtypes import DType, float32
from .ir.errors import ContractError, IRValidationError, OutputIndexError, RankMismatchError
from .ir.expr import Expr, Var
from .ir.node import structural_equal
from .ir.operation import Operation, OperationNode
from .ir.ops import compute, placeholder
from .ir.tensor import Slice, Tensor, TensorNode

__all__ = [
    "DType",
    "float32",
    "Expr",
    "Var",
    "Tensor",
    "TensorNode",
    "Slice",
    "Operation",
    "OperationNode",
    "placeholder",
    "compute",
    "structural_equal",
    "IRValidationError",
    "RankMismatchError",
    "OutputIndexError",
    "ContractError",
]
