from __future__ import annotations


class IRValidationError(ValueError):
	pass


class RankMismatchError(IRValidationError):
	"""Number of coordinates differs from the rank of the tensor being read."""

	def __init__(self, tensor_name: str, ndim: int, num_indices: int) -> None:
		super().__init__(
			f"Tensor {tensor_name!r} has rank {ndim} but was indexed with {num_indices} coordinate(s)"
		)
		self.tensor_name = tensor_name
		self.ndim = ndim
		self.num_indices = num_indices


class OutputIndexError(IRValidationError, IndexError):
	"""An output index that the operation does not produce."""

	def __init__(self, op_name: str, index: int, num_outputs: int) -> None:
		super().__init__(
			f"Operation {op_name!r} has {num_outputs} output(s), index {index} is out of range"
		)
		self.op_name = op_name
		self.index = index
		self.num_outputs = num_outputs


class ContractError(IRValidationError):
	"""An OperationNode variant that describes its outputs inconsistently."""
