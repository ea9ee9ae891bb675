from __future__ import annotations

from dataclasses import dataclass

import numpy as np


_CODES = frozenset({"int", "uint", "float", "bool"})


@dataclass(frozen=True, slots=True)
class DType:
	"""Scalar element type of a tensor or expression.

	`code` is one of "int", "uint", "float" or "bool". Vector types are
	described with `lanes > 1`; the IR only builds scalar reads, but the
	descriptor keeps the field so printed types round-trip.
	"""

	code: str
	bits: int
	lanes: int = 1

	def __post_init__(self) -> None:
		if self.code not in _CODES:
			raise ValueError(f"Unknown dtype code {self.code!r}")
		if self.bits <= 0:
			raise ValueError(f"bits must be positive, got {self.bits}")
		if self.lanes <= 0:
			raise ValueError(f"lanes must be positive, got {self.lanes}")

	@property
	def name(self) -> str:
		if self.code == "bool":
			base = "bool"
		else:
			base = f"{self.code}{self.bits}"
		return base if self.lanes == 1 else f"{base}x{self.lanes}"

	@property
	def itemsize(self) -> int:
		return max(1, self.bits // 8) * self.lanes

	@property
	def is_float(self) -> bool:
		return self.code == "float"

	@property
	def is_int(self) -> bool:
		return self.code in ("int", "uint")

	@property
	def is_bool(self) -> bool:
		return self.code == "bool"

	@property
	def numpy_dtype(self) -> np.dtype:
		if self.lanes != 1:
			raise ValueError(f"No numpy equivalent for vector dtype {self.name}")
		if self.code == "bool":
			return np.dtype(np.bool_)
		return np.dtype(f"{self.code}{self.bits}")

	def __str__(self) -> str:  # pragma: no cover
		return self.name


def Float(bits: int = 32, lanes: int = 1) -> DType:
	return DType("float", bits, lanes)


def Int(bits: int = 32, lanes: int = 1) -> DType:
	return DType("int", bits, lanes)


def UInt(bits: int = 32, lanes: int = 1) -> DType:
	return DType("uint", bits, lanes)


def Bool(lanes: int = 1) -> DType:
	return DType("bool", 1, lanes)


float32 = Float(32)
float64 = Float(64)
int32 = Int(32)
int64 = Int(64)
bool_ = Bool()
