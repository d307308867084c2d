from __future__ import annotations

from decimal import ROUND_CEILING, Decimal
from typing import List, Tuple

from kubernetes.utils import parse_quantity

from .errors import QuantityParseError

_CPU_SUFFIX = " core"

# Applied in order; "KiB" has to be rewritten before "KB" can match inside it.
_MEMORY_UNIT_REWRITES: List[Tuple[str, str]] = [
	("KiB", "Ki"),
	("KB", "K"),
	("MiB", "Mi"),
	("MB", "M"),
	("GiB", "Gi"),
	("GB", "G"),
]

_BINARY_SUFFIXES = [("Ei", 6), ("Pi", 5), ("Ti", 4), ("Gi", 3), ("Mi", 2), ("Ki", 1)]
_DECIMAL_SUFFIXES = [("E", 18), ("P", 15), ("T", 12), ("G", 9), ("M", 6), ("k", 3), ("", 0), ("m", -3), ("u", -6), ("n", -9)]


def _normalize_cpu(raw: str) -> str:
	s = raw.strip().lower()
	if s.endswith(_CPU_SUFFIX):
		s = s[: -len(_CPU_SUFFIX)]
	return s


def _normalize_memory(raw: str) -> str:
	s = raw.strip().replace(" ", "")
	for old, new in _MEMORY_UNIT_REWRITES:
		s = s.replace(old, new)
	return s


def _parse(normalized: str, raw: str, what: str) -> Decimal:
	try:
		value = parse_quantity(normalized)
	except ValueError as e:
		raise QuantityParseError(f"invalid {what} quantity {raw!r}: {e}") from e
	if not value.is_finite():
		raise QuantityParseError(f"invalid {what} quantity {raw!r}: not a finite number")
	return value


def parse_cpu(raw: str) -> Decimal:
	return _parse(_normalize_cpu(raw), raw, "cpu")


def parse_memory(raw: str) -> Decimal:
	return _parse(_normalize_memory(raw), raw, "memory")


def _format_quantity(value: Decimal, *, binary: bool) -> str:
	if value == 0:
		return "0"
	if binary and value == value.to_integral_value():
		for suffix, exp in _BINARY_SUFFIXES:
			if value % (Decimal(1024) ** exp) == 0:
				return f"{int(value / (Decimal(1024) ** exp))}{suffix}"
		return str(int(value))
	for suffix, exp in _DECIMAL_SUFFIXES:
		scaled = value.scaleb(-exp)
		if scaled == scaled.to_integral_value():
			return f"{int(scaled)}{suffix}"
	# Anything finer than nano rounds up, like the API server does.
	return f"{int(value.scaleb(9).to_integral_value(rounding=ROUND_CEILING))}n"


def cpu_quantity(raw: str) -> str:
	normalized = _normalize_cpu(raw)
	return _format_quantity(_parse(normalized, raw, "cpu"), binary=normalized.endswith("i"))


def memory_quantity(raw: str) -> str:
	normalized = _normalize_memory(raw)
	return _format_quantity(_parse(normalized, raw, "memory"), binary=normalized.endswith("i"))
