"""Presentation helpers for rupee amounts and percentages (en-IN conventions)."""

from __future__ import annotations

import math

RUPEE = "₹"


def group_indian(value: int) -> str:
	"""12345678 -> '1,23,45,678' (last three digits, then pairs)."""
	sign = "-" if value < 0 else ""
	digits = str(abs(value))
	if len(digits) <= 3:
		return sign + digits
	head, tail = digits[:-3], digits[-3:]
	pairs: list[str] = []
	while len(head) > 2:
		pairs.insert(0, head[-2:])
		head = head[:-2]
	if head:
		pairs.insert(0, head)
	return sign + ",".join([*pairs, tail])


def format_inr(amount: float) -> str:
	return f"{RUPEE}{group_indian(int(math.floor(amount + 0.5)))}"


def format_price_per_quintal(price: float) -> str:
	return f"{RUPEE}{format_number(price)}/quintal"


def format_number(value: float) -> str:
	"""Drop a trailing ``.0`` so 30.0 renders as ``30`` and 36.99 stays."""
	rounded = round(float(value), 2)
	if rounded.is_integer():
		return str(int(rounded))
	return f"{rounded:.2f}".rstrip("0").rstrip(".")


def format_percent(value: float) -> str:
	return f"{format_number(value)}%"
