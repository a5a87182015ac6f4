"""Defensive accessors over the raw farmer profile payload.

The profile is client-submitted JSON shaped like::

    {"profile": {"address": ..., "metaData": {
        "status": "COMPLETED",
        "stages": [{"stageName": ..., "categories": [{"category": ..., "data": {"totalCost": ...}}]}],
        "masterData": {"cropDetails": {...}, "agriStack": {"totalAreaHectares": ...}}}}}

Absent or mistyped nodes read as empty values instead of raising.
"""

from __future__ import annotations

import math
from typing import Any


def as_number(value: Any) -> float:
	"""Finite int/float as float; anything else (bool, str, None, NaN) is 0."""
	if isinstance(value, bool) or not isinstance(value, (int, float)):
		return 0.0
	if not math.isfinite(value):
		return 0.0
	return float(value)


def _dig(data: Any, *path: str) -> Any:
	node = data
	for key in path:
		if not isinstance(node, dict):
			return None
		node = node.get(key)
	return node


def _as_dict(value: Any) -> dict[str, Any]:
	return value if isinstance(value, dict) else {}


def meta_data(farmer_data: Any) -> dict[str, Any]:
	return _as_dict(_dig(farmer_data, "profile", "metaData"))


def stages(farmer_data: Any) -> list[Any]:
	value = meta_data(farmer_data).get("stages")
	return value if isinstance(value, list) else []


def crop_details(farmer_data: Any) -> dict[str, Any]:
	return _as_dict(_dig(meta_data(farmer_data), "masterData", "cropDetails"))


def status(farmer_data: Any) -> str | None:
	value = meta_data(farmer_data).get("status")
	return value if isinstance(value, str) else None


def address(farmer_data: Any) -> str | None:
	value = _dig(farmer_data, "profile", "address")
	if isinstance(value, str) and value.strip():
		return value.strip()
	return None


def land_area_hectares(farmer_data: Any, default: float) -> float:
	area = as_number(_dig(meta_data(farmer_data), "masterData", "agriStack", "totalAreaHectares"))
	return area if area > 0 else default


def detail_text(farmer_data: Any, field: str) -> str | None:
	value = crop_details(farmer_data).get(field)
	if isinstance(value, str) and value.strip():
		return value.strip()
	return None
