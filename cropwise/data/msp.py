"""Minimum Support Price table (₹/quintal) keyed by crop and fiscal year.

Kharif rates are the Cabinet-approved CACP recommendations; Rabi rates are for
the corresponding marketing season.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from cropwise.models.enums import CropCategory, MspTrend
from cropwise.schemas.market import MspEntry


def _msp(crop: str, category: CropCategory, fy_2024: float, fy_2025: float) -> MspEntry:
	trend = MspTrend.rising if fy_2025 > fy_2024 else MspTrend.stable
	return MspEntry(
		crop=crop,
		category=category,
		prices={"2024-25": fy_2024, "2025-26": fy_2025},
		trend=trend,
	)


_MSP_ROWS: list[MspEntry] = [
	# ── Kharif ──────────────────────────────────────────────────────────────
	_msp("Paddy (Common)", CropCategory.grain, 2300, 2369),
	_msp("Paddy (Grade A)", CropCategory.grain, 2320, 2389),
	_msp("Jowar (Hybrid)", CropCategory.grain, 3371, 3699),
	_msp("Bajra", CropCategory.grain, 2625, 2775),
	_msp("Ragi", CropCategory.grain, 4290, 4886),
	_msp("Maize", CropCategory.grain, 2225, 2400),
	_msp("Tur (Arhar)", CropCategory.pulse, 7550, 8000),
	_msp("Moong", CropCategory.pulse, 8682, 8768),
	_msp("Urad", CropCategory.pulse, 7400, 7800),
	_msp("Groundnut", CropCategory.oilseed, 6783, 7263),
	_msp("Sunflower Seed", CropCategory.oilseed, 7280, 7721),
	_msp("Soybean (Yellow)", CropCategory.oilseed, 4892, 5328),
	_msp("Sesamum", CropCategory.oilseed, 9267, 9846),
	_msp("Nigerseed", CropCategory.oilseed, 8717, 9537),
	_msp("Cotton (Medium Staple)", CropCategory.cash_crop, 7121, 7710),
	_msp("Cotton (Long Staple)", CropCategory.cash_crop, 7521, 8110),
	# ── Rabi ────────────────────────────────────────────────────────────────
	_msp("Wheat", CropCategory.grain, 2275, 2425),
	_msp("Barley", CropCategory.grain, 1850, 1980),
	_msp("Gram", CropCategory.pulse, 5440, 5650),
	_msp("Masur (Lentil)", CropCategory.pulse, 6425, 6700),
	_msp("Rapeseed & Mustard", CropCategory.oilseed, 5650, 5950),
	_msp("Safflower", CropCategory.oilseed, 5800, 5940),
]

MSP_TABLE: Mapping[str, MspEntry] = MappingProxyType({entry.crop: entry for entry in _MSP_ROWS})

MSP_ALIASES: Mapping[str, tuple[str, ...]] = MappingProxyType(
	{
		"Paddy (Common)": ("paddy", "rice"),
		"Jowar (Hybrid)": ("jowar", "sorghum"),
		"Bajra": ("pearl millet",),
		"Ragi": ("finger millet",),
		"Maize": ("corn",),
		"Tur (Arhar)": ("arhar", "toor", "red gram", "pigeon pea"),
		"Moong": ("green gram", "mung"),
		"Urad": ("black gram",),
		"Groundnut": ("peanut",),
		"Sunflower Seed": ("sunflower",),
		"Soybean (Yellow)": ("soybean", "soya"),
		"Sesamum": ("sesame", "gingelly"),
		"Cotton (Medium Staple)": ("cotton",),
		"Gram": ("chana", "chickpea", "bengal gram"),
		"Masur (Lentil)": ("masur", "lentil"),
		"Rapeseed & Mustard": ("mustard", "rapeseed"),
	}
)
