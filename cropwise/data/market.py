"""APMC PALAMANER trade data (Dec 1-3, 2025) and crop name aliases."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from cropwise.models.enums import DemandLevel, PriceVolatility
from cropwise.schemas.market import MarketCropData, TradeRecord

MARKET_REGION = "PALAMANER"
MARKET_STATE = "ANDHRA PRADESH"
HIGH_DEMAND_ARRIVALS = 150
HIGH_DEMAND_PRICE = 3000
MEDIUM_HIGH_ARRIVALS = 100
MEDIUM_HIGH_PRICE = 3500
MEDIUM_ARRIVALS = 50
MEDIUM_PRICE = 2000


def calculate_demand_level(total_arrivals: float, avg_price: float) -> DemandLevel:
	"""Demand tier from three-day arrivals (quintals) and average modal price."""
	if total_arrivals > HIGH_DEMAND_ARRIVALS and avg_price > HIGH_DEMAND_PRICE:
		return DemandLevel.high
	if total_arrivals > MEDIUM_HIGH_ARRIVALS or avg_price > MEDIUM_HIGH_PRICE:
		return DemandLevel.medium_high
	if total_arrivals > MEDIUM_ARRIVALS and avg_price > MEDIUM_PRICE:
		return DemandLevel.medium
	return DemandLevel.low_medium


def _trades(*rows: tuple[str, float, float, float, float]) -> tuple[TradeRecord, ...]:
	return tuple(
		TradeRecord(
			date=day,
			min_price=min_price,
			modal_price=modal_price,
			max_price=max_price,
			arrivals=arrivals,
			traded=arrivals,
		)
		for (day, min_price, modal_price, max_price, arrivals) in rows
	)


def market_entry(
	crop: str,
	trades: tuple[TradeRecord, ...],
	avg_modal_price: float,
	volatility: PriceVolatility,
	demand: DemandLevel | None = None,
) -> MarketCropData:
	"""Row with curated demand, or the arrivals/price tier when none is given."""
	total_arrivals = sum(trade.arrivals for trade in trades)
	return MarketCropData(
		crop=crop,
		region=MARKET_REGION,
		state=MARKET_STATE,
		recent_trades=trades,
		total_arrivals=total_arrivals,
		avg_modal_price=avg_modal_price,
		price_volatility=volatility,
		demand=demand or calculate_demand_level(total_arrivals, avg_modal_price),
	)


_MARKET_ROWS: dict[str, MarketCropData] = {
	"TOMATO": market_entry(
		"TOMATO",
		_trades(
			("2025-12-03", 2900, 3800, 3800, 231),
			("2025-12-02", 4300, 4800, 4800, 201),
			("2025-12-01", 3300, 4000, 4000, 180),
		),
		4200,
		PriceVolatility.medium,
		DemandLevel.high,
	),
	"CAULIFLOWER": market_entry(
		"CAULIFLOWER",
		_trades(
			("2025-12-03", 1000, 1600, 1600, 46),
			("2025-12-02", 1500, 1700, 1700, 57),
			("2025-12-01", 1200, 1400, 1400, 64),
		),
		1567,
		PriceVolatility.low,
		DemandLevel.medium,
	),
	"CABBAGE": market_entry(
		"CABBAGE",
		_trades(
			("2025-12-03", 700, 1500, 1500, 45),
			("2025-12-02", 600, 1300, 1300, 59),
			("2025-12-01", 1300, 1600, 1600, 58),
		),
		1467,
		PriceVolatility.medium,
		DemandLevel.medium,
	),
	"GREEN CHILLI": market_entry(
		"GREEN CHILLI",
		_trades(
			("2025-12-03", 3000, 4500, 4500, 13),
			("2025-12-02", 3500, 4500, 4500, 25),
			("2025-12-01", 3500, 3500, 4000, 21),
		),
		4167,
		PriceVolatility.medium,
		DemandLevel.high,
	),
	"BRINJAL": market_entry(
		"BRINJAL",
		_trades(
			("2025-12-03", 2000, 3000, 3000, 13),
			("2025-12-02", 2500, 2500, 2500, 14),
			("2025-12-01", 2000, 4000, 4000, 21),
		),
		3167,
		PriceVolatility.high,
		DemandLevel.medium,
	),
	"POTATO": market_entry(
		"POTATO",
		_trades(
			("2025-12-03", 1000, 2500, 2500, 16),
			("2025-12-02", 3000, 3000, 3000, 17),
			("2025-12-01", 2000, 2500, 3000, 20),
		),
		2667,
		PriceVolatility.medium,
		DemandLevel.medium,
	),
	"BEANS -CLUSTER": market_entry(
		"BEANS -CLUSTER",
		_trades(
			("2025-12-03", 2000, 3500, 3500, 14),
			("2025-12-02", 2000, 2500, 3500, 18),
			("2025-12-01", 2000, 3000, 3000, 17),
		),
		3000,
		PriceVolatility.medium,
		DemandLevel.medium,
	),
	"RIDGE GOURD (TURAI)": market_entry(
		"RIDGE GOURD (TURAI)",
		_trades(
			("2025-12-03", 2500, 4000, 4000, 14),
			("2025-12-02", 4000, 4000, 4000, 12),
			("2025-12-01", 2500, 2500, 3000, 9),
		),
		3500,
		PriceVolatility.high,
		DemandLevel.medium,
	),
}

MARKET_TABLE: Mapping[str, MarketCropData] = MappingProxyType(_MARKET_ROWS)

MARKET_ALIASES: Mapping[str, tuple[str, ...]] = MappingProxyType(
	{
		"TOMATO": ("tomato", "tomatoes"),
		"CAULIFLOWER": ("cauliflower",),
		"CABBAGE": ("cabbage",),
		"GREEN CHILLI": ("green chilli", "chilli", "green chili"),
		"BRINJAL": ("brinjal", "eggplant", "baingan"),
		"POTATO": ("potato", "potatoes", "aloo"),
		"BEANS -CLUSTER": ("cluster beans", "beans cluster", "guar"),
		"RIDGE GOURD (TURAI)": ("ridge gourd", "turai", "beerakaya"),
	}
)


def all_market_crops(table: Mapping[str, MarketCropData] = MARKET_TABLE) -> list[MarketCropData]:
	"""Every market crop, busiest (by arrivals) first."""
	return sorted(table.values(), key=lambda item: item.total_arrivals, reverse=True)


def high_demand_crops(table: Mapping[str, MarketCropData] = MARKET_TABLE) -> list[MarketCropData]:
	return [
		item
		for item in all_market_crops(table)
		if item.demand == DemandLevel.high or item.total_arrivals > HIGH_DEMAND_ARRIVALS
	]
