"""Pydantic schemas for reference price data and resolved quotes."""

from __future__ import annotations

from pydantic import ConfigDict, Field

from cropwise.models.enums import (
	CropCategory,
	DemandLevel,
	MspTrend,
	PriceSourceTable,
	PriceVolatility,
)
from cropwise.schemas.common import CamelModel


class TradeRecord(CamelModel):
	model_config = ConfigDict(frozen=True)

	date: str
	min_price: float
	modal_price: float
	max_price: float
	arrivals: float
	traded: float
	unit: str = "Qui"


class MarketCropData(CamelModel):
	"""Recent APMC trade summary for one crop."""

	model_config = ConfigDict(frozen=True)

	crop: str
	region: str
	state: str
	recent_trades: tuple[TradeRecord, ...] = ()
	total_arrivals: float
	avg_modal_price: float
	price_volatility: PriceVolatility
	demand: DemandLevel

	@property
	def min_price(self) -> float | None:
		if not self.recent_trades:
			return None
		return min(trade.min_price for trade in self.recent_trades)

	@property
	def max_price(self) -> float | None:
		if not self.recent_trades:
			return None
		return max(trade.max_price for trade in self.recent_trades)


class MspEntry(CamelModel):
	"""Government minimum support price per fiscal year (₹/quintal)."""

	model_config = ConfigDict(frozen=True)

	crop: str
	category: CropCategory
	prices: dict[str, float]
	trend: MspTrend = MspTrend.rising

	def latest(self) -> tuple[str, float] | None:
		if not self.prices:
			return None
		year = max(self.prices)
		return year, self.prices[year]


class PriceQuote(CamelModel):
	price_per_quintal: float = Field(ge=0)
	source_label: str
	source_table: PriceSourceTable
	fiscal_year: str | None = None
