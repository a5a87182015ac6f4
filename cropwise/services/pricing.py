"""Price lookups over the APMC market and MSP reference tables."""

from __future__ import annotations

from collections.abc import Mapping

from cropwise.data.market import MARKET_ALIASES, MARKET_TABLE
from cropwise.data.msp import MSP_ALIASES, MSP_TABLE
from cropwise.models.enums import PriceSourceTable
from cropwise.schemas.market import MarketCropData, MspEntry, PriceQuote
from cropwise.services.crop_resolver import CropNameResolver


class PriceBook:
	"""Read-only view over both price tables with crop-name resolution."""

	def __init__(
		self,
		market_table: Mapping[str, MarketCropData] = MARKET_TABLE,
		msp_table: Mapping[str, MspEntry] = MSP_TABLE,
		*,
		market_aliases: Mapping[str, tuple[str, ...]] = MARKET_ALIASES,
		msp_aliases: Mapping[str, tuple[str, ...]] = MSP_ALIASES,
		strict: bool = False,
	):
		self.market_table = market_table
		self.msp_table = msp_table
		self._market_resolver = CropNameResolver(market_aliases, strict=strict)
		self._msp_resolver = CropNameResolver(msp_aliases, strict=strict)

	def market_data(self, crop_name: str) -> MarketCropData | None:
		key = self._market_resolver.match_key(crop_name, self.market_table.keys())
		if key is None:
			return None
		return self.market_table[key]

	def msp_entry(self, crop_name: str) -> MspEntry | None:
		key = self._msp_resolver.match_key(crop_name, self.msp_table.keys())
		if key is None:
			return None
		return self.msp_table[key]

	def market_quote(self, crop_name: str) -> PriceQuote | None:
		data = self.market_data(crop_name)
		if data is None:
			return None
		return PriceQuote(
			price_per_quintal=data.avg_modal_price,
			source_label=f"APMC {data.region}",
			source_table=PriceSourceTable.market,
		)

	def msp_quote(self, crop_name: str) -> PriceQuote | None:
		entry = self.msp_entry(crop_name)
		if entry is None:
			return None
		latest = entry.latest()
		if latest is None:
			return None
		fiscal_year, price = latest
		return PriceQuote(
			price_per_quintal=price,
			source_label="MSP",
			source_table=PriceSourceTable.msp,
			fiscal_year=fiscal_year,
		)

	def resolve(self, crop_name: str, preferred: PriceSourceTable = PriceSourceTable.market) -> PriceQuote | None:
		"""Pick exactly one quote: market when preferred and present, else MSP."""
		if preferred == PriceSourceTable.market:
			quote = self.market_quote(crop_name)
			if quote is not None:
				return quote
		return self.msp_quote(crop_name)
