"""Process-wide service wiring, built once in the lifespan and injected per request."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request
from redis.asyncio import Redis

from cropwise.config import Settings, get_settings
from cropwise.services.cache_service import CacheService
from cropwise.services.insights_service import InsightsService
from cropwise.services.llm_client import LLMClient
from cropwise.services.loss_analysis_service import LossAnalysisService
from cropwise.services.natural_farming_service import NaturalFarmingService
from cropwise.services.next_crop_service import NextCropService
from cropwise.services.operational_details import OperationalDetailsService
from cropwise.services.pricing import PriceBook
from cropwise.services.profitability import ProfitabilityEngine


@dataclass(frozen=True)
class ServiceContext:
	settings: Settings
	cache: CacheService
	llm: LLMClient
	price_book: PriceBook
	engine: ProfitabilityEngine
	operational_details: OperationalDetailsService
	insights: InsightsService
	next_crop: NextCropService
	loss_analysis: LossAnalysisService
	natural_farming: NaturalFarmingService


def build_context(
	settings: Settings,
	redis_client: Redis | None = None,
	llm: LLMClient | None = None,
) -> ServiceContext:
	cache = CacheService(
		redis_client,
		enabled=settings.cache_enabled,
		default_ttl_hours=settings.cache_ttl_hours,
	)
	llm_client = llm or LLMClient(settings)
	price_book = PriceBook(strict=settings.crop_match_strict)
	return ServiceContext(
		settings=settings,
		cache=cache,
		llm=llm_client,
		price_book=price_book,
		engine=ProfitabilityEngine(price_book),
		operational_details=OperationalDetailsService(llm_client, cache, settings.llm_max_concurrency),
		insights=InsightsService(llm_client, cache),
		next_crop=NextCropService(llm_client, cache, price_book),
		loss_analysis=LossAnalysisService(llm_client),
		natural_farming=NaturalFarmingService(llm_client),
	)


def get_context(request: Request) -> ServiceContext:
	"""FastAPI dependency; builds a cache-less context when the lifespan did not run."""
	context = getattr(request.app.state, "context", None)
	if context is None:
		context = build_context(get_settings())
		request.app.state.context = context
	return context
