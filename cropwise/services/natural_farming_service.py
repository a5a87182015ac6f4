"""Natural farming (ZBNF) guidance: prompt, LLM call and markdown section parsing."""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime

from cropwise.schemas.analysis import (
	FarmingPractice,
	NaturalFarmingData,
	NaturalFarmingRequest,
	ParsedNaturalFarming,
	ResponseLocation,
)
from cropwise.services.llm_client import LLMClient, LLMNotConfiguredError, LLMServiceError, ModelTier

DEFAULT_LAND_AREA = 1
DEFAULT_CROP = "mixed crops"
DEFAULT_SOIL = "red soil"
DEFAULT_WATER_SOURCE = "bore well"
MIN_BENEFIT_LENGTH = 10
MIN_PRACTICE_LENGTH = 20
GENERAL_CATEGORY = "General Practice"
FALLBACK_CATEGORY = "Natural Farming Practice"

SYSTEM_PROMPT = (
	"You are an expert in natural farming and sustainable agriculture practices in India, with deep knowledge "
	"of Andhra Pradesh agricultural conditions, particularly the Kuppam region. Provide practical, "
	"locally-relevant recommendations that farmers can implement immediately."
)

REGION_CONTEXT = """**Context for Kuppam Region:**
Kuppam is located in the southeastern part of Andhra Pradesh, bordering Karnataka and Tamil Nadu. The region typically has:
- Red soil and black soil types
- Semi-arid climate with erratic rainfall
- Average annual rainfall: 800-900mm
- Temperature: 20°C to 40°C
- Common crops: Groundnut, Ragi, Tomato, Mango, Flowers
- Water scarcity issues in summer months"""

OUTPUT_INSTRUCTIONS = """Please provide detailed recommendations in the following EXACT format:

## BENEFITS

List 5-7 key benefits of transitioning to natural farming for this specific farmer. Each benefit should:
- Be specific and quantifiable where possible
- Address soil health, cost reduction, sustainability, and market advantages
- Include expected outcomes (e.g., "Reduce input costs by 40-60%")
- Be relevant to Kuppam region conditions

Format each benefit as a bullet point starting with "- "

## RECOMMENDED PRACTICES

Provide 8-12 specific natural farming practices organized into clear categories. For each practice:
- Give the practice name and category (e.g., Soil Health, Pest Management, Water Conservation)
- Explain HOW to implement it step-by-step
- Mention WHEN to apply it (season/timing)
- Include local materials and resources available in Kuppam
- Specify expected results and timeline

Categories to cover:
1. Soil Health & Fertility Management
2. Natural Pest & Disease Management
3. Water Conservation & Management
4. Seed Treatment & Crop Protection
5. Livestock Integration (if applicable)
6. Composting & Organic Inputs

Format each practice as:
**[Category] - [Practice Name]:**
[Detailed explanation with steps, timing, and expected outcomes]

Focus on Zero-Budget Natural Farming (ZBNF) principles popular in Andhra Pradesh, locally available
materials (neem, cow dung, cow urine, jaggery) and cost-effective solutions for small and marginal farmers.

Be practical, specific, and actionable. Avoid generic advice."""

_SECTION_SPLIT = re.compile(r"##\s+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n+")
_BULLET = re.compile(r"^(?:[-•*]|\d+\.)\s*")
_PRACTICE_SPLIT = re.compile(r"\n(?=\*\*|[A-Z][^\n]*:)")

logger = logging.getLogger("cropwise.natural_farming")


def _yes_no(value: bool) -> str:
	return "Yes" if value else "No"


def build_prompt(request: NaturalFarmingRequest) -> str:
	location = request.location
	place = f"{location.village}, {location.mandal}" if location.village else location.mandal
	practices = request.current_practices
	lines = [
		"Provide natural farming recommendations for a farmer in the Kuppam region of Andhra Pradesh, India.",
		"",
		"**Farmer's Current Situation:**",
		f"- Location: {place}, Andhra Pradesh",
		f"- Land Area: {request.land_area or DEFAULT_LAND_AREA} hectares",
		f"- Current Crop: {request.current_crop or DEFAULT_CROP}",
		f"- Soil Type: {request.soil_type or DEFAULT_SOIL}",
		f"- Water Source: {request.water_source or DEFAULT_WATER_SOURCE}",
		"",
		"**Current Farming Practices:**",
	]
	if practices is not None:
		if practices.uses_chemical_fertilizers is not None:
			lines.append(f"- Uses Chemical Fertilizers: {_yes_no(practices.uses_chemical_fertilizers)}")
		if practices.uses_pesticides is not None:
			lines.append(f"- Uses Chemical Pesticides: {_yes_no(practices.uses_pesticides)}")
		if practices.irrigation_method:
			lines.append(f"- Irrigation Method: {practices.irrigation_method}")
		if practices.has_livestock is not None:
			lines.append(f"- Has Livestock: {_yes_no(practices.has_livestock)}")
	if request.challenges:
		lines += ["", "**Current Challenges:**", *(f"- {challenge}" for challenge in request.challenges)]
	lines += ["", REGION_CONTEXT, "", OUTPUT_INSTRUCTIONS]
	return "\n".join(lines)


def _is_bullet(line: str) -> bool:
	stripped = line.strip()
	return stripped.startswith(("-", "•")) or bool(re.match(r"^\d+\.", stripped))


def _bullets(lines: list[str]) -> list[str]:
	items = [_BULLET.sub("", line.strip()).strip() for line in lines if _is_bullet(line)]
	return [item for item in items if len(item) > MIN_BENEFIT_LENGTH]


def _practice_heading(line: str) -> FarmingPractice:
	text = line.replace("**", "").replace(":", "").strip()
	parts = [part.strip() for part in text.split(" - ")]
	if len(parts) > 1:
		return FarmingPractice(category=parts[0], name=" - ".join(parts[1:]), description="")
	return FarmingPractice(category=GENERAL_CATEGORY, name=parts[0], description="")


def _practices(lines: list[str]) -> list[FarmingPractice]:
	practices: list[FarmingPractice] = []
	current: FarmingPractice | None = None
	for line in lines:
		stripped = line.strip()
		if stripped.startswith("**") or ":" in stripped:
			if current is not None and current.description:
				practices.append(current)
			current = _practice_heading(stripped)
		elif current is not None and stripped:
			current.description = f"{current.description} {stripped}".strip()
	if current is not None and current.description:
		practices.append(current)
	return practices


def _fallback_parse(text: str, result: ParsedNaturalFarming) -> None:
	in_benefits = False
	in_practices = False
	for paragraph in (part for part in _PARAGRAPH_SPLIT.split(text) if part.strip()):
		upper = paragraph.upper()
		if "BENEFIT" in upper:
			in_benefits, in_practices = True, False
			continue
		if "PRACTICE" in upper or "RECOMMENDED" in upper:
			in_benefits, in_practices = False, True
			continue
		if in_benefits and not result.benefits:
			result.benefits = _bullets(paragraph.split("\n"))
		elif in_practices and not result.practices:
			result.practices = [
				FarmingPractice(
					category=FALLBACK_CATEGORY,
					name=chunk.split(":")[0].replace("**", "").strip(),
					description=":".join(chunk.split(":")[1:]).strip() or chunk.strip(),
				)
				for chunk in _PRACTICE_SPLIT.split(paragraph)
				if len(chunk.strip()) > MIN_PRACTICE_LENGTH
			]


def parse_natural_farming_response(text: str) -> ParsedNaturalFarming:
	"""Split ``## BENEFITS`` / ``## RECOMMENDED PRACTICES`` sections into structured lists.

	Falls back to a paragraph scan when either list comes out empty.
	"""
	result = ParsedNaturalFarming()
	for section in _SECTION_SPLIT.split(text):
		lines = section.strip().split("\n")
		title = lines[0].upper()
		body = lines[1:]
		if "BENEFIT" in title:
			result.benefits = _bullets(body)
		elif "PRACTICE" in title or "RECOMMENDED" in title:
			result.practices = _practices(body)

	if not result.benefits or not result.practices:
		_fallback_parse(text, result)
	return result


class NaturalFarmingService:
	def __init__(self, llm: LLMClient):
		self.llm = llm

	async def recommend(self, request: NaturalFarmingRequest) -> NaturalFarmingData:
		raw_analysis: str | None = None
		message: str | None = None
		parsed = ParsedNaturalFarming()
		try:
			raw_analysis = await self.llm.complete(
				system=SYSTEM_PROMPT,
				user=build_prompt(request),
				temperature=0.7,
				max_tokens=2500,
				tier=ModelTier.analysis,
			)
		except LLMNotConfiguredError as exc:
			message = str(exc)
		except LLMServiceError as exc:
			logger.warning("natural_farming_llm_failed", extra={"mandal": request.location.mandal, "error": str(exc)})
			message = "Failed to generate natural farming recommendations"
		else:
			parsed = parse_natural_farming_response(raw_analysis)

		return NaturalFarmingData(
			location=ResponseLocation(village=request.location.village, mandal=request.location.mandal),
			land_area=request.land_area,
			current_crop=request.current_crop,
			benefits=parsed.benefits,
			recommended_practices=parsed.practices,
			raw_analysis=raw_analysis,
			ai_available=raw_analysis is not None,
			message=message,
			timestamp=datetime.now(UTC).isoformat(),
		)
