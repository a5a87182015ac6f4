"""Domain enum types shared by reference data, services and wire schemas.

Values are the exact strings exchanged with API clients and with the LLM,
so renaming a member value is a breaking wire change.
"""

from enum import StrEnum

# ── Market & pricing enums ──────────────────────────────────────────────────


class DemandLevel(StrEnum):
    """Market demand tier derived from APMC arrivals and prices."""

    high = "HIGH"
    medium_high = "MEDIUM-HIGH"
    medium = "MEDIUM"
    low_medium = "LOW-MEDIUM"


class PriceVolatility(StrEnum):
    """Spread of recent modal prices at the market."""

    low = "LOW"
    medium = "MEDIUM"
    high = "HIGH"


class PriceSourceTable(StrEnum):
    """Reference table a price quote was resolved from."""

    msp = "MSP"
    market = "MARKET"


class MspTrend(StrEnum):
    rising = "rising"
    stable = "stable"


# ── Farmer profile enums ────────────────────────────────────────────────────


class CropStatus(StrEnum):
    """Cultivation lifecycle status reported in the farmer profile."""

    completed = "COMPLETED"
    in_progress = "IN_PROGRESS"


class RecommendationBasis(StrEnum):
    """Whether a recommendation was computed from farmer data or estimated."""

    farmer_data = "farmer_data"
    estimate = "estimate"


# ── Operational details enums ───────────────────────────────────────────────


class CropCategory(StrEnum):
    """Coarse crop grouping used for static operational templates."""

    grain = "grain"
    pulse = "pulse"
    cash_crop = "cash-crop"
    oilseed = "oilseed"
    vegetable = "vegetable"


class RiskLevel(StrEnum):
    low = "Low"
    medium = "Medium"
    high = "High"


class SoilSuitabilityRating(StrEnum):
    excellent = "Excellent"
    good = "Good"
    fair = "Fair"
    poor = "Poor"


class DetailsSource(StrEnum):
    """Origin of an operational-details payload."""

    llm = "llm"
    fallback = "fallback"
