"""Central and Andhra Pradesh government schemes for farmers."""

from __future__ import annotations

from cropwise.schemas.insights import GovernmentScheme

_CENTRAL = "Central"
_STATE = "State (Andhra Pradesh)"

MICRO_IRRIGATION_METHODS = frozenset({"DRIP", "SPRINKLER"})

UNIVERSAL_SCHEMES: tuple[GovernmentScheme, ...] = (
	GovernmentScheme(
		name="PM-KISAN (Pradhan Mantri Kisan Samman Nidhi)",
		type=_CENTRAL,
		description="Financial support of ₹6000 per year in three equal installments to all landholding farmers",
		eligibility="All landholding farmers",
		benefit="₹6000/year",
		applicability="Universal",
	),
	GovernmentScheme(
		name="Kisan Credit Card (KCC)",
		type=_CENTRAL,
		description="Credit facility for farmers to meet agricultural expenses including crop cultivation",
		eligibility="All farmers with land ownership or tenancy",
		benefit="Credit up to ₹3 lakhs at subsidized interest rates",
		applicability="Universal",
	),
	GovernmentScheme(
		name="Rythu Bharosa",
		type=_STATE,
		description="Financial assistance to farmers to support farm inputs and reduce cultivation costs",
		eligibility="All farmers in Andhra Pradesh",
		benefit="₹13,500/year (₹7,500 for Kharif + ₹6,000 for Rabi)",
		applicability="Universal for AP farmers",
	),
	GovernmentScheme(
		name="YSR Free Crop Insurance",
		type=_STATE,
		description="Free crop insurance to farmers without any premium payment by farmers",
		eligibility="Small and marginal farmers in AP",
		benefit="100% premium paid by state government",
		applicability="Zero premium crop insurance",
	),
	GovernmentScheme(
		name="YSR Yantra Seva",
		type=_STATE,
		description="Subsidy on agricultural equipment and machinery",
		eligibility="Farmers purchasing agricultural equipment",
		benefit="50% subsidy on farm equipment (up to specified limits)",
		applicability="For mechanization support",
	),
	GovernmentScheme(
		name="YSR Sunna Vaddi Pathakam",
		type=_STATE,
		description="Interest subvention scheme for crop loans",
		eligibility="Farmers availing crop loans",
		benefit="Interest-free crop loans up to ₹1 lakh",
		applicability="For timely loan repayment",
	),
)

NFSM = GovernmentScheme(
	name="National Food Security Mission (NFSM)",
	type=_CENTRAL,
	description="Scheme to increase production of rice, wheat, pulses, coarse cereals and commercial crops",
	eligibility="Priority to BPL and small farmers",
	benefit="Subsidy on seeds, inputs, and farm equipment",
	applicability="Priority assistance for BPL families",
)

MKSP = GovernmentScheme(
	name="Mahila Kisan Sashaktikaran Pariyojana (MKSP)",
	type=_CENTRAL,
	description="Scheme to empower women farmers through sustainable agricultural practices",
	eligibility="Women farmers",
	benefit="Training, inputs, and financial support",
	applicability="Women farmer empowerment",
)

PMKSY = GovernmentScheme(
	name="Pradhan Mantri Krishi Sinchayee Yojana (PMKSY)",
	type=_CENTRAL,
	description="Scheme to enhance water use efficiency through micro-irrigation",
	eligibility="Farmers adopting micro-irrigation",
	benefit="Subsidy on drip/sprinkler irrigation systems",
	applicability="Micro-irrigation support",
)


def applicable_schemes(
	crop: str | None = None,
	*,
	bpl_family: bool = False,
	gender: str | None = None,
	irrigation_method: str | None = None,
) -> list[GovernmentScheme]:
	"""Schemes the farmer qualifies for, universal ones first."""
	insurance = GovernmentScheme(
		name="Pradhan Mantri Fasal Bima Yojana (PMFBY)",
		type=_CENTRAL,
		description="Crop insurance scheme providing financial support in case of crop failure due to natural calamities",
		eligibility="All farmers growing notified crops",
		benefit="Insurance coverage up to sum insured",
		applicability=f"Applicable for {crop}" if crop else "Applicable for notified crops",
	)
	schemes = [UNIVERSAL_SCHEMES[0], insurance, *UNIVERSAL_SCHEMES[1:]]

	if bpl_family:
		schemes.append(NFSM)
	if gender is not None and gender.strip().lower() == "female":
		schemes.append(MKSP)
	if irrigation_method is not None and irrigation_method.strip().upper() in MICRO_IRRIGATION_METHODS:
		schemes.append(PMKSY)
	return schemes
