"""
Loan top-up domain: reference data, accessor primitives and business rules.

The reference data is ordinary data. The rule language only sees it through
the accessor primitives registered by ``register_lending_primitives``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from .logic.environment import Environment
from .logic.expressions import Application, If, Lambda, Variable, call
from .logic.parser import parse_condition
from .logic.primitives import PrimitiveRegistry, default_registry, prim_get_property
from .logic.rules import BusinessRule
from .models import RuleMetadata


@dataclass(frozen=True)
class Region:
    code: str
    name: str
    currency: str
    currency_symbol: str
    regulatory_body: str
    cooling_off_period: int
    language: str
    date_format: str = "DD/MM/YYYY"


@dataclass(frozen=True)
class CustomerSegment:
    """Per-segment pricing and limits, keyed by region code where regional."""

    code: str
    description: str
    multiplier: float
    interest_rates: Dict[str, float]
    min_incomes: Dict[str, int]
    min_account_age: int
    benefits: Dict[str, List[str]] = field(default_factory=dict)
    min_topup_amounts: Dict[str, int] = field(default_factory=dict)
    max_topup_amounts: Dict[str, int] = field(default_factory=dict)


REGIONS: Dict[str, Region] = {
    "UK": Region("UK", "United Kingdom", "GBP", "£", "FCA", 14, "en-GB"),
    "HK": Region("HK", "Hong Kong", "HKD", "HK$", "HKMA", 10, "zh-HK"),
    "SG": Region("SG", "Singapore", "SGD", "S$", "MAS", 7, "en-SG"),
}

# Region-wide top-up limits, used when a segment has no limit for the region
REGION_MIN_AMOUNTS = {"UK": 1000, "HK": 5000, "SG": 1500}
REGION_MAX_AMOUNTS = {"UK": 25000, "HK": 150000, "SG": 30000}
DEFAULT_MIN_AMOUNT = 500
DEFAULT_MAX_AMOUNT = 10000
DEFAULT_INTEREST_RATE = 7.5
DEFAULT_MIN_ACCOUNT_AGE = 12
MINIMUM_CUSTOMER_AGE = 21

SEGMENTS: Dict[str, CustomerSegment] = {
    "Basic": CustomerSegment(
        code="Basic",
        description="Standard retail banking customers",
        multiplier=1.0,
        interest_rates={"UK": 6.5, "HK": 6.9, "SG": 6.7},
        min_incomes={"UK": 15000, "HK": 120000, "SG": 24000},
        min_account_age=6,
        benefits={region: ["Standard processing"] for region in REGIONS},
        min_topup_amounts={"UK": 1000, "HK": 10000},
        max_topup_amounts={"UK": 25000, "HK": 200000},
    ),
    "Wealth": CustomerSegment(
        code="Wealth",
        description="Premier or priority banking customers with higher value accounts",
        multiplier=1.5,
        interest_rates={"UK": 5.4, "HK": 5.8, "SG": 5.5},
        min_incomes={"UK": 75000, "HK": 600000, "SG": 120000},
        min_account_age=3,
        benefits={
            "UK": ["Preferential rates", "Dedicated relationship manager", "Fee waivers"],
            "HK": ["Priority processing", "Jade status points", "Fee waivers"],
            "SG": ["Preferential rates", "Dedicated relationship manager", "Fee waivers"],
        },
        min_topup_amounts={"UK": 5000, "HK": 50000},
        max_topup_amounts={"UK": 100000, "HK": 800000},
    ),
    "Private": CustomerSegment(
        code="Private",
        description="Private banking customers",
        multiplier=2.0,
        interest_rates={"UK": 4.9, "HK": 5.2, "SG": 5.0},
        min_incomes={"UK": 150000, "HK": 1200000, "SG": 240000},
        min_account_age=1,
        benefits={
            region: ["Bespoke rates", "Dedicated private banker", "All fees waived", "Expedited processing"]
            for region in REGIONS
        },
    ),
}


def get_region(code: str) -> Optional[Region]:
    return REGIONS.get(code)


def get_region_code(region: Union[Region, Mapping[str, Any], str]) -> str:
    if isinstance(region, Region):
        return region.code
    if isinstance(region, Mapping):
        return region["code"]
    return region


def get_segment(code: str) -> Optional[CustomerSegment]:
    return SEGMENTS.get(code)


def get_customer_segment(customer: Any) -> Optional[CustomerSegment]:
    return SEGMENTS.get(prim_get_property(customer, "segment"))


def _segment_code(segment: Union[CustomerSegment, str, None]) -> Optional[str]:
    return segment.code if isinstance(segment, CustomerSegment) else segment


def get_segment_min_topup(segment: Union[CustomerSegment, str], region_code: str) -> int:
    seg = get_segment(_segment_code(segment))
    if seg and region_code in seg.min_topup_amounts:
        return seg.min_topup_amounts[region_code]
    return REGION_MIN_AMOUNTS.get(region_code, DEFAULT_MIN_AMOUNT)


def get_segment_max_topup(segment: Union[CustomerSegment, str], region_code: str) -> int:
    seg = get_segment(_segment_code(segment))
    if seg and region_code in seg.max_topup_amounts:
        return seg.max_topup_amounts[region_code]
    return REGION_MAX_AMOUNTS.get(region_code, DEFAULT_MAX_AMOUNT)


def get_segment_interest_rate(segment: Union[CustomerSegment, str], region_code: str) -> float:
    seg = get_segment(_segment_code(segment))
    if seg is None:
        return DEFAULT_INTEREST_RATE
    return seg.interest_rates.get(region_code, DEFAULT_INTEREST_RATE)


def get_segment_benefits(segment: Union[CustomerSegment, str], region_code: str) -> List[str]:
    seg = get_segment(_segment_code(segment))
    if seg is None:
        return []
    return list(seg.benefits.get(region_code, []))


def has_segment_benefits(segment: Union[CustomerSegment, str], region_code: str) -> bool:
    return bool(get_segment_benefits(segment, region_code))


def apply_amount_rule(region_code: str, segment_code: str, base_amount: float) -> float:
    """Scale the base amount by the segment multiplier and clamp it to the region's limits."""
    seg = get_segment(segment_code)
    multiplier = seg.multiplier if seg else 1.0
    max_amount = REGION_MAX_AMOUNTS.get(region_code, DEFAULT_MAX_AMOUNT)
    min_amount = REGION_MIN_AMOUNTS.get(region_code, DEFAULT_MIN_AMOUNT)
    calculated = base_amount * multiplier
    if calculated > max_amount:
        return max_amount
    if calculated < min_amount:
        return min_amount
    return calculated


def apply_eligibility_rule(customer: Mapping[str, Any], region_code: str) -> Dict[str, Any]:
    """
    Check whether a customer may top up a loan.

    Checks run in order (age, income, account age) and the first failure is
    reported as the reason.
    """
    segment_code = customer.get("segment")
    seg = get_segment(segment_code)
    min_income = seg.min_incomes.get(region_code, 0) if seg else 0
    min_account_age = seg.min_account_age if seg else DEFAULT_MIN_ACCOUNT_AGE

    if customer.get("age", 0) < MINIMUM_CUSTOMER_AGE:
        return {"eligible": False, "reason": f"Customer must be at least {MINIMUM_CUSTOMER_AGE} years old"}
    if customer.get("annualIncome", 0) < min_income:
        return {"eligible": False, "reason": "Customer income below minimum requirement"}
    if customer.get("accountAgeMonths", 0) < min_account_age:
        return {"eligible": False, "reason": "Account not established long enough"}
    return {"eligible": True, "benefits": get_segment_benefits(segment_code, region_code)}


def calculate_interest_rate(segment_code: str, region_code: str, amount: float) -> float:
    """Base segment rate, discounted for large amounts and loaded for small ones."""
    base_rate = get_segment_interest_rate(segment_code, region_code)
    if amount > 50000:
        return base_rate - 0.25
    if amount < 5000:
        return base_rate + 0.5
    return base_rate


LENDING_PRIMITIVES = {
    "get-region": get_region,
    "get-region-code": get_region_code,
    "get-customer-segment": get_customer_segment,
    "get-segment-min-topup": get_segment_min_topup,
    "get-segment-max-topup": get_segment_max_topup,
    "get-segment-interest-rate": get_segment_interest_rate,
    "get-segment-benefits": get_segment_benefits,
    "has-segment-benefits": has_segment_benefits,
    "apply-amount-rule": apply_amount_rule,
    "apply-eligibility-rule": apply_eligibility_rule,
    "calculate-interest-rate": calculate_interest_rate,
}


def register_lending_primitives(registry: PrimitiveRegistry) -> PrimitiveRegistry:
    """Add the lending accessors to a registry and return it."""
    registry.update(LENDING_PRIMITIVES)
    return registry


def lending_environment(registry: Optional[PrimitiveRegistry] = None) -> Environment:
    """
    Root environment with the core and lending primitives plus region data.

    Regions are bound under their codes (``UK``, ``HK``, ``SG``).
    """
    registry = register_lending_primitives(registry.copy() if registry is not None else default_registry())
    return registry.bootstrap(bindings=REGIONS)


# Rules are written over the free names customer, region and amount, which the
# caller binds (see apply_rule_with).

_SEGMENT = call("get-customer-segment", Variable("customer"))
_REGION_CODE = call("get-region-code", Variable("region"))

TOPUP_AMOUNT_LIMITS_RULE = BusinessRule(
    id="BR001",
    condition=parse_condition("has-property(customer, 'segment') AND amount > 0"),
    # ((lambda (lo hi) (if (< amount lo) lo (if (> amount hi) hi amount))) min max)
    action=Application(
        Lambda(
            ["lo", "hi"],
            If(
                call("<", Variable("amount"), Variable("lo")),
                Variable("lo"),
                If(
                    call(">", Variable("amount"), Variable("hi")),
                    Variable("hi"),
                    Variable("amount"),
                ),
            ),
        ),
        [
            call("get-segment-min-topup", _SEGMENT, _REGION_CODE),
            call("get-segment-max-topup", _SEGMENT, _REGION_CODE),
        ],
    ),
    metadata=RuleMetadata(
        description=(
            "Top-up amount must be between the minimum and maximum pre-approved "
            "limits for the customer's segment and region"
        ),
        rationale=(
            "Ensures the additional borrowing is within affordability parameters "
            "appropriate for customer segment and local market conditions"
        ),
        error_key="amount_limit_error",
    ),
    priority=30,
)

INTEREST_RATE_RULE = BusinessRule(
    id="BR002",
    condition=parse_condition("has-property(customer, 'segment')"),
    action=call("get-segment-interest-rate", _SEGMENT, _REGION_CODE),
    metadata=RuleMetadata(
        description="Interest rates must be determined based on customer segment and region",
        rationale="Different customer segments qualify for different rates in each region",
        error_key="interest_rate_calculation",
    ),
    priority=20,
)

SEGMENT_BENEFITS_RULE = BusinessRule(
    id="BR005",
    condition=call("has-segment-benefits", _SEGMENT, _REGION_CODE),
    action=call("get-segment-benefits", _SEGMENT, _REGION_CODE),
    metadata=RuleMetadata(
        description="Customer benefits must be determined based on customer segment and region",
        rationale="Different customer segments qualify for different benefits in each region",
        error_key="segment_benefits",
    ),
    priority=10,
)

LENDING_RULES = [TOPUP_AMOUNT_LIMITS_RULE, INTEREST_RATE_RULE, SEGMENT_BENEFITS_RULE]
