"""Scoring calibration: strategies, sector risk, factor ranges and weight profiles.

Everything here is read-only process configuration. The module-level checks run
once at import, so a bad weight set fails the process at startup instead of
producing a skewed score per call.
"""

from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Tuple

from credit_engine.domain.exceptions import ScoringInvariantError
from credit_engine.domain.models import Sector, StabilityScale, StrategyName, StrategyProfile

STRATEGIES: Mapping[StrategyName, StrategyProfile] = MappingProxyType(
    {
        # Traditional banking: strict requirements
        StrategyName.CONSERVATIVE: StrategyProfile(StrategyName.CONSERVATIVE, Decimal("0.85"), 700),
        StrategyName.BALANCED: StrategyProfile(StrategyName.BALANCED, Decimal("1.00"), 650),
        # Fintech / microcredit: higher risk tolerance
        StrategyName.AGGRESSIVE: StrategyProfile(StrategyName.AGGRESSIVE, Decimal("1.15"), 550),
    }
)

# 0.0 = riskiest, 1.0 = safest
SECTOR_RISK_FACTORS: Mapping[Sector, float] = MappingProxyType(
    {
        Sector.TECHNOLOGY: 0.95,
        Sector.HEALTHCARE: 0.90,
        Sector.EDUCATION: 0.85,
        Sector.FINANCE: 0.80,
        Sector.MANUFACTURING: 0.75,
        Sector.RETAIL: 0.70,
        Sector.CONSTRUCTION: 0.65,
        Sector.HOSPITALITY: 0.60,
        Sector.AGRICULTURE: 0.55,
        Sector.MINING: 0.50,
        Sector.OTHER: 0.70,
    }
)

FACTOR_RANGES: Mapping[str, Tuple[float, float]] = MappingProxyType(
    {
        "income": (0.0, 300.0),
        "sector": (0.0, 250.0),
        "dti": (0.0, 250.0),
        "stability_years": (50.0, 200.0),
        "stability_months": (-20.0, 120.0),
        "affordability": (-100.0, 150.0),
        "amount_ratio": (-50.0, 100.0),
        "age": (-30.0, 80.0),
    }
)


@dataclass(frozen=True)
class WeightProfile:
    """Named factor weight set; weights must sum to exactly 1"""

    name: str
    weights: Mapping[str, Decimal]
    stability_scale: StabilityScale

    def range_for(self, factor: str) -> Tuple[float, float]:
        if factor == "stability":
            return FACTOR_RANGES[f"stability_{self.stability_scale.value.lower()}"]
        return FACTOR_RANGES[factor]


CLASSIC = WeightProfile(
    name="classic",
    weights=MappingProxyType(
        {
            "income": Decimal("0.30"),
            "sector": Decimal("0.25"),
            "dti": Decimal("0.25"),
            "stability": Decimal("0.20"),
        }
    ),
    stability_scale=StabilityScale.YEARS,
)

EXTENDED = WeightProfile(
    name="extended",
    weights=MappingProxyType(
        {
            "income": Decimal("0.15"),
            "sector": Decimal("0.10"),
            "dti": Decimal("0.25"),
            "stability": Decimal("0.15"),
            "affordability": Decimal("0.15"),
            "amount_ratio": Decimal("0.10"),
            "age": Decimal("0.10"),
        }
    ),
    stability_scale=StabilityScale.MONTHS,
)

WEIGHT_PROFILES: Mapping[str, WeightProfile] = MappingProxyType({p.name: p for p in (CLASSIC, EXTENDED)})


def validate_weight_profile(profile: WeightProfile) -> None:
    """Raise ScoringInvariantError unless weights sum to 1 and every factor range is non-empty"""
    if sum(profile.weights.values()) != Decimal("1"):
        raise ScoringInvariantError(f"{profile.name}: weights must sum to 1.0")
    for factor in profile.weights:
        lower, upper = profile.range_for(factor)
        if lower >= upper:
            raise ScoringInvariantError(f"{profile.name}: empty range for {factor}")


def validate_sector_table(table: Mapping[Sector, float]) -> None:
    if set(table) != set(Sector):
        raise ScoringInvariantError("every sector needs a risk factor")
    if not all(0.0 <= f <= 1.0 for f in table.values()):
        raise ScoringInvariantError("sector risk factors must lie in [0, 1]")


for _profile in WEIGHT_PROFILES.values():
    validate_weight_profile(_profile)
validate_sector_table(SECTOR_RISK_FACTORS)


def get_weight_profile(name: str) -> WeightProfile:
    try:
        return WEIGHT_PROFILES[name.lower()]
    except KeyError:
        raise ValueError(f"Unknown weight profile '{name}', expected one of {sorted(WEIGHT_PROFILES)}") from None


def get_strategy(name: StrategyName | str) -> StrategyProfile:
    if not isinstance(name, StrategyName):
        name = StrategyName(name.upper())
    return STRATEGIES[name]
