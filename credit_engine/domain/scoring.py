"""Risk scoring engine - weighted aggregation of factor points and bureau blending"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Sequence, Union

from credit_engine.domain.exceptions import ScoringInvariantError
from credit_engine.domain.factors import compute_factors
from credit_engine.domain.models import ApplicantProfile, FactorScore, LoanRequest, StrategyProfile
from credit_engine.domain.profiles import WeightProfile
from credit_engine.utils.numeric import clamp, round_half_up, to_decimal

MIN_SCORE = 0
MAX_SCORE = 1000
NEUTRAL_SCORE = 500

BUREAU_SCORE_MIN = 300
BUREAU_SCORE_MAX = 850

INTERNAL_BLEND_WEIGHT = Decimal("0.6")
BUREAU_BLEND_WEIGHT = Decimal("0.4")


class BlendMode(str, Enum):
    """How the 300-850 bureau score is combined with the 0-1000 internal score"""

    RESCALED = "rescaled"  # map bureau onto 0-1000 first
    LITERAL = "literal"  # flat 60/40 over mismatched scales (legacy numeric outputs)


@dataclass(frozen=True)
class AggregateScore:
    base_score: float
    internal_score: int
    multiplier: Decimal


def clamp_score(value: Union[float, Decimal]) -> int:
    """The one rounding + clamp step every published score goes through"""
    return int(clamp(round_half_up(value), MIN_SCORE, MAX_SCORE))


class ScoreAggregator:
    """
    Combine factor points into an internal 0-1000 score.

    Each factor's points are first centred on its own declared range, so a factor
    at the bottom of its range pulls -500 and one at the top pushes +500. Weights
    then decide each factor's share of that swing:

        base     = 500 + sum(weight * ((points - lo) / (hi - lo) - 0.5) * 1000)
        adjusted = base * strategy multiplier
        internal = clamp(round(adjusted), 0, 1000)

    With weights summing to 1.0 the base is already inside [0, 1000]; only the
    strategy multiplier can push it out, which the single clamp absorbs.
    """

    def __init__(self, profile: WeightProfile):
        self.profile = profile

    def factor_scores(self, applicant: ApplicantProfile, request: LoanRequest) -> List[FactorScore]:
        return compute_factors(applicant, request, self.profile)

    def aggregate(self, factors: Sequence[FactorScore], strategy: StrategyProfile) -> AggregateScore:
        """
        Raises:
            ScoringInvariantError: factor points outside their declared range,
                or a factor set that does not match the weight profile
        """
        names = [f.name for f in factors]
        if sorted(names) != sorted(self.profile.weights):
            raise ScoringInvariantError(
                f"Factor set {names} does not match weight profile '{self.profile.name}'"
            )

        base = float(NEUTRAL_SCORE)
        for factor in factors:
            if not factor.lower <= factor.points <= factor.upper:
                raise ScoringInvariantError(
                    f"Factor '{factor.name}' returned {factor.points}, outside [{factor.lower}, {factor.upper}]"
                )
            base += factor.contribution

        adjusted = base * float(strategy.score_multiplier)
        return AggregateScore(
            base_score=round(base, 2),
            internal_score=clamp_score(adjusted),
            multiplier=strategy.score_multiplier,
        )

    def score(self, applicant: ApplicantProfile, request: LoanRequest, strategy: StrategyProfile) -> AggregateScore:
        return self.aggregate(self.factor_scores(applicant, request), strategy)


def rescale_bureau_score(bureau_score: int) -> float:
    """Map a 300-850 bureau score onto the internal 0-1000 scale"""
    bounded = clamp(bureau_score, BUREAU_SCORE_MIN, BUREAU_SCORE_MAX)
    return (bounded - BUREAU_SCORE_MIN) * MAX_SCORE / (BUREAU_SCORE_MAX - BUREAU_SCORE_MIN)


def blend_with_bureau(internal_score: int, bureau_score: Optional[int], mode: BlendMode = BlendMode.RESCALED) -> int:
    """
    Blend the internal score with the bureau's historical score, 60/40.

    The bureau reports on 300-850, the engine on 0-1000. LITERAL mode keeps the
    legacy flat weighted sum over the two scales, which compresses the result:
    a perfect internal 1000 with a perfect bureau 850 only reaches 940, and a
    bureau floor of 300 still donates 120 points. RESCALED mode maps the bureau
    score onto 0-1000 first, so both inputs span the same range.

    No historical score (bureau has no file) leaves the internal score as is.
    """
    if bureau_score is None:
        return internal_score

    if mode is BlendMode.LITERAL:
        bureau_component = float(bureau_score)
    else:
        bureau_component = rescale_bureau_score(bureau_score)

    blended = internal_score * INTERNAL_BLEND_WEIGHT + to_decimal(bureau_component) * BUREAU_BLEND_WEIGHT
    return clamp_score(blended)
