"""Decision orchestrator - bureau lookup, scoring, gates, classification, persistence, caching"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional

from credit_engine.config import settings as default_settings
from credit_engine.domain.classification import (
    RiskClassifier,
    build_rationale,
    build_recommendations,
    build_warnings,
)
from credit_engine.domain.exceptions import BureauRecordNotFoundError, BureauUnavailableError, ValidationError
from credit_engine.domain.factors import debt_to_income_percent, validate_inputs
from credit_engine.domain.gates import CriticalGateValidator, GatePolicy
from credit_engine.domain.models import (
    ApplicantProfile,
    Approved,
    BureauSnapshot,
    EvaluationOutcome,
    EvaluationRecord,
    EvaluationStatus,
    Failed,
    FailureKind,
    LoanRequest,
    Rejected,
    StrategyName,
    StrategyProfile,
)
from credit_engine.domain.profiles import get_strategy, get_weight_profile
from credit_engine.domain.scoring import BlendMode, ScoreAggregator, blend_with_bureau
from credit_engine.infrastructure.cache import LatestResultCache
from credit_engine.infrastructure.clients.bureau import BureauGateway
from credit_engine.infrastructure.observability.logging import log_evaluation
from credit_engine.infrastructure.observability.metrics import record_evaluation, record_gate_triggers

ZERO_AMOUNT = Decimal("0.00")


class DecisionOrchestrator:
    """
    Runs one credit evaluation end to end.

    Flow:
    1. Validate inputs (no bureau call, no record on failure)
    2. Fetch the bureau snapshot, the only await point
    3. Compute factors, aggregate, blend with the bureau score
    4. Run critical gates, then the strategy threshold
    5. Classify and build rationale and recommendations
    6. Persist the record, then cache it as the applicant's latest

    Business rejection is a normal Rejected outcome. Infrastructure and
    programming failures come back as Failed; once bureau data is in hand
    they also leave an ERROR record for audit.
    """

    def __init__(
        self,
        bureau: BureauGateway,
        store,
        cache: LatestResultCache,
        aggregator: ScoreAggregator | None = None,
        validator: CriticalGateValidator | None = None,
        classifier: RiskClassifier | None = None,
        default_strategy: StrategyName = StrategyName.BALANCED,
        blend_mode: BlendMode = BlendMode.RESCALED,
        timeout_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.bureau = bureau
        self.store = store
        self.cache = cache
        self.aggregator = aggregator or ScoreAggregator(get_weight_profile("extended"))
        self.validator = validator or CriticalGateValidator()
        self.classifier = classifier or RiskClassifier()
        self.default_strategy = default_strategy
        self.blend_mode = blend_mode
        self.timeout_seconds = timeout_seconds
        self.clock = clock
        self.now = now

    async def evaluate(
        self, applicant: ApplicantProfile, request: LoanRequest, request_id: str = "unknown"
    ) -> EvaluationOutcome:
        start_time = time.perf_counter()
        outcome = await self._evaluate(applicant, request, request_id)

        record = outcome.record
        if isinstance(outcome, Failed):
            label = outcome.kind.value.lower()
        else:
            label = record.status.value.lower()
        tier = record.risk_tier.value if record and record.risk_tier else None
        record_evaluation(label, tier=tier)
        log_evaluation(
            request_id,
            applicant.document_id,
            label,
            record.final_score if record else None,
            tier,
            (time.perf_counter() - start_time) * 1000,
        )
        return outcome

    async def _evaluate(self, applicant: ApplicantProfile, request: LoanRequest, request_id: str) -> EvaluationOutcome:
        try:
            validate_inputs(applicant, request)
            strategy = get_strategy(request.strategy or self.default_strategy)
        except ValidationError as e:
            logging.warning(f"Invalid evaluation input: {e}", extra={"request_id": request_id})
            return Failed(FailureKind.VALIDATION, str(e))

        started_at = self.clock()

        # 1. Bureau lookup; fail fast, never score without bureau context
        try:
            bureau = await self._lookup(applicant.document_id)
        except (BureauUnavailableError, BureauRecordNotFoundError) as e:
            logging.error(f"Bureau error: {e}", extra={"request_id": request_id})
            return Failed(FailureKind.SERVICE_UNAVAILABLE, f"Credit bureau unavailable: {e}")
        except asyncio.TimeoutError:
            logging.error("Bureau lookup timed out", extra={"request_id": request_id})
            return Failed(
                FailureKind.SERVICE_UNAVAILABLE,
                f"Credit bureau did not answer within {self.timeout_seconds}s",
            )
        except Exception as e:
            logging.exception(f"Unexpected bureau failure: {e}", extra={"request_id": request_id})
            return Failed(FailureKind.SERVICE_UNAVAILABLE, f"Credit bureau unavailable: {e}")

        # 2-6. Score, gate, classify
        try:
            record = self._decide(applicant, request, strategy, bureau)
        except Exception as e:
            logging.exception(f"Evaluation failed: {e}", extra={"request_id": request_id})
            message = f"Evaluation failed: {e}"
            error_record = self._error_record(applicant, request, strategy, bureau, message)
            return Failed(FailureKind.INTERNAL_ERROR, message, self._persist_error(error_record, request_id))

        if self.timeout_seconds is not None and self.clock() - started_at > self.timeout_seconds:
            message = f"Evaluation exceeded its {self.timeout_seconds}s deadline"
            logging.error(message, extra={"request_id": request_id})
            error_record = self._error_record(applicant, request, strategy, bureau, message)
            return Failed(FailureKind.SERVICE_UNAVAILABLE, message, self._persist_error(error_record, request_id))

        # 7. Persist
        try:
            self.store.save(record)
        except Exception as e:
            logging.error(f"Failed to persist evaluation: {e}", extra={"request_id": request_id})
            return Failed(FailureKind.INTERNAL_ERROR, "Evaluation could not be recorded")

        # 8. Cache, keyed by completion time
        self.cache.put(record, completed_at=self.clock())

        return Approved(record) if record.approved else Rejected(record)

    async def _lookup(self, document_id: str) -> BureauSnapshot:
        if self.timeout_seconds is None:
            return await self.bureau.lookup(document_id)
        return await asyncio.wait_for(self.bureau.lookup(document_id), timeout=self.timeout_seconds)

    def _decide(
        self, applicant: ApplicantProfile, request: LoanRequest, strategy: StrategyProfile, bureau: BureauSnapshot
    ) -> EvaluationRecord:
        factors = self.aggregator.factor_scores(applicant, request)
        aggregate = self.aggregator.aggregate(factors, strategy)
        final_score = blend_with_bureau(aggregate.internal_score, bureau.historical_score, self.blend_mode)

        # Gates come before the threshold; a gate rejection is final
        gates = self.validator.validate(applicant, request, bureau)
        record_gate_triggers(v.code for v in gates.violations)
        if gates.rejected:
            approved = False
            reasons = gates.reasons
        else:
            approved = final_score >= strategy.minimum_approval_score
            reasons = [] if approved else [f"score {final_score} below minimum {strategy.minimum_approval_score}"]

        terms = self.classifier.evaluate(final_score, applicant.annual_income)
        warnings = build_warnings(
            debt_to_income_percent(applicant.monthly_debt, applicant.monthly_income),
            bureau,
            request.term_months,
            terms.max_term_months,
        )

        return EvaluationRecord(
            document_id=applicant.document_id,
            full_name=applicant.full_name,
            status=EvaluationStatus.APPROVED if approved else EvaluationStatus.REJECTED,
            approved=approved,
            internal_score=aggregate.internal_score,
            final_score=final_score,
            bureau_score=bureau.historical_score,
            risk_tier=terms.tier,
            severity=gates.severity,
            rationale=build_rationale(
                approved,
                final_score,
                terms.tier,
                strategy.minimum_approval_score,
                gate_reasons=gates.reasons,
                warnings=warnings,
            ),
            reasons=tuple(reasons),
            recommendations=build_recommendations(terms.tier, gates.remediations),
            suggested_rate=terms.suggested_rate,
            max_recommended_amount=terms.max_amount if approved else ZERO_AMOUNT,
            max_term_months=terms.max_term_months if approved else 0,
            requested_amount=request.amount,
            term_months=request.term_months,
            strategy=strategy.name,
            weight_profile=self.aggregator.profile.name,
            factors=tuple(factors),
            evaluated_at=self.now(),
        )

    def _error_record(
        self,
        applicant: ApplicantProfile,
        request: LoanRequest,
        strategy: StrategyProfile,
        bureau: BureauSnapshot,
        message: str,
    ) -> EvaluationRecord:
        return EvaluationRecord(
            document_id=applicant.document_id,
            full_name=applicant.full_name,
            status=EvaluationStatus.ERROR,
            approved=False,
            internal_score=None,
            final_score=None,
            bureau_score=bureau.historical_score,
            risk_tier=None,
            severity=None,
            rationale=f"ERROR. {message}",
            reasons=(message,),
            recommendations=(),
            suggested_rate=None,
            max_recommended_amount=ZERO_AMOUNT,
            max_term_months=0,
            requested_amount=request.amount,
            term_months=request.term_months,
            strategy=strategy.name,
            weight_profile=self.aggregator.profile.name,
            factors=(),
            evaluated_at=self.now(),
        )

    def _persist_error(self, record: EvaluationRecord, request_id: str) -> EvaluationRecord | None:
        """Best-effort audit write; the error record is never cached"""
        try:
            self.store.save(record)
        except Exception as e:
            logging.error(f"Failed to persist error record: {e}", extra={"request_id": request_id})
            return None
        return record

    def latest(self, document_id: str) -> Optional[EvaluationRecord]:
        """Latest decided evaluation: cache first, store on a miss"""
        record = self.cache.get(document_id)
        if record is not None:
            return record
        return self.store.find_latest_by_applicant(document_id, decided_only=True)

    def history(self, document_id: str, limit: int = 20) -> List[EvaluationRecord]:
        return self.store.list_by_applicant(document_id, limit=limit)


def build_orchestrator(
    store,
    bureau: BureauGateway,
    cache: LatestResultCache,
    config=default_settings,
) -> DecisionOrchestrator:
    """Wire an orchestrator from settings; strategy and policy are fixed for the process"""
    return DecisionOrchestrator(
        bureau=bureau,
        store=store,
        cache=cache,
        aggregator=ScoreAggregator(get_weight_profile(config.weight_profile)),
        validator=CriticalGateValidator(GatePolicy.from_settings(config)),
        default_strategy=StrategyName(config.default_strategy.upper()),
        blend_mode=BlendMode(config.blend_mode.lower()),
        timeout_seconds=config.evaluation_timeout_seconds,
    )
