"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from credit_engine.infrastructure.database.repositories import EvaluationRepository
from credit_engine.infrastructure.database.session import get_db
from credit_engine.services.evaluation import DecisionOrchestrator, build_orchestrator


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_orchestrator(request: Request, db: Session = Depends(get_db)) -> DecisionOrchestrator:
    """Per-request orchestrator over the app-wide bureau gateway and cache"""
    return build_orchestrator(
        store=EvaluationRepository(db),
        bureau=request.app.state.bureau,
        cache=request.app.state.cache,
        config=request.app.state.settings,
    )
