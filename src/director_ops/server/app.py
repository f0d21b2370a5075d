"""FastAPI app factory.

Endpoints are thin wrappers over the core operations: each request loads the
document it needs, applies one operation, and saves the document.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from director_ops import __version__
from director_ops.compliance.checks import ComplianceReport, DailyReport
from director_ops.core.config import DirectorOpsSettings
from director_ops.core.context import DirectorOpsContext
from director_ops.core.errors import DirectorOpsError
from director_ops.features.models import Feature
from director_ops.features.pipeline import FeatureFilter, FeatureUpdate, GateReport
from director_ops.hive.coordination import (
    ConsensusOptions,
    DirectorSync,
    HiveMetrics,
    HiveStatus,
    VoteOutcome,
)
from director_ops.hive.models import Broadcast, ConsensusRequest, DirectorRecord, Handoff
from director_ops.progress.log import LogEntry, ProgressDay, ProgressSummary
from director_ops.security.validator import build_validator
from director_ops.server.models import (
    BroadcastRequest,
    CompletionRequest,
    ConsensusCreate,
    DirectorSyncRequest,
    FeatureCreate,
    FeaturePatch,
    GateValidationRequest,
    HandoffCreate,
    HiveInitRequest,
    ProgressEntryCreate,
    VoteRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _context(request: Request) -> DirectorOpsContext:
    # The validator is chosen once at startup; each request gets a fresh context.
    return DirectorOpsContext(
        settings=request.app.state.settings, validator=request.app.state.validator
    )


@router.get("/health")
def health() -> dict[str, object]:
    return {"status": "ok", "ok": True, "version": __version__}


# Features


@router.post("/features", response_model=Feature, status_code=201)
def add_feature(body: FeatureCreate, request: Request, list_name: str | None = None) -> Feature:
    with _context(request).features(list_name) as pipeline:
        return pipeline.add_feature(
            body.name,
            description=body.description,
            director=body.director,
            priority=body.priority,
            dependencies=body.dependencies,
        )


@router.get("/features", response_model=list[Feature])
def list_features(
    request: Request,
    status: str | None = None,
    director: str | None = None,
    list_name: str | None = None,
) -> list[Feature]:
    pipeline = _context(request).load_features(list_name)
    return pipeline.list_features(FeatureFilter(status=status, director=director))


@router.get("/features/{feature_ref}", response_model=Feature)
def show_feature(feature_ref: str, request: Request, list_name: str | None = None) -> Feature:
    return _context(request).load_features(list_name).show_feature(feature_ref)


@router.patch("/features/{feature_ref}", response_model=Feature)
def update_feature(
    feature_ref: str, body: FeaturePatch, request: Request, list_name: str | None = None
) -> Feature:
    with _context(request).features(list_name) as pipeline:
        return pipeline.update_feature(feature_ref, FeatureUpdate(**body.model_dump()))


@router.get("/features/{feature_ref}/gates", response_model=GateReport)
def gate_report(feature_ref: str, request: Request, list_name: str | None = None) -> GateReport:
    return _context(request).load_features(list_name).gate_report(feature_ref)


@router.post("/features/{feature_ref}/gates/{gate_ref}", response_model=GateReport)
def validate_gate(
    feature_ref: str,
    gate_ref: str,
    body: GateValidationRequest,
    request: Request,
    list_name: str | None = None,
) -> GateReport:
    with _context(request).features(list_name) as pipeline:
        pipeline.validate_gate(
            feature_ref,
            gate_ref,
            result=body.result,
            validator_id=body.validator,
            notes=body.notes,
        )
        return pipeline.gate_report(feature_ref)


@router.post("/features/{feature_ref}/complete", response_model=Feature)
def complete_feature(
    feature_ref: str, body: CompletionRequest, request: Request, list_name: str | None = None
) -> Feature:
    with _context(request).features(list_name) as pipeline:
        return pipeline.complete_feature(feature_ref, force=body.force, notes=body.notes)


# Hive


@router.get("/hive", response_model=HiveStatus)
def hive_status(request: Request) -> HiveStatus:
    return _context(request).load_hive().status()


@router.post("/hive/init", response_model=HiveStatus)
def hive_init(body: HiveInitRequest, request: Request) -> HiveStatus:
    with _context(request).hive() as hive:
        hive.initialize(clear_all=body.clear_all)
        return hive.status()


@router.post("/hive/directors/{director}/sync", response_model=DirectorRecord)
def hive_sync(director: str, body: DirectorSyncRequest, request: Request) -> DirectorRecord:
    with _context(request).hive() as hive:
        return hive.sync_director(director, DirectorSync(**body.model_dump()))


@router.post("/hive/broadcasts", response_model=Broadcast, status_code=201)
def hive_broadcast(body: BroadcastRequest, request: Request) -> Broadcast:
    with _context(request).hive() as hive:
        return hive.broadcast(
            body.message, sender=body.sender, priority=body.priority, targets=body.targets
        )


@router.post("/hive/consensus", response_model=ConsensusRequest, status_code=201)
def hive_consensus(body: ConsensusCreate, request: Request) -> ConsensusRequest:
    extra = {"options": tuple(body.options)} if body.options else {}
    options = ConsensusOptions(
        description=body.description,
        required_votes=body.required_votes,
        deadline=body.deadline,
        **extra,
    )
    with _context(request).hive() as hive:
        return hive.request_consensus(body.topic, options)


@router.post("/hive/consensus/{request_ref}/votes", response_model=VoteOutcome)
def hive_vote(request_ref: str, body: VoteRequest, request: Request) -> VoteOutcome:
    with _context(request).hive() as hive:
        return hive.cast_vote(request_ref, body.voter, body.choice, notes=body.notes)


@router.get("/hive/metrics", response_model=HiveMetrics)
def hive_metrics(request: Request) -> HiveMetrics:
    return _context(request).load_hive().metrics()


@router.post("/hive/handoffs", response_model=Handoff, status_code=201)
def hive_handoff(body: HandoffCreate, request: Request) -> Handoff:
    with _context(request).hive() as hive:
        return hive.create_handoff(
            body.from_director, body.to_director, body.context, priority=body.priority
        )


@router.post("/hive/handoffs/{handoff_ref}/ack", response_model=Handoff)
def hive_ack(handoff_ref: str, request: Request) -> Handoff:
    with _context(request).hive() as hive:
        return hive.acknowledge_handoff(handoff_ref)


# Progress log


@router.post("/progress", response_model=LogEntry, status_code=201)
def progress_log(body: ProgressEntryCreate, request: Request) -> LogEntry:
    return _context(request).progress.log(
        body.message,
        type=body.type,
        feature=body.feature,
        director=body.director,
        session=body.session,
        tags=body.tags,
    )


@router.get("/progress", response_model=ProgressDay)
def progress_view(request: Request, date: str | None = None) -> ProgressDay:
    return _context(request).progress.view(date)


@router.get("/progress/search", response_model=list[LogEntry])
def progress_search(request: Request, q: str, limit: int = 20) -> list[LogEntry]:
    return _context(request).progress.search(q, limit=limit)


@router.get("/progress/summary", response_model=ProgressSummary)
def progress_summary(request: Request, days: int = 7) -> ProgressSummary:
    return _context(request).progress.summary(days=days)


# Validation


@router.get("/validation/daily", response_model=DailyReport)
def validate_daily(request: Request) -> DailyReport:
    return _context(request).daily_check()


@router.get("/validation/compliance", response_model=ComplianceReport)
def validate_compliance(request: Request) -> ComplianceReport:
    return _context(request).compliance_report()


def _director_ops_error(_request: Request, exc: DirectorOpsError) -> JSONResponse:
    logger.warning(str(exc), extra={"error": exc.kind})
    return JSONResponse(
        status_code=exc.http_status, content={"error": exc.kind, "detail": str(exc)}
    )


def create_app(settings: DirectorOpsSettings | None = None) -> FastAPI:
    settings = settings or DirectorOpsSettings()

    app = FastAPI(
        title="director-ops",
        version=__version__,
        description="REST API over the feature gate pipeline and hive coordination.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Expose settings and the startup-selected validator to request handlers.
    app.state.settings = settings
    app.state.validator = build_validator(settings.validator_mode)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DirectorOpsError, _director_ops_error)
    app.include_router(router, prefix="/api")
    return app
