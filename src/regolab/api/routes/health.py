from fastapi import APIRouter, Depends, Response, status

from regolab.api.dependencies import get_evaluator, get_linter
from regolab.api.schemas import EngineStatus, HealthResponse, ReadinessResponse
from regolab.core.ports.evaluator import PolicyEvaluator
from regolab.core.ports.linter import Linter
from regolab.engines.process import EngineError

router = APIRouter()


async def _probe(engine: object) -> EngineStatus:
    version = getattr(engine, "version", None)
    if version is None:
        return EngineStatus(available=True)
    try:
        return EngineStatus(available=True, version=await version())
    except (EngineError, OSError, TimeoutError) as exc:
        return EngineStatus(available=False, error=str(exc))


@router.get("/healthz/live", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    """Liveness probe: is the process alive?"""
    return HealthResponse()


@router.get("/healthz/ready", response_model=ReadinessResponse)
async def readiness(
    response: Response,
    linter: Linter = Depends(get_linter),
    evaluator: PolicyEvaluator = Depends(get_evaluator),
) -> ReadinessResponse:
    """Readiness probe: checks that regal and opa can be run."""
    regal = await _probe(linter)
    opa = await _probe(evaluator)
    if regal.available and opa.available:
        return ReadinessResponse(regal=regal, opa=opa)
    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(status="degraded", regal=regal, opa=opa)
