from fastapi import APIRouter, Depends, HTTPException

from regolab.api.dependencies import get_app_settings, get_linter
from regolab.api.schemas import LintResponse, PolicyRequest
from regolab.config import Settings
from regolab.core.diagnostics import map_diagnostics
from regolab.core.ports.linter import Linter
from regolab.engines.process import EngineError, ExecutableNotFoundError

router = APIRouter(prefix="/lint", tags=["lint"])


@router.post("", response_model=LintResponse)
async def lint(
    body: PolicyRequest,
    linter: Linter = Depends(get_linter),
    settings: Settings = Depends(get_app_settings),
) -> LintResponse:
    if len(body.policy.strip()) < settings.lint_min_length:
        return LintResponse(diagnostics=[])
    try:
        report = await linter.lint(body.policy)
    except ExecutableNotFoundError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    except EngineError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    diagnostics = map_diagnostics(report.violations, body.policy, settings.suppressed_rules)
    return LintResponse(diagnostics=diagnostics, parse_error=report.parse_error)
