from fastapi import APIRouter, Depends, HTTPException

from regolab.api.dependencies import get_evaluator
from regolab.api.schemas import EvaluateRequest, EvaluateResponse, FormatResponse, PolicyRequest
from regolab.core.ports.evaluator import PolicyEvaluator
from regolab.engines.process import EngineError, ExecutableNotFoundError

router = APIRouter(tags=["evaluate"])


def _http_error(exc: EngineError) -> HTTPException:
    code = 503 if isinstance(exc, ExecutableNotFoundError) else 500
    return HTTPException(status_code=code, detail=str(exc))


@router.post("/evaluate", response_model=EvaluateResponse)
async def evaluate(
    body: EvaluateRequest,
    evaluator: PolicyEvaluator = Depends(get_evaluator),
) -> EvaluateResponse:
    try:
        result = await evaluator.evaluate(body.policy, body.input, body.data)
    except EngineError as exc:
        raise _http_error(exc) from exc
    return EvaluateResponse(result=result)


@router.post("/format", response_model=FormatResponse)
async def format_policy(
    body: PolicyRequest,
    evaluator: PolicyEvaluator = Depends(get_evaluator),
) -> FormatResponse:
    try:
        formatted = await evaluator.format(body.policy)
    except EngineError as exc:
        raise _http_error(exc) from exc
    return FormatResponse(policy=formatted)
