"""Stateless editor analyses: each request carries the whole buffer."""

from fastapi import APIRouter

from regolab.api.schemas import (
    CompleteResponse,
    CursorRequest,
    HighlightResponse,
    HoverResponse,
    PolicyRequest,
    SchemaRequest,
    SchemaResponse,
)
from regolab.core.completion import complete_at, hover_at
from regolab.core.parser import parse
from regolab.core.schema import build_data_context, parse_json_schema
from regolab.core.styles import highlight as highlight_tree

router = APIRouter(prefix="/analyze", tags=["analyze"])


@router.post("/highlight", response_model=HighlightResponse)
async def highlight(body: PolicyRequest) -> HighlightResponse:
    return HighlightResponse(spans=highlight_tree(parse(body.policy)))


@router.post("/complete", response_model=CompleteResponse)
async def complete(body: CursorRequest) -> CompleteResponse:
    context = build_data_context(body.input, body.data)
    result = complete_at(parse(body.policy), body.policy, body.offset, context)
    if result is None:
        return CompleteResponse()
    return CompleteResponse(start=result.start, items=result.items)


@router.post("/hover", response_model=HoverResponse)
async def hover(body: CursorRequest) -> HoverResponse:
    context = build_data_context(body.input, body.data)
    return HoverResponse(hover=hover_at(body.policy, body.offset, context))


@router.post("/schema", response_model=SchemaResponse)
async def schema(body: SchemaRequest) -> SchemaResponse:
    node = parse_json_schema(body.text, body.source)
    return SchemaResponse(node=node, type=node.describe() if node is not None else None)
