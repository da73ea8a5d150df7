"""Research endpoints: one-shot and server-sent-event streaming."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from orchestrator.research_orchestrator import ResearchError, ResearchOrchestrator
from server.dependencies import get_api_key, get_orchestrator
from server.schemas.requests import ResearchRequest
from server.schemas.responses import ResearchResponseDTO
from server.utils import format_sse
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["Research"])


def _to_query(request: ResearchRequest):
    try:
        return request.to_query()
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e


@router.post("/research", response_model=ResearchResponseDTO)
async def research(
    request: ResearchRequest,
    http_request: Request,
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
    api_key: str = Depends(get_api_key),
):
    """Research a query and return the synthesized answer with ranked sources."""
    query = _to_query(request)
    try:
        result = await orchestrator.research(query)
    except ResearchError as e:
        logger.error(
            "Research request failed",
            extra={
                "extra_fields": {
                    "request_id": getattr(http_request.state, "request_id", "unknown"),
                    "query_id": e.query_id,
                    "state": e.state.value if e.state else None,
                    "error": str(e),
                }
            },
        )
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Research failed") from e

    return ResearchResponseDTO.from_research_result(result)


@router.post("/research/stream")
async def research_stream(
    request: ResearchRequest,
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
    api_key: str = Depends(get_api_key),
):
    """
    Stream a research answer as server-sent events.

    Emits `chunk` events with synthesis text, then one `complete` event with
    the full result. A failure after the stream has started is reported as an
    `error` event.
    """
    query = _to_query(request)

    async def event_source():
        try:
            async for event in orchestrator.research_stream(query):
                if event.type == "complete":
                    payload = ResearchResponseDTO.from_research_result(event.result).model_dump()
                    yield format_sse("complete", payload)
                else:
                    yield format_sse("chunk", {"text": event.text})
        except ResearchError as e:
            logger.error(
                "Research stream failed",
                extra={"extra_fields": {"query_id": e.query_id, "error": str(e)}},
            )
            yield format_sse("error", {"detail": "Research failed", "query_id": e.query_id})

    return StreamingResponse(
        event_source(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
