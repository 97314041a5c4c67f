from fastapi import APIRouter, Depends, Request

from server.dependencies.auth import verify_bearer_token
from server.models.responses import AcceptedResponse
from shared.models.auth import Principal

router = APIRouter(tags=["sync"])


@router.post("/syncSearchIndexes", status_code=202, response_model=AcceptedResponse)
async def sync_search_indexes(
    request: Request,
    principal: Principal = Depends(verify_bearer_token),
) -> AcceptedResponse:
    """Trigger a debounced resync of the search indexes.

    The resync runs in the background and is skipped when the last one is
    recent enough. The caller never learns the outcome.

    Args:
        request (Request): FastAPI request (provides app.state).
        principal (Principal): The authenticated caller.

    Returns:
        AcceptedResponse: Acknowledgement, sent before the resync finishes.
    """
    request.app.state.logging.info("Search index resync requested by uid=%s.", principal.uid)
    scheduler = request.app.state.resync_scheduler
    task_name = "resync-search-indexes"
    request.app.state.task_runner.spawn(task_name, scheduler.do_maybe_resync())
    return AcceptedResponse(task=task_name)
