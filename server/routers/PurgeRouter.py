"""Purge routes: cascade deletes the store cannot do by itself.

Every route exists with and without its path parameter; the variant without
the parameter authenticates the caller and then answers 400.
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import verify_bearer_token
from server.models.responses import AcceptedResponse
from services.purge.targets import CARD_SPACED_REP_DATA, DECK_CARDS, DECK_SPACED_REP_DATA, PurgeTarget
from shared.models.auth import Principal

router = APIRouter(tags=["purge"])


def _accept_purge(request: Request, principal: Principal, target: PurgeTarget, value: str | None, param_name: str) -> AcceptedResponse:
    """Validate the parameter, spawn the purge and acknowledge it.

    Raises:
        HTTPException: 400 if the parameter is missing or blank.
    """
    if value is None or not value.strip():
        raise HTTPException(status_code=400, detail=f"Please provide a {param_name}.")

    query = target.to_query(value)
    request.app.state.logging.info("Purge of %s requested by uid=%s.", query.describe(), principal.uid)

    purge_service = request.app.state.purge_service
    task_name = f"purge:{query.collection}:{query.field}={value}"
    request.app.state.task_runner.spawn(task_name, purge_service.do_purge(query))
    return AcceptedResponse(task=task_name, query=query)


@router.post("/deleteCardSpacedRepData", status_code=202, response_model=AcceptedResponse)
@router.post("/deleteCardSpacedRepData/{cardId}", status_code=202, response_model=AcceptedResponse)
async def delete_card_spaced_rep_data(
    request: Request,
    cardId: str | None = None,
    principal: Principal = Depends(verify_bearer_token),
) -> AcceptedResponse:
    """Delete the spaced repetition data of a deleted card."""
    return _accept_purge(request, principal, CARD_SPACED_REP_DATA, cardId, "cardId")


@router.post("/deleteDeckSpacedRepData", status_code=202, response_model=AcceptedResponse)
@router.post("/deleteDeckSpacedRepData/{deckId}", status_code=202, response_model=AcceptedResponse)
async def delete_deck_spaced_rep_data(
    request: Request,
    deckId: str | None = None,
    principal: Principal = Depends(verify_bearer_token),
) -> AcceptedResponse:
    """Delete the spaced repetition data of every card of a deleted deck."""
    return _accept_purge(request, principal, DECK_SPACED_REP_DATA, deckId, "deckId")


@router.post("/deleteDeckCards", status_code=202, response_model=AcceptedResponse)
@router.post("/deleteDeckCards/{deckId}", status_code=202, response_model=AcceptedResponse)
async def delete_deck_cards(
    request: Request,
    deckId: str | None = None,
    principal: Principal = Depends(verify_bearer_token),
) -> AcceptedResponse:
    """Delete the cards of a deleted deck."""
    return _accept_purge(request, principal, DECK_CARDS, deckId, "deckId")
