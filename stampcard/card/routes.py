"""FastAPI routes hosting the loyalty card page for this process's session."""
from __future__ import annotations

import asyncio
import logging
from typing import AsyncGenerator, Awaitable, Callable, List, Optional, Union

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from stampcard.card.commands import CardCommands
from stampcard.card.interaction import RequestInteraction
from stampcard.card.schemas import CardView, MutationOutcome, ShareResult
from stampcard.card.session import CardSessionContext, LoyaltyCardSession
from stampcard.common.error_envelope import error_response

router = APIRouter(prefix="/loyalty-card", tags=["loyalty-card"])
logger = logging.getLogger(__name__)
session: Optional[LoyaltyCardSession] = None

RESOURCE_KIND = "loyalty_card"


class ConfirmRequest(BaseModel):
    confirm: bool = False


class ImageUrlRequest(BaseModel):
    url: str = ""


class RewardCreateRequest(BaseModel):
    name: str = ""
    cost: Union[float, str, None] = None
    note: str = ""


class CommandResponse(BaseModel):
    outcome: MutationOutcome
    messages: List[str] = Field(default_factory=list)
    view: CardView


def _current_session() -> LoyaltyCardSession:
    global session
    if session is None:
        session = LoyaltyCardSession(CardSessionContext.from_env())
    return session


async def get_session() -> LoyaltyCardSession:
    current = _current_session()
    try:
        await current.ensure_started()
    except Exception as exc:
        error_response(
            code=f"{RESOURCE_KIND}.startup_failed",
            message=str(exc),
            status_code=503,
            resource_kind=RESOURCE_KIND,
        )
    return current


async def _run(
    current: LoyaltyCardSession,
    operation: Callable[[CardCommands], Awaitable[MutationOutcome]],
    confirmed: bool = False,
) -> CommandResponse:
    ui = RequestInteraction(confirmed=confirmed)
    try:
        outcome = await current.run_command(operation, ui)
    except Exception as exc:
        error_response(
            code=f"{RESOURCE_KIND}.write_failed",
            message=str(exc),
            status_code=502,
            resource_kind=RESOURCE_KIND,
            details={"messages": ui.messages},
        )
    return CommandResponse(outcome=outcome, messages=ui.messages, view=current.view)


@router.get("/view", response_model=CardView)
async def get_view(current: LoyaltyCardSession = Depends(get_session)) -> CardView:
    return current.view


async def view_stream(current: LoyaltyCardSession) -> AsyncGenerator[str, None]:
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[CardView] = asyncio.Queue()
    remove = current.add_view_listener(lambda view: loop.call_soon_threadsafe(queue.put_nowait, view))
    try:
        view = current.view
        while True:
            yield f"event: view\ndata: {view.model_dump_json()}\n\n"
            view = await queue.get()
    finally:
        remove()


@router.get("/stream")
async def stream_view(current: LoyaltyCardSession = Depends(get_session)) -> StreamingResponse:
    return StreamingResponse(view_stream(current), media_type="text/event-stream")


@router.post("/points/add", response_model=CommandResponse)
async def add_point(current: LoyaltyCardSession = Depends(get_session)) -> CommandResponse:
    return await _run(current, lambda commands: commands.add_point())


@router.post("/points/subtract", response_model=CommandResponse)
async def subtract_point(current: LoyaltyCardSession = Depends(get_session)) -> CommandResponse:
    return await _run(current, lambda commands: commands.subtract_point())


@router.post("/reset", response_model=CommandResponse)
async def reset_card(req: ConfirmRequest, current: LoyaltyCardSession = Depends(get_session)) -> CommandResponse:
    return await _run(current, lambda commands: commands.reset(), confirmed=req.confirm)


@router.put("/banner", response_model=CommandResponse)
async def save_banner(req: ImageUrlRequest, current: LoyaltyCardSession = Depends(get_session)) -> CommandResponse:
    return await _run(current, lambda commands: commands.save_banner_url(req.url))


@router.put("/stamp", response_model=CommandResponse)
async def save_stamp(req: ImageUrlRequest, current: LoyaltyCardSession = Depends(get_session)) -> CommandResponse:
    return await _run(current, lambda commands: commands.save_stamp_url(req.url))


@router.post("/rewards", response_model=CommandResponse)
async def add_reward(req: RewardCreateRequest, current: LoyaltyCardSession = Depends(get_session)) -> CommandResponse:
    return await _run(current, lambda commands: commands.add_reward(req.name, req.cost, req.note))


@router.post("/rewards/{reward_id}/redeem", response_model=CommandResponse)
async def redeem_reward(
    reward_id: str,
    req: ConfirmRequest,
    current: LoyaltyCardSession = Depends(get_session),
) -> CommandResponse:
    return await _run(current, lambda commands: commands.redeem_reward(reward_id), confirmed=req.confirm)


@router.delete("/rewards/{reward_id}", response_model=CommandResponse)
async def delete_reward(
    reward_id: str,
    confirm: bool = Query(False),
    current: LoyaltyCardSession = Depends(get_session),
) -> CommandResponse:
    return await _run(current, lambda commands: commands.delete_reward(reward_id), confirmed=confirm)


@router.get("/share", response_model=ShareResult)
async def share_card(current: LoyaltyCardSession = Depends(get_session)) -> ShareResult:
    return await current.share(RequestInteraction())
