"""
Narration control API.

HTTP:
- Load a recipe, play/stop narration, send a command, adjust rate and voice
- Read observable state, voices and the current session's events

WebSocket:
- /narration/bridge: the audio client that owns speaker and microphone

Every HTTP command emits control.command_received / control.command_applied.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field, ValidationError

from logging_setup import get_logger, Component as LogComponent
from narration.commands import Command
from narration.controller import NarrationController
from narration.errors import RecipeFetchError
from observability.events import Component as ObsComponent, EventEmitter, Severity
from observability.event_store import event_store
from .bridge import (
    BridgeChannel,
    ClientHello,
    RemoteMicrophone,
    RemoteRecognitionEngine,
    RemoteSynthesizer,
    parse_client_message,
)
from .service import service


router = APIRouter(prefix="/narration", tags=["narration"])
emitter = EventEmitter(ObsComponent.CONTROL_API)
logger = get_logger(LogComponent.CONTROL_API)


class LoadResponse(BaseModel):
    recipe_name: str
    categories: List[str]
    ingredient_count: int
    step_count: int


class CommandRequest(BaseModel):
    command: Command


class CommandResponse(BaseModel):
    status: str
    player_state: str
    cursor: int


class RateResponse(BaseModel):
    rate: float


class VoiceRequest(BaseModel):
    locale: str = Field(..., min_length=2)
    gender_hint: str = ""


class VoiceResponse(BaseModel):
    voice: Optional[Dict[str, Any]] = None


class StateResponse(BaseModel):
    connected: bool
    state: Optional[Dict[str, Any]] = None


def _new_correlation_id() -> str:
    return f"cmd_{int(time.time() * 1000)}"


def _require_controller() -> NarrationController:
    if service.controller is None:
        raise HTTPException(status_code=409, detail="no_audio_client")
    return service.controller


def _audit(command: str, correlation_id: str, result: Optional[str] = None, **fields: Any) -> None:
    controller = service.controller
    session_id = controller.event_session_id if controller else "none"
    if result is None:
        emitter.emit(
            "control.command_received",
            session_id=session_id,
            severity=Severity.INFO,
            correlation_id=correlation_id,
            command=command,
            **fields,
        )
    else:
        emitter.emit(
            "control.command_applied",
            session_id=session_id,
            severity=Severity.INFO if result == "ok" else Severity.ERROR,
            correlation_id=correlation_id,
            command=command,
            result=result,
            **fields,
        )


@router.post("/recipes/{recipe_id}/load", response_model=LoadResponse)
async def load_recipe(recipe_id: str) -> LoadResponse:
    correlation_id = _new_correlation_id()
    _audit("recipe.load", correlation_id, recipe_id=recipe_id)
    try:
        detail = await service.load_recipe(recipe_id)
    except RecipeFetchError as e:
        _audit("recipe.load", correlation_id, result="error", error_class=type(e).__name__, status=e.status)
        raise HTTPException(status_code=502, detail="recipe_fetch_failed")

    _audit("recipe.load", correlation_id, result="ok")
    return LoadResponse(
        recipe_name=detail.recipe.name,
        categories=detail.categories,
        ingredient_count=len(detail.recipe.ingredient_list),
        step_count=len(detail.recipe.step_list),
    )


def _apply(command: Command) -> CommandResponse:
    controller = _require_controller()
    correlation_id = _new_correlation_id()
    _audit(f"narration.{command.value}", correlation_id)

    if command == Command.PLAY and controller.content is None:
        _audit(f"narration.{command.value}", correlation_id, result="error", reason="no_recipe_loaded")
        raise HTTPException(status_code=409, detail="no_recipe_loaded")

    controller.execute(command, source="ui")
    _audit(f"narration.{command.value}", correlation_id, result="ok")
    return CommandResponse(
        status="ok",
        player_state=controller.player.state.value,
        cursor=controller.player.cursor,
    )


@router.post("/play", response_model=CommandResponse)
async def play() -> CommandResponse:
    return _apply(Command.PLAY)


@router.post("/stop", response_model=CommandResponse)
async def stop() -> CommandResponse:
    return _apply(Command.STOP)


@router.post("/command", response_model=CommandResponse)
async def command(req: CommandRequest) -> CommandResponse:
    if req.command == Command.NONE:
        raise HTTPException(status_code=400, detail="invalid_command")
    return _apply(req.command)


@router.post("/rate/increase", response_model=RateResponse)
async def increase_rate() -> RateResponse:
    return RateResponse(rate=_require_controller().increase_rate())


@router.post("/rate/decrease", response_model=RateResponse)
async def decrease_rate() -> RateResponse:
    return RateResponse(rate=_require_controller().decrease_rate())


@router.post("/voice", response_model=VoiceResponse)
async def select_voice(req: VoiceRequest) -> VoiceResponse:
    voice = _require_controller().select_voice(req.locale, req.gender_hint)
    return VoiceResponse(voice=voice.to_dict() if voice else None)


@router.get("/state", response_model=StateResponse)
async def get_state() -> StateResponse:
    controller = service.controller
    if controller is None:
        return StateResponse(connected=False)
    return StateResponse(connected=True, state=controller.snapshot())


@router.get("/voices")
async def list_voices() -> dict:
    controller = _require_controller()
    return {"voices": [v.to_dict() for v in controller.voices.voices]}


@router.get("/events")
async def get_events(
    event_type: Optional[str] = Query(None, description="Exact event_type or a prefix ending in '.'"),
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Max events to return"),
) -> dict:
    controller = _require_controller()
    session_id = controller.event_session_id
    events = event_store.query(session_id=session_id, event_type=event_type, limit=limit)
    return {"session_id": session_id, "events": events, "count": len(events)}


# --- Audio client bridge ---


async def _pump_outbox(websocket: WebSocket, channel: BridgeChannel) -> None:
    while True:
        message = await channel.outbox.get()
        await websocket.send_json(message)


@router.websocket("/bridge")
async def bridge(websocket: WebSocket) -> None:
    await websocket.accept()

    try:
        hello = ClientHello.model_validate(await websocket.receive_json())
    except (ValidationError, ValueError) as e:
        logger.warning("Invalid bridge hello", error=str(e))
        await websocket.close(code=1003)
        return

    channel = BridgeChannel()
    controller = NarrationController(
        RemoteSynthesizer(channel, hello.voice_list()),
        RemoteRecognitionEngine(channel) if hello.recognition else None,
        RemoteMicrophone(channel, granted=hello.microphone_granted),
        config=service.config,
    )
    logger.info(
        "Audio client connected",
        voices=len(hello.voices),
        microphone=hello.microphone,
        recognition=hello.recognition,
    )

    writer = asyncio.create_task(_pump_outbox(websocket, channel))
    dispatcher = asyncio.create_task(controller.run())
    service.attach(controller)

    try:
        while True:
            try:
                signal = parse_client_message(await websocket.receive_json())
            except ValueError as e:
                logger.warning("Malformed bridge message", error=str(e))
                continue
            if signal is not None:
                controller.signals.post(signal)
    except WebSocketDisconnect:
        logger.info("Audio client disconnected")
    finally:
        service.detach(controller)
        channel.close()
        writer.cancel()
        dispatcher.cancel()
        await asyncio.gather(writer, dispatcher, return_exceptions=True)
