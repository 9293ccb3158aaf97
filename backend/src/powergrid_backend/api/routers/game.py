"""HTTP and WebSocket endpoints for hosting and playing games."""

from __future__ import annotations

import asyncio
import logging

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from pydantic import BaseModel, ValidationError

from powergrid_backend.api.dependencies import get_auth_service, get_game_registry
from powergrid_backend.api.models import (
    CreateGameRequest,
    ErrorResponse,
    GameCreatedResponse,
    GameSnapshotResponse,
    GameStateMessage,
)
from powergrid_backend.api.services import (
    AuthService,
    GameRegistry,
    InvalidTokenError,
)
from powergrid_backend.game_logic.commands import CLIENT_COMMAND_ADAPTER, Caller
from powergrid_backend.game_logic.errors import (
    GameAlreadyExistsError,
    GameNotFoundError,
)
from powergrid_backend.game_logic.state import Game  # noqa: TC001

logger = logging.getLogger(__name__)

router = APIRouter(tags=["games"])


@router.post(
    "/games",
    response_model=GameCreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_game(
    payload: CreateGameRequest,
    registry: GameRegistry = Depends(get_game_registry),  # noqa: B008
) -> GameCreatedResponse:
    """Open a new lobby that players can join over the WebSocket."""

    try:
        game = await registry.create_game(
            game_id=payload.game_id, random_seed=payload.random_seed
        )
    except GameAlreadyExistsError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Game {exc} already exists",
        ) from exc
    return GameCreatedResponse(
        game_id=game.id, random_seed=game.random_seed, phase=game.phase
    )


@router.get("/games/{game_id}", response_model=GameSnapshotResponse)
def get_game(
    game_id: str,
    registry: GameRegistry = Depends(get_game_registry),  # noqa: B008
) -> GameSnapshotResponse:
    """Return the public snapshot of a game."""

    try:
        game = registry.load_game(game_id)
    except GameNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Game not found"
        ) from exc
    return GameSnapshotResponse(game=game.public_view())


@router.websocket("/ws/games/{game_id}")
async def play_game(
    websocket: WebSocket,
    game_id: str,
    auth_service: AuthService = Depends(get_auth_service),  # noqa: B008
    registry: GameRegistry = Depends(get_game_registry),  # noqa: B008
) -> None:
    """Stream snapshots of a game and accept the player's commands."""
    token = websocket.query_params.get("token")
    if token is None:
        await websocket.close(
            code=status.WS_1008_POLICY_VIOLATION, reason="Missing token"
        )
        return

    try:
        payload = auth_service.decode_access_token(token)
    except InvalidTokenError:
        await websocket.close(
            code=status.WS_1008_POLICY_VIOLATION, reason="Invalid token"
        )
        return

    caller = Caller(id=payload.sub)
    send_lock = asyncio.Lock()

    async def send(model: BaseModel) -> None:
        async with send_lock:
            await websocket.send_json(model.model_dump(mode="json"))

    async def push_state(game: Game) -> None:
        await send(
            GameStateMessage(
                game=game.public_view(), private=game.private_view(caller.id)
            )
        )

    await websocket.accept()
    try:
        actor = await registry.acquire(game_id, listener=push_state)
    except GameNotFoundError:
        await send(ErrorResponse(message="Game not found", detail={"game_id": game_id}))
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    logger.info("Player %s connected to game %s", caller.id, game_id)
    try:
        await push_state(actor.game)
        while True:
            try:
                data = await websocket.receive_json()
            except ValueError:
                await send(ErrorResponse(message="Malformed JSON"))
                continue

            try:
                command = CLIENT_COMMAND_ADAPTER.validate_python(data)
            except ValidationError as exc:
                await send(
                    ErrorResponse(
                        message="Invalid command",
                        detail={
                            "errors": exc.errors(
                                include_url=False, include_context=False
                            )
                        },
                    )
                )
                continue

            result = await actor.submit(command, caller)
            if not result.accepted:
                logger.debug(
                    "Ignored %s from %s: %s", command.type, caller.id, result.reason
                )
    except WebSocketDisconnect:
        logger.info("Player %s disconnected from game %s", caller.id, game_id)
    finally:
        await registry.release(game_id, listener=push_state)


__all__ = ["router"]
