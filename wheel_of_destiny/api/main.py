"""
FastAPI backend for Wheel of Destiny.
Provides REST endpoints for sessions and actions, and a WebSocket feed of
session snapshots.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable

from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Query, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from wheel_of_destiny import __version__
from wheel_of_destiny.api.database import SessionLocal, init_db
from wheel_of_destiny.api.store import SqlSessionStore
from wheel_of_destiny.config import COMPUTER_THINKING_SCALE, CORS_ORIGINS, DEFAULT_COMPUTER_DIFFICULTY
from wheel_of_destiny.engine.actions import Action, buy_vowel, guess_letter, solve_puzzle, spin
from wheel_of_destiny.engine.computer import ComputerPlayer
from wheel_of_destiny.engine.errors import (
    Conflict,
    IllegalAction,
    InsufficientFunds,
    SessionNotFound,
    TransportFailure,
    WheelError,
)
from wheel_of_destiny.engine.movelog import MoveLogEntry
from wheel_of_destiny.engine.puzzles import PuzzleBank, load_puzzle_bank
from wheel_of_destiny.engine.queries import (
    get_available_action_types,
    get_session_summary,
    player_view,
    seat_for_actor,
)
from wheel_of_destiny.engine.scoring import spin_outcome
from wheel_of_destiny.engine.state import GameSession, WheelValue
from wheel_of_destiny.engine.utils import create_session, create_single_player_session
from wheel_of_destiny.sync.contracts import ChangeChannel, SessionStore
from wheel_of_destiny.sync.memory import InMemoryChannel
from wheel_of_destiny.sync.opponent import ComputerOpponent
from wheel_of_destiny.sync.session_sync import SessionSync

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Wheel of Destiny API",
    description="Backend API for Wheel of Destiny - a turn-based word-guessing game",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log method and path so 500s can be traced to the failing endpoint."""
    method = request.method
    path = request.url.path
    try:
        response = await call_next(request)
        if response.status_code >= 500:
            logger.error("[%s] %s %s", response.status_code, method, path)
        return response
    except Exception:
        logger.exception("[500] %s %s (exception)", method, path)
        raise


# ===== Error mapping =====

ERROR_STATUS: dict[type, int] = {
    IllegalAction: 400,
    InsufficientFunds: 400,
    SessionNotFound: 404,
    Conflict: 409,
    TransportFailure: 503,
}


@app.exception_handler(WheelError)
async def wheel_error_handler(request, exc: WheelError):
    status = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 400)
    content = {"detail": str(exc), "error_type": type(exc).__name__}
    if isinstance(exc, TransportFailure) and exc.action_id:
        # Resending with this id is coalesced if the action did apply
        content["action_id"] = exc.action_id
    return JSONResponse(status_code=status, content=content)


# ===== Dependencies =====

# Process-local change channel; the SQL store publishes every write to it
_channel = InMemoryChannel()
_store: SqlSessionStore | None = None
_puzzle_bank: PuzzleBank | None = None
# Applied moves whose log append failed, by action_id; flushed when the action is retried
_pending_moves: dict[str, MoveLogEntry] = {}


def get_channel() -> ChangeChannel:
    return _channel


def get_store() -> SessionStore:
    global _store
    if _store is None:
        init_db()
        _store = SqlSessionStore(SessionLocal, channel=_channel)
    return _store


def get_spinner() -> Callable[[], WheelValue]:
    return spin_outcome


def get_puzzle_bank() -> PuzzleBank:
    global _puzzle_bank
    if _puzzle_bank is None:
        _puzzle_bank = load_puzzle_bank()
    return _puzzle_bank


def get_thinking_scale() -> float:
    return COMPUTER_THINKING_SCALE


def get_pending_moves() -> dict[str, MoveLogEntry]:
    return _pending_moves


# ===== Pydantic Models =====

class CreateSessionRequest(BaseModel):
    game_mode: str = "single"  # "single" or "multiplayer"
    player1_id: str
    player2_id: str | None = None  # required for multiplayer
    difficulty: str | None = None  # single-player only
    category: str | None = None
    puzzle_id: str | None = None


class ActorRequest(BaseModel):
    actor_id: str
    action_id: str | None = None


class GuessLetterRequest(ActorRequest):
    letter: str


class BuyVowelRequest(ActorRequest):
    vowel: str


class SolveRequest(ActorRequest):
    solution: str


# ===== Helpers =====

def _check_seat(seat: int) -> int:
    if seat not in (1, 2):
        raise HTTPException(status_code=400, detail="Seat must be 1 or 2")
    return seat


@dataclass
class ActionContext:
    """Everything an action endpoint needs besides the request itself."""
    store: SessionStore
    channel: ChangeChannel
    spinner: Callable[[], WheelValue]
    bank: PuzzleBank
    thinking_scale: float
    pending_moves: dict[str, MoveLogEntry]

    def sync(self, session_id: str) -> SessionSync:
        return SessionSync(
            self.store, self.channel, session_id,
            spinner=self.spinner, pending_moves=self.pending_moves,
        )


def get_action_context(
    store: SessionStore = Depends(get_store),
    channel: ChangeChannel = Depends(get_channel),
    spinner: Callable[[], WheelValue] = Depends(get_spinner),
    bank: PuzzleBank = Depends(get_puzzle_bank),
    thinking_scale: float = Depends(get_thinking_scale),
    pending_moves: dict[str, MoveLogEntry] = Depends(get_pending_moves),
) -> ActionContext:
    return ActionContext(store, channel, spinner, bank, thinking_scale, pending_moves)


async def run_computer_turn(ctx: ActionContext, session_id: str) -> int:
    """Let the computer play its seat until the turn comes back to the human."""
    sync = ctx.sync(session_id)
    try:
        session = await sync.start()
        player = ComputerPlayer(
            session.computer_difficulty or DEFAULT_COMPUTER_DIFFICULTY,
            phrase_book=ctx.bank.phrases,
        )
        opponent = ComputerOpponent(sync, player, seat=2, thinking_scale=ctx.thinking_scale)
        applied = await opponent.play_turn()
        if opponent.stalled:
            logger.error(
                "Computer turn for session %s stalled; POST /sessions/%s/computer-turn to resume",
                session_id, session_id,
            )
        return applied
    except TransportFailure as e:
        logger.warning("Computer turn for session %s abandoned: %s", session_id, e)
        return 0
    finally:
        await sync.stop()


def _schedule_computer_turn(session: GameSession, ctx: ActionContext, background_tasks: BackgroundTasks) -> bool:
    if session.is_over or not session.is_computer_seat(session.current_player):
        return False
    background_tasks.add_task(run_computer_turn, ctx, session.id)
    return True


async def _submit(
    session_id: str,
    action: Action,
    background_tasks: BackgroundTasks,
    ctx: ActionContext,
) -> dict[str, Any]:
    sync = ctx.sync(session_id)
    try:
        session = await sync.start()
        seat = seat_for_actor(session, action.actor_id)
        if seat is None:
            raise IllegalAction(f"{action.actor_id} is not a player in session {session_id}")
        if session.is_computer_seat(seat):
            raise IllegalAction("The computer seat is played by the server")
        result = await sync.submit(action)
    finally:
        await sync.stop()

    new_session = result.session
    _schedule_computer_turn(new_session, ctx, background_tasks)

    return {
        "view": player_view(new_session, seat).to_dict(),
        "version": new_session.version,
        "action_id": action.action_id,
        "events": [e.to_dict() for e in result.events],
        "move": result.move.to_dict() if result.move else None,
        "duplicate": result.duplicate,
    }


# ===== API Endpoints =====

@app.on_event("startup")
def on_startup():
    logger.info("Wheel of Destiny API %s starting", __version__)


@app.get("/")
def root():
    return {"name": "Wheel of Destiny API", "version": __version__}


@app.get("/puzzles/categories")
def get_categories(bank: PuzzleBank = Depends(get_puzzle_bank)):
    return {"categories": bank.categories()}


@app.post("/sessions", status_code=201)
async def create_game_session(
    request: CreateSessionRequest,
    store: SessionStore = Depends(get_store),
    bank: PuzzleBank = Depends(get_puzzle_bank),
):
    """Start a match: single-player against the computer or two human seats."""
    if request.puzzle_id:
        puzzle = bank.get(request.puzzle_id)
        if puzzle is None:
            raise HTTPException(status_code=404, detail=f"Puzzle {request.puzzle_id} not found")
    else:
        try:
            puzzle = bank.choose(category=request.category)
        except LookupError as e:
            raise HTTPException(status_code=404, detail=str(e))

    try:
        if request.game_mode == "single":
            session = create_single_player_session(
                puzzle, request.player1_id, request.difficulty or DEFAULT_COMPUTER_DIFFICULTY,
            )
        elif request.game_mode == "multiplayer":
            if not request.player2_id:
                raise HTTPException(status_code=400, detail="Multiplayer sessions need player2_id")
            session = create_session(puzzle, request.player1_id, request.player2_id)
        else:
            raise HTTPException(status_code=400, detail=f"Unknown game mode: {request.game_mode}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    stored = await store.create_session(session)
    return {
        "session_id": stored.id,
        "view": player_view(stored, 1).to_dict(),
        "summary": get_session_summary(stored),
    }


@app.get("/sessions/{session_id}")
async def get_game_session(session_id: str, store: SessionStore = Depends(get_store)):
    """Full snapshot, phrase included."""
    session = await store.read_session(session_id)
    return session.to_dict()


@app.get("/sessions/{session_id}/view")
async def get_player_view(
    session_id: str,
    seat: int = Query(...),
    store: SessionStore = Depends(get_store),
):
    session = await store.read_session(session_id)
    return player_view(session, _check_seat(seat)).to_dict()


@app.get("/sessions/{session_id}/available-actions")
async def get_available_actions(
    session_id: str,
    seat: int = Query(...),
    store: SessionStore = Depends(get_store),
):
    session = await store.read_session(session_id)
    seat = _check_seat(seat)
    return {
        "seat": seat,
        "phase": session.game_state.game_phase,
        "is_my_turn": not session.is_over and session.current_player == seat,
        "actions": get_available_action_types(session, seat),
    }


@app.get("/sessions/{session_id}/moves")
async def get_moves(session_id: str, store: SessionStore = Depends(get_store)):
    await store.read_session(session_id)
    moves = await store.list_moves(session_id)
    return {"session_id": session_id, "moves": [m.to_dict() for m in moves]}


@app.post("/sessions/{session_id}/spin")
async def do_spin(
    session_id: str,
    request: ActorRequest,
    background_tasks: BackgroundTasks,
    ctx: ActionContext = Depends(get_action_context),
):
    """Spin the wheel. The outcome is drawn server-side."""
    action = spin(request.actor_id, action_id=request.action_id)
    return await _submit(session_id, action, background_tasks, ctx)


@app.post("/sessions/{session_id}/guess-letter")
async def do_guess_letter(
    session_id: str,
    request: GuessLetterRequest,
    background_tasks: BackgroundTasks,
    ctx: ActionContext = Depends(get_action_context),
):
    """Call a letter against the pending wheel value."""
    action = guess_letter(request.actor_id, request.letter, request.action_id)
    return await _submit(session_id, action, background_tasks, ctx)


@app.post("/sessions/{session_id}/buy-vowel")
async def do_buy_vowel(
    session_id: str,
    request: BuyVowelRequest,
    background_tasks: BackgroundTasks,
    ctx: ActionContext = Depends(get_action_context),
):
    """Buy a vowel out of the round score."""
    action = buy_vowel(request.actor_id, request.vowel, request.action_id)
    return await _submit(session_id, action, background_tasks, ctx)


@app.post("/sessions/{session_id}/solve")
async def do_solve(
    session_id: str,
    request: SolveRequest,
    background_tasks: BackgroundTasks,
    ctx: ActionContext = Depends(get_action_context),
):
    """Attempt to solve the puzzle."""
    action = solve_puzzle(request.actor_id, request.solution, request.action_id)
    return await _submit(session_id, action, background_tasks, ctx)


@app.post("/sessions/{session_id}/computer-turn")
async def resume_computer_turn(
    session_id: str,
    background_tasks: BackgroundTasks,
    ctx: ActionContext = Depends(get_action_context),
):
    """Restart the computer's turn if it holds the turn (e.g. after a stalled background turn)."""
    session = await ctx.store.read_session(session_id)
    return {"scheduled": _schedule_computer_turn(session, ctx, background_tasks)}


# ===== WebSocket =====

def _snapshot_message(session: GameSession, seat: int | None) -> dict[str, Any]:
    if seat in (1, 2):
        return {"type": "snapshot", "version": session.version, "view": player_view(session, seat).to_dict()}
    return {"type": "snapshot", "version": session.version, "summary": get_session_summary(session)}


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@app.websocket("/sessions/{session_id}/ws")
async def session_feed(
    websocket: WebSocket,
    session_id: str,
    seat: int | None = None,
    store: SessionStore = Depends(get_store),
    channel: ChangeChannel = Depends(get_channel),
):
    """Push every new snapshot of the session to the client."""
    await websocket.accept()
    try:
        session = await store.read_session(session_id)
    except WheelError as e:
        await websocket.send_json({"type": "error", "detail": str(e), "error_type": type(e).__name__})
        await websocket.close()
        return

    queue: asyncio.Queue[GameSession] = asyncio.Queue()
    unsubscribe = channel.subscribe(session_id, queue.put_nowait)
    disconnected = asyncio.create_task(_wait_for_disconnect(websocket))
    last_version = session.version
    try:
        await websocket.send_json(_snapshot_message(session, seat))
        while True:
            getter = asyncio.create_task(queue.get())
            done, _ = await asyncio.wait({getter, disconnected}, return_when=asyncio.FIRST_COMPLETED)
            if disconnected in done:
                getter.cancel()
                break
            snapshot = getter.result()
            # Deliveries may arrive out of order
            if snapshot.version <= last_version:
                continue
            last_version = snapshot.version
            await websocket.send_json(_snapshot_message(snapshot, seat))
    finally:
        unsubscribe()
        disconnected.cancel()
