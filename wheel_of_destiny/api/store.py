"""
SQL-backed SessionStore.
The write is a conditional UPDATE on the version column, so two clients
racing from the same snapshot cannot both succeed.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from wheel_of_destiny.api.models import GameSessionRow, MoveRow
from wheel_of_destiny.engine.errors import Conflict, SessionNotFound, TransportFailure
from wheel_of_destiny.engine.movelog import MoveLogEntry
from wheel_of_destiny.engine.state import GameSession
from wheel_of_destiny.sync.contracts import ChangeChannel

logger = logging.getLogger(__name__)


def _row_to_session(row: GameSessionRow) -> GameSession:
    session = GameSession.from_json(row.session_state)
    # The column is authoritative for the concurrency counter
    session.version = row.version
    return session


def _row_to_move(row: MoveRow) -> MoveLogEntry:
    return MoveLogEntry.from_dict({
        "session_id": row.session_id,
        "actor_id": row.actor_id,
        "move_type": row.move_type,
        "move_data": json.loads(row.move_data or "{}"),
        "points_earned": row.points_earned,
        "timestamp": row.created_at,
        "action_id": row.action_id,
    })


class SqlSessionStore:
    """SessionStore over SQLAlchemy. Blocking calls run in a worker thread."""

    def __init__(self, session_factory: sessionmaker, channel: ChangeChannel | None = None):
        self.session_factory = session_factory
        self.channel = channel

    # ===== SessionStore =====

    async def create_session(self, session: GameSession) -> GameSession:
        stored = await self._run(self._create, session)
        await self._publish(stored)
        return stored

    async def read_session(self, session_id: str) -> GameSession:
        return await self._run(self._read, session_id)

    async def write_session(self, session: GameSession) -> GameSession:
        stored = await self._run(self._write, session)
        await self._publish(stored)
        return stored

    async def append_move(self, entry: MoveLogEntry) -> None:
        await self._run(self._append, entry)

    async def list_moves(self, session_id: str) -> list[MoveLogEntry]:
        return await self._run(self._list_moves, session_id)

    # ===== Blocking implementations =====

    async def _run(self, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except SQLAlchemyError as e:
            logger.warning("Database error in %s: %s", fn.__name__, e)
            raise TransportFailure(f"Database error: {e}") from e

    def _create(self, session: GameSession) -> GameSession:
        with self.session_factory() as db:
            db.add(GameSessionRow(
                id=session.id,
                game_mode=session.game_mode,
                player1_id=session.player1_id,
                player2_id=session.player2_id,
                current_player=session.current_player,
                status=session.status,
                version=session.version,
                session_state=session.to_json(),
            ))
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                raise ValueError(f"Session {session.id} already exists") from e
        return session.copy()

    def _read(self, session_id: str) -> GameSession:
        with self.session_factory() as db:
            row = db.get(GameSessionRow, session_id)
            if row is None:
                raise SessionNotFound(f"Session {session_id} not found")
            return _row_to_session(row)

    def _write(self, session: GameSession) -> GameSession:
        stored = session.copy()
        stored.version = session.version + 1
        with self.session_factory() as db:
            result = db.execute(
                update(GameSessionRow)
                .where(GameSessionRow.id == session.id, GameSessionRow.version == session.version)
                .values(
                    current_player=stored.current_player,
                    status=stored.status,
                    version=stored.version,
                    session_state=stored.to_json(),
                    updated_at=datetime.now(timezone.utc),
                )
            )
            if result.rowcount != 1:
                db.rollback()
                row = db.get(GameSessionRow, session.id)
                if row is None:
                    raise SessionNotFound(f"Session {session.id} not found")
                raise Conflict(session.id, session.version, row.version)
            db.commit()
        return stored

    def _append(self, entry: MoveLogEntry) -> None:
        with self.session_factory() as db:
            db.add(MoveRow(
                session_id=entry.session_id,
                actor_id=entry.actor_id,
                move_type=entry.move_type,
                move_data=json.dumps(entry.move_data),
                points_earned=entry.points_earned,
                action_id=entry.action_id,
                created_at=entry.timestamp,
            ))
            db.commit()

    def _list_moves(self, session_id: str) -> list[MoveLogEntry]:
        with self.session_factory() as db:
            rows = db.scalars(
                select(MoveRow).where(MoveRow.session_id == session_id).order_by(MoveRow.id)
            ).all()
            return [_row_to_move(row) for row in rows]

    async def _publish(self, session: GameSession) -> None:
        if self.channel is None:
            return
        try:
            await self.channel.publish(session)
        except TransportFailure as e:
            logger.warning("Publish failed for session %s v%s: %s", session.id, session.version, e)
