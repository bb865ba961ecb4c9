"""
SQLAlchemy models for game sessions and their move log.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameSessionRow(Base):
    __tablename__ = "game_sessions"

    id = Column(String(36), primary_key=True)  # uuid
    game_mode = Column(String(16), nullable=False, default="multiplayer")  # single | multiplayer
    player1_id = Column(String(64), nullable=False, index=True)
    player2_id = Column(String(64), nullable=False, index=True)
    current_player = Column(Integer, nullable=False, default=1)
    status = Column(String(32), nullable=False, default="in_progress")  # in_progress | round_complete
    version = Column(Integer, nullable=False, default=0)  # compare-and-set counter
    session_state = Column(Text, nullable=False)  # JSON string of the full GameSession
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow)


class MoveRow(Base):
    __tablename__ = "game_moves"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(36), ForeignKey("game_sessions.id"), nullable=False, index=True)
    actor_id = Column(String(64), nullable=False)
    move_type = Column(String(32), nullable=False)  # spin | guess_letter | buy_vowel | solve_puzzle
    move_data = Column(Text, nullable=False)  # JSON object
    points_earned = Column(Integer, nullable=False, default=0)
    action_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
