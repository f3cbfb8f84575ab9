"""SQLAlchemy ORM database models."""
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, Text, Date, DateTime, Boolean, ForeignKey, Index, UniqueConstraint,
)
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import relationship

Base = declarative_base()


class UserProgress(Base):
    """Per (user, subject) XP aggregate. XP is cumulative; level is derived from it."""
    __tablename__ = "user_progress"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False)
    subject_id = Column(Integer, nullable=False)  # Subject enum value
    xp = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)  # cache of level_from_xp(xp)
    last_updated = Column(DateTime, default=datetime.utcnow)  # set by the writer from its clock

    __table_args__ = (
        UniqueConstraint("user_id", "subject_id", name="uq_user_progress_user_subject"),
    )


class Challenge(Base):
    """Generated challenge question. Append-only, never updated."""
    __tablename__ = "challenges"

    id = Column(Integer, primary_key=True, autoincrement=True)
    subject_id = Column(Integer, nullable=False)
    prompt = Column(Text, nullable=False)
    difficulty = Column(Integer, nullable=False)  # 1..5
    prompt_type = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_challenge_subject_difficulty", "subject_id", "difficulty"),
    )


class ActiveChallenge(Base):
    """Cursor into the challenge log: the one challenge shown to a user for a subject."""
    __tablename__ = "active_challenges"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False)
    subject_id = Column(Integer, nullable=False)
    challenge_id = Column(Integer, ForeignKey("challenges.id"), nullable=False)
    difficulty = Column(Integer, nullable=False)
    prompt_type = Column(String, nullable=True)
    last_reset = Column(Date, nullable=False)  # calendar date in the reset timezone
    updated_at = Column(DateTime, default=datetime.utcnow)

    challenge = relationship("Challenge")

    __table_args__ = (
        UniqueConstraint("user_id", "subject_id", name="uq_active_challenge_user_subject"),
    )


class UserChallengeAttempt(Base):
    """One resolved attempt per (user, challenge). The unique constraint is the XP guard."""
    __tablename__ = "user_challenge_attempts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False)
    challenge_id = Column(Integer, ForeignKey("challenges.id"), nullable=False)
    subject_id = Column(Integer, nullable=False)  # denormalized for completed-level lookups
    success = Column(Boolean, nullable=False)
    attempts = Column(Integer, nullable=False)
    used_hint = Column(Boolean, nullable=False, default=False)
    xp_earned = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    challenge = relationship("Challenge")

    __table_args__ = (
        UniqueConstraint("user_id", "challenge_id", name="uq_attempt_user_challenge"),
        Index("idx_attempt_user_subject", "user_id", "subject_id"),
    )


class UserPromptAttempt(Base):
    """Freeform question log, read back only for rate limiting."""
    __tablename__ = "user_prompt_attempts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, nullable=False)
    subject_id = Column(Integer, nullable=False)
    prompt = Column(Text, nullable=False)
    success = Column(Boolean, nullable=False)
    attempts = Column(Integer, nullable=False, default=1)
    used_hint = Column(Boolean, nullable=False, default=False)
    xp_earned = Column(Integer, nullable=False, default=0)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_prompt_attempt_user_time", "user_id", "timestamp"),
    )
