from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.db import SessionLocal
from app.db_models import InterruptionDB, MentorshipChatDB, PitchSessionDB, UserAccountDB
from app.services.auth_service import hash_password, verify_password
from app.services.errors import (
    InterruptionLimitError,
    InterruptionNotFoundError,
    InvalidTransitionError,
    ReactionAlreadySetError,
    SessionNotFoundError,
)

RECENT_SESSIONS_LIMIT = 20


class SessionStore:
    def register_user(self, email: str, password: str, display_name: str | None = None) -> dict:
        email = _normalize_email(email)
        if not email:
            raise ValueError("Email is required")
        if len(password) < 6:
            raise ValueError("Password must be at least 6 characters")

        with SessionLocal() as db:
            if self._get_user_by_email(db, email) is not None:
                raise ValueError("An account with this email already exists")
            row = UserAccountDB(
                user_id=str(uuid4()),
                email=email,
                display_name=display_name or email.split("@", 1)[0],
                password_hash=hash_password(password),
            )
            db.add(row)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise ValueError("An account with this email already exists") from exc
            db.refresh(row)
            return self._user_to_dict(row)

    def authenticate_user(self, email: str, password: str) -> dict:
        with SessionLocal() as db:
            row = self._get_user_by_email(db, _normalize_email(email))
            if row is None or not verify_password(password, row.password_hash):
                raise ValueError("Invalid email or password")
            return self._user_to_dict(row)

    def get_auth_user(self, user_id: str) -> dict | None:
        with SessionLocal() as db:
            row = db.get(UserAccountDB, str(user_id))
            if row is None:
                return None
            return self._user_to_dict(row)

    def get_or_create_user(self, email: str, display_name: str | None = None) -> dict:
        email = _normalize_email(email)
        with SessionLocal() as db:
            row = self._get_user_by_email(db, email)
            if row is not None:
                return self._user_to_dict(row)
            row = UserAccountDB(user_id=str(uuid4()), email=email, display_name=display_name)
            db.add(row)
            try:
                db.commit()
            except IntegrityError:
                # Another request created the same user first.
                db.rollback()
                row = self._get_user_by_email(db, email)
                if row is None:
                    raise
                return self._user_to_dict(row)
            db.refresh(row)
            return self._user_to_dict(row)

    def create_session(
        self,
        *,
        user_id: str,
        title: str,
        status: str,
        pitch_deck_ref: str | None = None,
        pitch_context_text: str | None = None,
    ) -> dict:
        with SessionLocal() as db:
            row = PitchSessionDB(
                session_id=str(uuid4()),
                user_id=str(user_id),
                title=title.strip(),
                status=status,
                pitch_deck_ref=pitch_deck_ref,
                pitch_context_text=pitch_context_text,
                transcript="",
                created_at=datetime.now(timezone.utc),
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return self._session_to_dict(row)

    def get_session(self, session_id: str) -> dict | None:
        with SessionLocal() as db:
            row = db.get(PitchSessionDB, str(session_id))
            if row is None:
                return None
            return self._session_to_dict(row)

    def get_sessions_for_user(self, user_id: str, limit: int = RECENT_SESSIONS_LIMIT) -> list[dict]:
        with SessionLocal() as db:
            stmt = (
                select(PitchSessionDB)
                .where(PitchSessionDB.user_id == str(user_id))
                .order_by(PitchSessionDB.created_at.desc())
                .limit(limit)
            )
            rows = db.execute(stmt).scalars().all()
            return [self._session_to_dict(row) for row in rows]

    def transition_status(
        self,
        session_id: str,
        *,
        allowed_from: set[str] | frozenset[str],
        target: str,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
        transcript: str | None = None,
        pitch_deck_ref: str | None = None,
        failure_reason: str | None = None,
    ) -> dict:
        """Compare-and-set the session status under a row lock.

        Raises SessionNotFoundError for unknown sessions and InvalidTransitionError
        when the stored status is not one of ``allowed_from``.
        """
        with SessionLocal() as db:
            row = db.get(PitchSessionDB, str(session_id), with_for_update=True)
            if row is None:
                raise SessionNotFoundError(session_id)
            if row.status not in allowed_from:
                raise InvalidTransitionError(session_id, row.status, target)
            row.status = target
            if start_time is not None:
                row.start_time = start_time
            if end_time is not None:
                row.end_time = end_time
            if transcript is not None and len(transcript) >= len(row.transcript or ""):
                row.transcript = transcript
            if pitch_deck_ref is not None:
                row.pitch_deck_ref = pitch_deck_ref
            if failure_reason is not None:
                row.failure_reason = failure_reason
            db.add(row)
            db.commit()
            db.refresh(row)
            return self._session_to_dict(row)

    def set_market_context(self, session_id: str, market_context: str) -> bool:
        with SessionLocal() as db:
            row = db.get(PitchSessionDB, str(session_id))
            if row is None:
                return False
            row.market_context = market_context
            db.add(row)
            db.commit()
            return True

    def record_transcript_snapshot(self, session_id: str, transcript: str) -> bool:
        """Store a cumulative transcript snapshot.

        Returns False when this exact snapshot was already evaluated, True when
        the caller should evaluate it. The stored transcript never shrinks.
        """
        digest = hashlib.sha256(transcript.encode("utf-8")).hexdigest()
        with SessionLocal() as db:
            row = db.get(PitchSessionDB, str(session_id), with_for_update=True)
            if row is None:
                raise SessionNotFoundError(session_id)
            if row.evaluated_digest == digest:
                return False
            row.evaluated_digest = digest
            if len(transcript) >= len(row.transcript or ""):
                row.transcript = transcript
            db.add(row)
            db.commit()
            return True

    def forget_transcript_snapshot(self, session_id: str) -> None:
        """Let the last snapshot be evaluated again."""
        with SessionLocal() as db:
            row = db.get(PitchSessionDB, str(session_id))
            if row is None:
                return
            row.evaluated_digest = None
            db.add(row)
            db.commit()

    def set_report_card(self, session_id: str, report_card: dict) -> dict | None:
        with SessionLocal() as db:
            row = db.get(PitchSessionDB, str(session_id))
            if row is None:
                return None
            row.report_card_json = _jsonify(report_card)
            db.add(row)
            db.commit()
            return dict(row.report_card_json)

    def get_report_card(self, session_id: str) -> dict | None:
        session = self.get_session(session_id)
        if not session:
            return None
        return session.get("reportCard")

    def count_interruptions(self, session_id: str) -> int:
        with SessionLocal() as db:
            return self._count_interruptions(db, session_id)

    def list_interruptions(self, session_id: str) -> list[dict]:
        with SessionLocal() as db:
            stmt = (
                select(InterruptionDB)
                .where(InterruptionDB.session_id == str(session_id))
                .order_by(InterruptionDB.sequence.asc())
            )
            rows = db.execute(stmt).scalars().all()
            return [self._interruption_to_dict(row) for row in rows]

    def get_interruption(self, interruption_id: str) -> dict | None:
        with SessionLocal() as db:
            row = db.get(InterruptionDB, str(interruption_id))
            if row is None:
                return None
            return self._interruption_to_dict(row)

    def add_interruption(
        self,
        session_id: str,
        *,
        trigger_type: str,
        founder_statement: str,
        vc_response: str,
        max_interruptions: int,
    ) -> dict:
        """Count and insert in one transaction.

        The session row lock serializes writers on PostgreSQL; the unique
        (session_id, sequence) constraint rejects the loser of a race on
        databases without row locks.
        """
        with SessionLocal() as db:
            session_row = db.get(PitchSessionDB, str(session_id), with_for_update=True)
            if session_row is None:
                raise SessionNotFoundError(session_id)
            count = self._count_interruptions(db, session_id)
            if count >= max_interruptions:
                raise InterruptionLimitError(f"Session already has {count} interruptions")
            row = InterruptionDB(
                interruption_id=str(uuid4()),
                session_id=str(session_id),
                sequence=count + 1,
                timestamp=datetime.now(timezone.utc),
                trigger_type=trigger_type,
                founder_statement=founder_statement,
                vc_response=vc_response,
            )
            db.add(row)
            try:
                db.commit()
            except IntegrityError as exc:
                db.rollback()
                raise InterruptionLimitError("Interruption slot was taken by a concurrent evaluation") from exc
            db.refresh(row)
            return self._interruption_to_dict(row)

    def set_interruption_reaction(self, interruption_id: str, reaction: str) -> dict:
        with SessionLocal() as db:
            row = db.get(InterruptionDB, str(interruption_id), with_for_update=True)
            if row is None:
                raise InterruptionNotFoundError(interruption_id)
            if row.founder_reaction is not None:
                raise ReactionAlreadySetError(
                    f"Interruption {interruption_id} already has reaction '{row.founder_reaction}'"
                )
            row.founder_reaction = reaction
            db.add(row)
            db.commit()
            db.refresh(row)
            return self._interruption_to_dict(row)

    def get_chat(self, session_id: str, focus_area: str) -> dict | None:
        with SessionLocal() as db:
            row = self._get_chat_row(db, session_id, focus_area)
            if row is None:
                return None
            return self._chat_to_dict(row)

    def append_chat_messages(self, session_id: str, focus_area: str, messages: list[dict]) -> dict:
        # Two attempts: the first insert of a chat can race another request.
        for attempt in range(2):
            with SessionLocal() as db:
                session_row = db.get(PitchSessionDB, str(session_id))
                if session_row is None:
                    raise SessionNotFoundError(session_id)
                row = self._get_chat_row(db, session_id, focus_area, for_update=True)
                if row is None:
                    row = MentorshipChatDB(
                        chat_id=str(uuid4()),
                        session_id=str(session_id),
                        user_id=session_row.user_id,
                        focus_area=focus_area,
                        messages_json=_jsonify(messages),
                    )
                else:
                    row.messages_json = list(row.messages_json or []) + _jsonify(messages)
                    row.updated_at = datetime.now(timezone.utc)
                db.add(row)
                try:
                    db.commit()
                except IntegrityError:
                    db.rollback()
                    if attempt == 1:
                        raise
                    continue
                db.refresh(row)
                return self._chat_to_dict(row)
        raise RuntimeError("unreachable")

    def _count_interruptions(self, db, session_id: str) -> int:
        stmt = select(func.count()).select_from(InterruptionDB).where(InterruptionDB.session_id == str(session_id))
        return int(db.execute(stmt).scalar_one())

    def _get_user_by_email(self, db, email: str) -> UserAccountDB | None:
        stmt = select(UserAccountDB).where(UserAccountDB.email == email)
        return db.execute(stmt).scalar_one_or_none()

    def _get_chat_row(self, db, session_id: str, focus_area: str, for_update: bool = False) -> MentorshipChatDB | None:
        stmt = select(MentorshipChatDB).where(
            MentorshipChatDB.session_id == str(session_id),
            MentorshipChatDB.focus_area == focus_area,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return db.execute(stmt).scalar_one_or_none()

    def _user_to_dict(self, row: UserAccountDB) -> dict:
        return {
            "userId": row.user_id,
            "email": row.email,
            "displayName": row.display_name or row.email,
        }

    def _session_to_dict(self, row: PitchSessionDB) -> dict:
        return {
            "sessionId": row.session_id,
            "userId": row.user_id,
            "title": row.title,
            "status": row.status,
            "pitchDeckRef": row.pitch_deck_ref,
            "pitchContextText": row.pitch_context_text,
            "marketContext": row.market_context,
            "startTime": _as_utc(row.start_time),
            "endTime": _as_utc(row.end_time),
            "transcript": row.transcript or "",
            "failureReason": row.failure_reason,
            "reportCard": dict(row.report_card_json) if row.report_card_json else None,
            "createdAt": _as_utc(row.created_at),
        }

    def _interruption_to_dict(self, row: InterruptionDB) -> dict:
        return {
            "interruptionId": row.interruption_id,
            "sessionId": row.session_id,
            "sequence": row.sequence,
            "timestamp": _as_utc(row.timestamp),
            "triggerType": row.trigger_type,
            "founderStatement": row.founder_statement,
            "vcResponse": row.vc_response,
            "founderReaction": row.founder_reaction,
        }

    def _chat_to_dict(self, row: MentorshipChatDB) -> dict:
        return {
            "chatId": row.chat_id,
            "sessionId": row.session_id,
            "userId": row.user_id,
            "focusArea": row.focus_area,
            "messages": list(row.messages_json or []),
        }


session_store = SessionStore()


def _normalize_email(email: str) -> str:
    return str(email or "").strip().lower()


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _jsonify(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): _jsonify(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_jsonify(item) for item in value]
    return value
