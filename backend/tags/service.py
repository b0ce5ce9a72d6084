# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Tag service – user-scoped labels and the session ↔ tag membership.

``set_session_tags`` is the synchroniser used by the session service: it
validates the requested id set in full before touching anything, then swaps
the membership (delete all, insert new) inside the caller's transaction.
Readers on other connections see either the old set or the new one, never
an empty set in between.
"""

from typing import Iterable, Optional

from sqlalchemy import delete, func
from sqlalchemy.orm import Session

from core.errors import ConflictError, NotFound, ValidationError
from core.logger import get_logger
from database import unit_of_work
from models.ssh_session import SshSession
from models.tag import SessionTag, Tag

log = get_logger("tags")


def is_valid_tag_id(value) -> bool:
    # bool is an int subclass; True must not sneak in as tag 1.
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def normalize_tag_ids(tag_ids) -> list[int]:
    """
    Validate and de-duplicate *tag_ids* (first occurrence wins).

    Raises ``ValidationError`` unless every element is a positive integer.
    """
    if not isinstance(tag_ids, (list, tuple)):
        raise ValidationError("Tags must be provided as an array")
    if not all(is_valid_tag_id(tag_id) for tag_id in tag_ids):
        raise ValidationError("Tags must be valid numeric identifiers")
    return list(dict.fromkeys(tag_ids))


class TagService:
    def __init__(self, db: Session):
        self.db = db

    # -- synchroniser ------------------------------------------------------

    def set_session_tags(self, session_id: int, user_id: int, tag_ids) -> list[Tag]:
        """
        Replace the tag set of a session.  Does not commit – run it inside a
        ``unit_of_work`` (the session service does; so does the router).
        """
        owned = (
            self.db.query(SshSession.id)
            .filter(SshSession.id == session_id, SshSession.user_id == user_id)
            .first()
        )
        if owned is None:
            raise NotFound("Session not found")

        unique_ids = normalize_tag_ids(tag_ids)
        if unique_ids:
            found = (
                self.db.query(func.count(Tag.id))
                .filter(Tag.user_id == user_id, Tag.id.in_(unique_ids))
                .scalar()
            )
            if found != len(unique_ids):
                raise ValidationError("One or more tags were not found")

        self.db.execute(delete(SessionTag).where(SessionTag.session_id == session_id))
        self.db.add_all(SessionTag(session_id=session_id, tag_id=tag_id) for tag_id in unique_ids)
        self.db.flush()
        log.info("Session %s tags set to %s", session_id, unique_ids)
        return self.get_tags_for_session(session_id, user_id)

    # -- reads -------------------------------------------------------------

    def get_tags_for_session(self, session_id: int, user_id: int) -> list[Tag]:
        return (
            self.db.query(Tag)
            .join(SessionTag, SessionTag.tag_id == Tag.id)
            .join(SshSession, SshSession.id == SessionTag.session_id)
            .filter(SessionTag.session_id == session_id, SshSession.user_id == user_id)
            .order_by(func.lower(Tag.name), Tag.id)
            .all()
        )

    def get_tags_for_sessions(self, session_ids: Iterable[int], user_id: int) -> dict[int, list[Tag]]:
        ids = list(session_ids)
        if not ids:
            return {}
        rows = (
            self.db.query(SessionTag.session_id, Tag)
            .join(Tag, Tag.id == SessionTag.tag_id)
            .join(SshSession, SshSession.id == SessionTag.session_id)
            .filter(SshSession.user_id == user_id, SessionTag.session_id.in_(ids))
            .order_by(SessionTag.session_id, func.lower(Tag.name), Tag.id)
            .all()
        )
        tag_map: dict[int, list[Tag]] = {}
        for session_id, tag in rows:
            tag_map.setdefault(session_id, []).append(tag)
        return tag_map

    def get_tag(self, tag_id: int, user_id: int) -> Optional[Tag]:
        if not is_valid_tag_id(tag_id):
            return None
        return self.db.query(Tag).filter(Tag.id == tag_id, Tag.user_id == user_id).first()

    def list_tags(self, user_id: int) -> list[tuple[Tag, int]]:
        """Every tag of the user with the number of sessions carrying it."""
        return (
            self.db.query(Tag, func.count(SessionTag.session_id))
            .outerjoin(SessionTag, SessionTag.tag_id == Tag.id)
            .filter(Tag.user_id == user_id)
            .group_by(Tag.id)
            .order_by(func.lower(Tag.name), Tag.id)
            .all()
        )

    # -- CRUD --------------------------------------------------------------

    def create_tag(self, user_id: int, name: Optional[str]) -> Tag:
        clean = self._clean_name(name)
        with unit_of_work(self.db):
            self._ensure_unique(user_id, clean)
            tag = Tag(user_id=user_id, name=clean)
            self.db.add(tag)
        self.db.refresh(tag)
        return tag

    def update_tag(self, tag_id: int, user_id: int, name: Optional[str]) -> Tag:
        with unit_of_work(self.db):
            tag = self.get_tag(tag_id, user_id)
            if tag is None:
                raise NotFound("Tag not found")
            clean = self._clean_name(name)
            self._ensure_unique(user_id, clean, exclude_id=tag.id)
            tag.name = clean
        self.db.refresh(tag)
        return tag

    def delete_tag(self, tag_id: int, user_id: int) -> None:
        with unit_of_work(self.db):
            tag = self.get_tag(tag_id, user_id)
            if tag is None:
                raise NotFound("Tag not found")
            self.db.execute(delete(SessionTag).where(SessionTag.tag_id == tag.id))
            self.db.delete(tag)
        log.info("Tag %s deleted for user %s", tag_id, user_id)

    # -- helpers -----------------------------------------------------------

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        clean = name.strip() if isinstance(name, str) else ""
        if not clean:
            raise ValidationError("Tag name is required")
        return clean

    def _ensure_unique(self, user_id: int, name: str, exclude_id: Optional[int] = None) -> None:
        q = self.db.query(Tag.id).filter(Tag.user_id == user_id, func.lower(Tag.name) == name.lower())
        if exclude_id is not None:
            q = q.filter(Tag.id != exclude_id)
        if q.first() is not None:
            raise ConflictError("Tag with this name already exists")
