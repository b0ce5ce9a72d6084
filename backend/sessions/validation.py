# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Field validation for session writes.

Create and update follow the same rules.  All violations are collected in a
single pass and raised together as one ``ValidationError``.  Tag ownership is
not checked here – that needs the database and is the tag service's job.
"""

from core.errors import ValidationError
from sessions.changes import CLEARED, SessionChanges, SessionFields, SetTo
from tags.service import is_valid_tag_id

MIN_PORT = 1
MAX_PORT = 65535

_PORT_MSG = f"Port must be a valid number between {MIN_PORT} and {MAX_PORT}"


def _require_text(label: str, value, errors: list) -> None:
    if not isinstance(value, str) or not value.strip():
        errors.append(f"{label} is required")


def _check_port(value, errors: list) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not MIN_PORT <= value <= MAX_PORT:
        errors.append(_PORT_MSG)


def _check_tags(value, errors: list) -> None:
    if not isinstance(value, (list, tuple)):
        errors.append("Tags must be provided as an array")
    elif not all(is_valid_tag_id(tag_id) for tag_id in value):
        errors.append("Tags must be valid numeric identifiers")


def _check_credential_id(value, errors: list) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        errors.append("Credential ID must be a positive integer")


def validate_create(fields: SessionFields) -> None:
    errors: list[str] = []
    _require_text("Session name", fields.name, errors)
    _require_text("Hostname", fields.hostname, errors)
    # With a credential reference the username is taken from the credential.
    if fields.credential_id is None:
        _require_text("Username", fields.username, errors)
    else:
        _check_credential_id(fields.credential_id, errors)
    if fields.port is not None:
        _check_port(fields.port, errors)
    if fields.tags is not None:
        _check_tags(fields.tags, errors)
    if errors:
        raise ValidationError(errors)


def validate_changes(changes: SessionChanges) -> None:
    errors: list[str] = []
    for label, change in (
        ("Session name", changes.name),
        ("Hostname", changes.hostname),
        ("Username", changes.username),
    ):
        if change is CLEARED:
            errors.append(f"{label} is required")
        elif isinstance(change, SetTo):
            _require_text(label, change.value, errors)
    if isinstance(changes.port, SetTo):
        _check_port(changes.port.value, errors)
    if isinstance(changes.credential_id, SetTo):
        _check_credential_id(changes.credential_id.value, errors)
    if isinstance(changes.tags, SetTo):
        _check_tags(changes.tags.value, errors)
    if errors:
        raise ValidationError(errors)
