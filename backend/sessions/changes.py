# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261017v1
# ---------------------------------------------------------------------------
"""
Per-field change variants for session writes.

Every field of an update request is exactly one of

    UNSET        the caller did not mention the field  → keep stored value
    CLEARED      the caller sent an explicit null       → clear / reset
    SetTo(v)     the caller sent a value                → overwrite with v

so the credential precedence rules in ``SessionService.update`` can match on
the variant instead of guessing between "missing", "None" and "falsy".
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")


class _Unset:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "UNSET"


class _Cleared:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "CLEARED"


UNSET = _Unset()
CLEARED = _Cleared()


@dataclass(frozen=True)
class SetTo(Generic[T]):
    value: T


FieldChange = Union[_Unset, _Cleared, SetTo]


def is_supplied(change: FieldChange) -> bool:
    return change is not UNSET


def value_or(change: FieldChange, default: Any = None) -> Any:
    """The carried value for SetTo, *default* for UNSET and CLEARED."""
    if isinstance(change, SetTo):
        return change.value
    return default


def from_payload(payload: dict, key: str) -> FieldChange:
    """Build the variant for *key* of a decoded request body."""
    if key not in payload:
        return UNSET
    if payload[key] is None:
        return CLEARED
    return SetTo(payload[key])


@dataclass
class SessionFields:
    """Input of ``SessionService.create`` – plain values, nothing is 'kept'."""

    name: str
    hostname: str
    username: Optional[str] = None
    port: Optional[int] = None
    password: Optional[str] = None
    private_key: Optional[str] = None
    key_passphrase: Optional[str] = None
    credential_id: Optional[int] = None
    console_snapshot: Optional[str] = None
    # None: the caller did not send tags at all.  []: explicitly no tags.
    tags: Optional[list] = None


@dataclass
class SessionChanges:
    """Input of ``SessionService.update``."""

    name: FieldChange = UNSET
    hostname: FieldChange = UNSET
    port: FieldChange = UNSET
    username: FieldChange = UNSET
    password: FieldChange = UNSET
    private_key: FieldChange = UNSET
    key_passphrase: FieldChange = UNSET
    credential_id: FieldChange = UNSET
    console_snapshot: FieldChange = UNSET
    tags: FieldChange = UNSET

    @classmethod
    def from_payload(cls, payload: dict) -> "SessionChanges":
        return cls(**{name: from_payload(payload, name) for name in _CHANGE_FIELDS})

    @property
    def touches_inline_secrets(self) -> bool:
        return is_supplied(self.password) or is_supplied(self.private_key)


_CHANGE_FIELDS = tuple(SessionChanges.__dataclass_fields__)
