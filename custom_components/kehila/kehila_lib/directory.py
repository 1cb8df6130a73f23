# custom_components/kehila/kehila_lib/directory.py
"""
Synagogues, admin users and roles.

A super admin manages every synagogue; an admin manages the users of their
own synagogue; a plain user can only see their own synagogue. Mutating
methods take an optional `actor` and check it before touching anything.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .exceptions import NotFound, PermissionDenied, ValidationError

_LOGGER = logging.getLogger(__name__)


class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    USER = "USER"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class SynagogueSettings:
    timezone: str = "Asia/Jerusalem"
    currency: str = "ILS"
    language: str = "he"


@dataclass
class Synagogue:
    id: str
    name: str
    hebrew_name: str = ""
    address: str | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    admin_user_id: str | None = None
    active: bool = True
    created_at: datetime = field(default_factory=_now)
    logo_url: str | None = None
    settings: SynagogueSettings = field(default_factory=SynagogueSettings)


@dataclass
class AdminUser:
    id: str
    email: str
    name: str
    role: UserRole = UserRole.USER
    synagogue_id: str | None = None
    active: bool = True
    created_at: datetime = field(default_factory=_now)
    last_login: datetime | None = None

    @property
    def is_super_admin(self) -> bool:
        return self.role is UserRole.SUPER_ADMIN


_SYNAGOGUE_FIELDS = {
    "name", "hebrew_name", "address", "contact_phone", "contact_email",
    "admin_user_id", "active", "logo_url",
}
_SETTINGS_FIELDS = {"timezone", "currency", "language"}
_USER_FIELDS = {"email", "name", "role", "synagogue_id", "active", "last_login"}


# ─── Permission checks ───────────────────────────────────────────────────────

def can_manage_synagogues(user: AdminUser | None) -> bool:
    return user is not None and user.active and user.is_super_admin


def can_manage_users(user: AdminUser | None, synagogue_id: str | None = None) -> bool:
    if user is None or not user.active:
        return False
    if user.is_super_admin:
        return True
    if user.role is UserRole.ADMIN and synagogue_id:
        return user.synagogue_id == synagogue_id
    return False


def can_access_synagogue(user: AdminUser | None, synagogue_id: str) -> bool:
    if user is None or not user.active:
        return False
    if user.is_super_admin:
        return True
    return user.synagogue_id == synagogue_id


def require_manage_synagogues(user: AdminUser | None) -> None:
    if not can_manage_synagogues(user):
        raise PermissionDenied("Only a super admin can manage synagogues")


def require_manage_users(user: AdminUser | None, synagogue_id: str | None = None) -> None:
    if not can_manage_users(user, synagogue_id):
        raise PermissionDenied(f"Not allowed to manage users of synagogue {synagogue_id!r}")


def require_access_synagogue(user: AdminUser | None, synagogue_id: str) -> None:
    if not can_access_synagogue(user, synagogue_id):
        raise PermissionDenied(f"No access to synagogue {synagogue_id!r}")


# ─── Directory ───────────────────────────────────────────────────────────────

class AdminDirectory:
    """In-memory synagogues and users for one config entry."""

    def __init__(self) -> None:
        self.synagogues: dict[str, Synagogue] = {}
        self.users: dict[str, AdminUser] = {}

    # Synagogues

    def get_synagogue(self, synagogue_id: str) -> Synagogue:
        try:
            return self.synagogues[synagogue_id]
        except KeyError:
            raise NotFound("Synagogue", synagogue_id) from None

    def create_synagogue(self, name: str, actor: AdminUser | None = None, **fields) -> Synagogue:
        if actor is not None:
            require_manage_synagogues(actor)
        if not name or not str(name).strip():
            raise ValidationError("name", "Synagogue name is required")

        settings = SynagogueSettings(
            **{k: fields.pop(k) for k in list(fields) if k in _SETTINGS_FIELDS}
        )
        unknown = set(fields) - _SYNAGOGUE_FIELDS
        if unknown:
            raise ValidationError(sorted(unknown)[0], "Unknown synagogue field")

        synagogue = Synagogue(id=_new_id(), name=str(name).strip(), settings=settings, **fields)
        self.synagogues[synagogue.id] = synagogue
        _LOGGER.info("Created synagogue %s (%s)", synagogue.name, synagogue.id)
        return synagogue

    def update_synagogue(
        self, synagogue_id: str, actor: AdminUser | None = None, **changes
    ) -> Synagogue:
        if actor is not None:
            require_manage_synagogues(actor)
        synagogue = self.get_synagogue(synagogue_id)

        for key, value in changes.items():
            if key in _SETTINGS_FIELDS:
                setattr(synagogue.settings, key, value)
            elif key in _SYNAGOGUE_FIELDS:
                if key == "name" and not str(value or "").strip():
                    raise ValidationError("name", "Synagogue name is required")
                setattr(synagogue, key, value)
            else:
                raise ValidationError(key, "Unknown synagogue field")
        return synagogue

    def delete_synagogue(self, synagogue_id: str, actor: AdminUser | None = None) -> list[str]:
        """Remove a synagogue and every user attached to it. Returns the removed user ids."""
        if actor is not None:
            require_manage_synagogues(actor)
        self.get_synagogue(synagogue_id)
        del self.synagogues[synagogue_id]

        removed = [u.id for u in self.users.values() if u.synagogue_id == synagogue_id]
        for user_id in removed:
            del self.users[user_id]
        _LOGGER.info("Deleted synagogue %s and %d user(s)", synagogue_id, len(removed))
        return removed

    # Users

    def get_user(self, user_id: str) -> AdminUser:
        try:
            return self.users[user_id]
        except KeyError:
            raise NotFound("User", user_id) from None

    def users_for_synagogue(self, synagogue_id: str) -> list[AdminUser]:
        return [u for u in self.users.values() if u.synagogue_id == synagogue_id]

    def _validate_user(self, email, name, role, synagogue_id, user_id=None) -> None:
        if not email or "@" not in str(email):
            raise ValidationError("email", "A valid email is required")
        if not name or not str(name).strip():
            raise ValidationError("name", "User name is required")
        if role is not UserRole.SUPER_ADMIN:
            if not synagogue_id:
                raise ValidationError("synagogue_id", "Admins and users belong to a synagogue")
            if synagogue_id not in self.synagogues:
                raise NotFound("Synagogue", synagogue_id)
        for other in self.users.values():
            if other.id != user_id and other.email.lower() == str(email).lower():
                raise ValidationError("email", f"{email} is already registered")

    def create_user(
        self,
        email: str,
        name: str,
        role: UserRole | str = UserRole.USER,
        synagogue_id: str | None = None,
        actor: AdminUser | None = None,
        active: bool = True,
    ) -> AdminUser:
        try:
            role = UserRole(role)
        except ValueError:
            raise ValidationError("role", f"Unknown role {role!r}") from None
        if actor is not None:
            if role is UserRole.SUPER_ADMIN:
                require_manage_synagogues(actor)
            require_manage_users(actor, synagogue_id)
        self._validate_user(email, name, role, synagogue_id)

        user = AdminUser(
            id=_new_id(),
            email=str(email).strip(),
            name=str(name).strip(),
            role=role,
            synagogue_id=synagogue_id if role is not UserRole.SUPER_ADMIN else None,
            active=active,
        )
        self.users[user.id] = user
        _LOGGER.info("Created %s user %s", role.value, user.email)
        return user

    def update_user(self, user_id: str, actor: AdminUser | None = None, **changes) -> AdminUser:
        user = self.get_user(user_id)
        unknown = set(changes) - _USER_FIELDS
        if unknown:
            raise ValidationError(sorted(unknown)[0], "Unknown user field")
        if "role" in changes:
            try:
                changes["role"] = UserRole(changes["role"])
            except ValueError:
                raise ValidationError("role", f"Unknown role {changes['role']!r}") from None

        role = changes.get("role", user.role)
        synagogue_id = changes.get("synagogue_id", user.synagogue_id)
        if actor is not None:
            require_manage_users(actor, user.synagogue_id)
            if synagogue_id != user.synagogue_id:
                require_manage_users(actor, synagogue_id)
            if role is UserRole.SUPER_ADMIN and not user.is_super_admin:
                require_manage_synagogues(actor)
        self._validate_user(
            changes.get("email", user.email),
            changes.get("name", user.name),
            role,
            synagogue_id,
            user_id=user.id,
        )

        for key, value in changes.items():
            setattr(user, key, value)
        return user

    def delete_user(self, user_id: str, actor: AdminUser | None = None) -> None:
        user = self.get_user(user_id)
        if actor is not None:
            require_manage_users(actor, user.synagogue_id)
            if actor.id == user.id:
                raise PermissionDenied("Users cannot delete themselves")
        del self.users[user_id]
        _LOGGER.info("Deleted user %s", user.email)

    def record_login(self, user_id: str) -> AdminUser:
        user = self.get_user(user_id)
        user.last_login = _now()
        return user


@dataclass
class Session:
    """Who is working, on which synagogue, and in which Hebrew year."""

    directory: AdminDirectory
    current_user: AdminUser | None = None
    synagogue_id: str | None = None
    hebrew_year: int | None = None
    is_in_israel: bool = True

    @property
    def role(self) -> UserRole:
        return self.current_user.role if self.current_user else UserRole.USER

    @property
    def synagogue(self) -> Synagogue | None:
        if self.synagogue_id is None:
            return None
        return self.directory.synagogues.get(self.synagogue_id)

    def login(self, user_id: str) -> AdminUser:
        user = self.directory.record_login(user_id)
        if not user.active:
            raise PermissionDenied(f"User {user.email} is inactive")
        self.current_user = user
        if user.synagogue_id:
            self.synagogue_id = user.synagogue_id
        return user

    def switch_synagogue(self, synagogue_id: str) -> Synagogue:
        synagogue = self.directory.get_synagogue(synagogue_id)
        require_access_synagogue(self.current_user, synagogue_id)
        self.synagogue_id = synagogue_id
        return synagogue
