# user directory and role gate
from __future__ import annotations

import dataclasses
from enum import Enum, auto
from typing import Dict, Iterable, List, Optional

from store.errors import (
    AccountBlocked,
    MissingRequiredField,
    NotFoundError,
    Unauthorized,
    ValidationError,
)
from store.models import Role, User
from utils.logger import get_logger

_logger = get_logger(__name__)


class Permission(Enum):
    PLACE_ORDER = auto()
    SUBMIT_PAYMENT_PROOF = auto()
    CANCEL_OWN_ORDER = auto()
    PROCESS_ORDER = auto()  # start processing, request payment, dispatch, cancel
    VIEW_ALL_ORDERS = auto()
    VIEW_INTERNAL_PRICING = auto()
    MANAGE_CATALOG = auto()
    MANAGE_USERS = auto()
    MANAGE_CONTENT = auto()


_STAFF_PERMISSIONS = frozenset(
    {
        Permission.PROCESS_ORDER,
        Permission.VIEW_ALL_ORDERS,
        Permission.VIEW_INTERNAL_PRICING,
    }
)

ROLE_PERMISSIONS: Dict[Role, frozenset] = {
    Role.CUSTOMER: frozenset(
        {
            Permission.PLACE_ORDER,
            Permission.SUBMIT_PAYMENT_PROOF,
            Permission.CANCEL_OWN_ORDER,
        }
    ),
    Role.STAFF: _STAFF_PERMISSIONS,
    Role.ADMIN: _STAFF_PERMISSIONS
    | {
        Permission.MANAGE_CATALOG,
        Permission.MANAGE_USERS,
        Permission.MANAGE_CONTENT,
    },
}


class RoleGate:
    """
    Capability check performed by the stores themselves.
    A blocked or missing user has no permissions at all.
    """

    @staticmethod
    def allows(user: Optional[User], permission: Permission) -> bool:
        if user is None or user.is_blocked:
            return False
        return permission in ROLE_PERMISSIONS.get(user.role, frozenset())

    @staticmethod
    def require(user: Optional[User], permission: Permission) -> User:
        action = permission.name.lower().replace("_", " ")
        if user is None:
            raise Unauthorized(action, reason="not logged in")
        if user.is_blocked:
            raise Unauthorized(action, user.id, "account is blocked")
        if not RoleGate.allows(user, permission):
            _logger.debug(f"Denied {permission.name} for {user.id} ({user.role})")
            raise Unauthorized(action, user.id, f"role {user.role} lacks permission")
        return user


def _required(field: str, value) -> str:
    if value is None or not str(value).strip():
        raise MissingRequiredField(field)
    return str(value).strip()


class UserDirectory:
    """Users of one session, administered only by ADMIN actors."""

    def __init__(self, users: Iterable[User] = ()) -> None:
        self._users: List[User] = list(users)

    def all(self) -> List[User]:
        return list(self._users)

    def find(self, user_id: str) -> Optional[User]:
        for user in self._users:
            if user.id == user_id:
                return user
        return None

    def get(self, user_id: str) -> User:
        user = self.find(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def authenticate(self, username: str, password: str) -> Optional[User]:
        """Return the User if username/password match; otherwise None.

        Raises AccountBlocked when the credentials match a blocked account.
        """
        for user in self._users:
            if user.username == username and user.password == password:
                if user.is_blocked:
                    _logger.info(f"Blocked account '{username}' tried to log in")
                    raise AccountBlocked(username)
                return user
        return None

    def _next_id(self) -> str:
        ids = [int(u.id) for u in self._users if u.id.isdigit()]
        return str(max(ids, default=0) + 1)

    def _check_username_free(self, username: str, exclude_id: str | None = None):
        for user in self._users:
            if user.id != exclude_id and user.username.lower() == username.lower():
                raise ValidationError("username", username, "already taken")

    def add(
        self,
        actor: Optional[User],
        username: str,
        password: str,
        name: str,
        role: Role = Role.CUSTOMER,
    ) -> User:
        RoleGate.require(actor, Permission.MANAGE_USERS)
        username = _required("username", username)
        password = _required("password", password)
        name = _required("name", name)
        self._check_username_free(username)

        user = User(
            id=self._next_id(),
            username=username,
            password=password,
            role=Role(role),
            name=name,
        )
        self._users.append(user)
        _logger.info(f"User {user.id} ({user.username}, {user.role}) added by {actor.id}")
        return user

    def update(self, actor: Optional[User], user_id: str, **changes) -> User:
        RoleGate.require(actor, Permission.MANAGE_USERS)
        current = self.get(user_id)

        if "is_blocked" in changes:
            raise ValidationError("is_blocked", changes["is_blocked"], "use toggle_block")
        allowed = {f.name for f in dataclasses.fields(User)} - {"id", "is_blocked"}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(", ".join(sorted(unknown)), None, "unknown user field")
        for key in ("username", "password", "name"):
            if key in changes:
                changes[key] = _required(key, changes[key])
        if "username" in changes:
            self._check_username_free(changes["username"], exclude_id=user_id)
        if "role" in changes:
            changes["role"] = Role(changes["role"])
            if actor.id == user_id and changes["role"] != current.role:
                raise ValidationError("role", changes["role"], "cannot change your own role")

        updated = dataclasses.replace(current, **changes)
        self._replace(updated)
        _logger.info(f"User {user_id} updated by {actor.id}: {sorted(changes)}")
        return updated

    def toggle_block(self, actor: Optional[User], user_id: str) -> User:
        RoleGate.require(actor, Permission.MANAGE_USERS)
        if actor.id == user_id:
            raise ValidationError("user_id", user_id, "cannot block yourself")
        current = self.get(user_id)
        updated = dataclasses.replace(current, is_blocked=not current.is_blocked)
        self._replace(updated)
        state = "blocked" if updated.is_blocked else "unblocked"
        _logger.info(f"User {user_id} {state} by {actor.id}")
        return updated

    def _replace(self, user: User) -> None:
        self._users = [user if u.id == user.id else u for u in self._users]
