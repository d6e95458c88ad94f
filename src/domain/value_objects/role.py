from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    WORKER = "WORKER"

    @classmethod
    def from_claim(cls, value: object) -> Role:
        """Unknown or missing role claims fall back to read-only access."""
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.WORKER

    def can_create(self) -> bool:
        return self in {Role.ADMIN, Role.MANAGER}

    def can_update(self) -> bool:
        return self in {Role.ADMIN, Role.MANAGER}

    def can_move(self) -> bool:
        return self in {Role.ADMIN, Role.MANAGER}

    def can_delete(self) -> bool:
        return self is Role.ADMIN
