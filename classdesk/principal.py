"""Principal abstraction for the caller of a request."""

from __future__ import annotations

from dataclasses import dataclass

from .core.enums import RoleName


@dataclass(frozen=True)
class Principal:
    """
    The authenticated caller, as supplied by the identity collaborator.

    Only used to build report scopes and to check ownership; never stored.
    """

    id: str
    role: RoleName

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.role == RoleName.TEACHER

    @property
    def is_student(self) -> bool:
        return self.role == RoleName.STUDENT
