from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RoadmapError(Exception):
    """Base error envelope. Prefer returning/printing these rather than raising raw exceptions."""

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    def __str__(self) -> str:
        parts: list[str] = []
        if self.file:
            parts.append(self.file)
        if self.path:
            parts.append(self.path)
        loc = ":".join(parts) if parts else "<roadmap>"
        return f"{loc}: {self.code}: {self.message}"


class RoadmapLoadError(RoadmapError):
    pass


class RoadmapValidationError(RoadmapError):
    pass


class DependencyRejection(RoadmapError):
    """A proposed dependency edge was refused. Returned, not raised."""


class SelfDependencyError(DependencyRejection):
    pass


class UnknownMilestoneError(DependencyRejection):
    pass


class CrossTenantDependencyError(DependencyRejection):
    pass


class InvalidDependencyTypeError(DependencyRejection):
    pass


class CircularDependencyError(DependencyRejection):
    pass


@dataclass(frozen=True)
class DegenerateInputWarning:
    """Non-fatal input problem; the engine substituted a safe default and continued."""

    code: str
    message: str
    path: Optional[str] = None

    def __str__(self) -> str:
        loc = self.path or "<roadmap>"
        return f"{loc}: {self.code}: {self.message}"
