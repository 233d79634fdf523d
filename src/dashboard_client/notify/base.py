from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from dashboard_client.api.models import ClassifiedError


@dataclass(frozen=True, slots=True)
class Notification:
    title: str
    description: str
    closable: bool = True
    level: str = "error"  # error|warning|info

    @classmethod
    def from_error(cls, err: ClassifiedError) -> Notification:
        return cls(title=err.title, description=err.description, closable=True, level="error")


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...
