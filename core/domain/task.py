from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.domain.enums import TaskStatus
from core.domain.identifiers import generate_id


@dataclass
class Task:
    id: str
    project_id: str
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    milestone_id: Optional[str] = None

    @staticmethod
    def create(project_id: str, title: str, **extra) -> "Task":
        return Task(
            id=generate_id(),
            project_id=project_id,
            title=title,
            **extra,
        )


__all__ = ["Task"]
