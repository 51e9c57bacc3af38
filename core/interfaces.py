from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from core.domain import ExchangeRate, ExpenseRecord, Milestone, Project, Task, TimesheetEntry, UserProfile


class ProjectRepository(ABC):
    @abstractmethod
    def get(self, project_id: str) -> Optional[Project]: ...

    @abstractmethod
    def list_all(self) -> List[Project]: ...


class MilestoneRepository(ABC):
    @abstractmethod
    def list_by_project(self, project_id: str) -> List[Milestone]: ...


class TaskRepository(ABC):
    @abstractmethod
    def list_by_project(self, project_id: str) -> List[Task]: ...


class TimesheetRepository(ABC):
    @abstractmethod
    def list_by_project(self, project_id: str) -> List[TimesheetEntry]: ...


class ExpenseRepository(ABC):
    @abstractmethod
    def list_by_project(self, project_id: str) -> List[ExpenseRecord]: ...


class UserRepository(ABC):
    @abstractmethod
    def list_by_emails(self, emails: Iterable[str]) -> List[UserProfile]: ...


class ExchangeRateRepository(ABC):
    @abstractmethod
    def get(self, currency: str, base_currency: str = "EUR") -> Optional[ExchangeRate]: ...

    @abstractmethod
    def upsert(self, rate: ExchangeRate) -> None: ...


class ConversionRateService(ABC):
    """Remote or stored source of multiplicative currency rates.

    Implementations raise RateUnavailableError when a pair cannot be priced.
    """

    @abstractmethod
    def get_rate(self, from_currency: str, to_currency: str) -> float: ...


__all__ = [
    "ProjectRepository",
    "MilestoneRepository",
    "TaskRepository",
    "TimesheetRepository",
    "ExpenseRepository",
    "UserRepository",
    "ExchangeRateRepository",
    "ConversionRateService",
]
