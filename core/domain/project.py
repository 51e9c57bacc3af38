from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from core.domain.enums import BillingModel, MilestoneStatus, ProjectStatus, RetainerPeriod, RiskLevel
from core.domain.identifiers import generate_id


@dataclass
class Project:
    id: str
    name: str
    currency: Optional[str] = None
    billing_model: BillingModel = BillingModel.FIXED_PRICE
    contract_amount: Optional[float] = None
    budget: Optional[float] = None
    retainer_amount: Optional[float] = None
    retainer_period: RetainerPeriod = RetainerPeriod.MONTH
    contract_start_date: Optional[date] = None
    contract_end_date: Optional[date] = None
    start_date: Optional[date] = None
    estimated_duration: Optional[float] = None
    default_bill_rate_per_hour: Optional[float] = None
    expense_budget: Optional[float] = None
    deadline: Optional[date] = None
    status: ProjectStatus = ProjectStatus.ACTIVE
    progress: float = 0.0
    risk_level: Optional[RiskLevel] = None

    @staticmethod
    def create(name: str, **extra) -> "Project":
        return Project(
            id=generate_id(),
            name=name,
            **extra,
        )


@dataclass
class Milestone:
    id: str
    project_id: str
    name: str
    budget_value: float = 0.0
    expense_budget: float = 0.0
    due_date: Optional[date] = None
    status: MilestoneStatus = MilestoneStatus.PENDING

    @staticmethod
    def create(project_id: str, name: str, **extra) -> "Milestone":
        return Milestone(
            id=generate_id(),
            project_id=project_id,
            name=name,
            **extra,
        )


__all__ = ["Project", "Milestone"]
