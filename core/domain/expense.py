from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from core.domain.enums import ExpenseStatus
from core.domain.identifiers import generate_id


@dataclass
class ExpenseRecord:
    id: str
    project_id: str
    amount: float
    currency: Optional[str] = None
    milestone_id: Optional[str] = None
    category: str = ""
    description: str = ""
    vendor: Optional[str] = None
    status: ExpenseStatus = ExpenseStatus.APPROVED
    date: Optional[date] = None

    @staticmethod
    def create(project_id: str, amount: float, **extra) -> "ExpenseRecord":
        return ExpenseRecord(
            id=generate_id(),
            project_id=project_id,
            amount=amount,
            **extra,
        )


__all__ = ["ExpenseRecord"]
