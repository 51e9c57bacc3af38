from .currency import FALLBACK_RATE, ConversionRateCache
from .models import (
    BudgetResolution,
    CostRow,
    HealthScore,
    MilestonePnL,
    PnLAggregation,
    PnLTotals,
    PortfolioSummary,
    ProfitabilitySnapshot,
    UnallocatedPnL,
)
from .aggregator import aggregate
from .budget import resolve_budget, resolve_expense_budget, retainer_periods
from .health import score
from .leakage import detect_leakage, overdue_cost_impact
from .normalizer import normalize
from .service import ProfitabilityService
from .view import ProfitabilityReportView

__all__ = [
    "FALLBACK_RATE",
    "ConversionRateCache",
    "CostRow",
    "BudgetResolution",
    "MilestonePnL",
    "UnallocatedPnL",
    "PnLTotals",
    "PnLAggregation",
    "HealthScore",
    "ProfitabilitySnapshot",
    "PortfolioSummary",
    "normalize",
    "resolve_budget",
    "resolve_expense_budget",
    "retainer_periods",
    "aggregate",
    "score",
    "detect_leakage",
    "overdue_cost_impact",
    "ProfitabilityService",
    "ProfitabilityReportView",
]
