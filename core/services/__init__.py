from .profitability import (
    ConversionRateCache,
    PortfolioSummary,
    ProfitabilityReportView,
    ProfitabilityService,
    ProfitabilitySnapshot,
)

__all__ = [
    "ConversionRateCache",
    "ProfitabilityService",
    "ProfitabilityReportView",
    "ProfitabilitySnapshot",
    "PortfolioSummary",
]
