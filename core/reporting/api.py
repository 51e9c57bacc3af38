"""Reporting API wrappers around renderer classes."""

from pathlib import Path

from core.reporting.renderers.excel import ProfitabilityExcelRenderer
from core.services.profitability.models import ProfitabilitySnapshot


def _ensure_parent(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def generate_profitability_excel(snapshot: ProfitabilitySnapshot, output_path: str | Path) -> Path:
    return ProfitabilityExcelRenderer().render(snapshot, _ensure_parent(Path(output_path)))
