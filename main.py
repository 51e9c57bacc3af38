# main.py
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date

from core.exceptions import DomainError
from core.reporting.api import generate_profitability_excel
from infra.config import Settings
from infra.db.base import build_engine, build_session_factory
from infra.logging_config import setup_logging
from infra.migrate import run_migrations
from infra.operational_support import bind_trace_id
from infra.services import build_service_graph

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Export a project profitability report to Excel.")
    parser.add_argument("project_id")
    parser.add_argument("output", help="Destination .xlsx path")
    parser.add_argument("--currency", help="Display currency (defaults to PP_DISPLAY_CURRENCY)")
    parser.add_argument("--milestone", dest="milestone_id")
    parser.add_argument("--from", dest="date_from", type=date.fromisoformat)
    parser.add_argument("--to", dest="date_to", type=date.fromisoformat)
    parser.add_argument(
        "--rate-timeout",
        type=float,
        default=15.0,
        help="Seconds to wait for pending conversion rates before exporting",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logging()
    settings = Settings.from_env()
    run_migrations(settings.db_url)

    session = build_session_factory(build_engine(settings.db_url))()
    graph = build_service_graph(session, settings)
    with bind_trace_id() as trace_id:
        view = graph.open_report_view(
            args.project_id,
            args.currency,
            milestone_id=args.milestone_id,
            date_from=args.date_from,
            date_to=args.date_to,
        )
        try:
            view.refresh()
            if not view.wait_for_rates(args.rate_timeout):
                logger.warning("Exporting with conversion rates still pending (trace=%s)", trace_id)
            snapshot = view.refresh()
            path = generate_profitability_excel(snapshot, args.output)
        except DomainError as exc:
            logger.error("Profitability export failed [%s]: %s", exc.code, exc)
            return 1
        finally:
            view.close()
            graph.close()
            session.close()

    logger.info("Profitability report written to %s", path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
