#!/usr/bin/env python3
"""Retry patient-profile merges left in the pending_merges outbox.

Usage:
    python ops/retry_pending_merges.py
    python ops/retry_pending_merges.py --limit 50 --database-url sqlite:///./intake_demo.db

Exit codes:
    0 - every attempted merge was applied
    1 - at least one merge is still pending
"""

from __future__ import annotations

import argparse

from app.common.logger import setup_logger
from app.store.db import create_tables, engine_for_url, resolve_database_url
from app.store.sql_store import SqlDocumentStore
from app.submissions import SubmissionService
from config.settings import ExtractionSettings, IntakeStoreSettings, load_env_file


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--limit", type=int, default=None, help="Retry at most this many merges")
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override INTAKE_DATABASE_URL / DATABASE_URL",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    logger = setup_logger("retry_pending_merges", args.log_level)
    load_env_file()

    settings = IntakeStoreSettings()
    url = args.database_url or resolve_database_url(settings)
    engine = engine_for_url(url, settings.echo_sql)
    if settings.create_tables:
        create_tables(engine)

    service = SubmissionService(
        SqlDocumentStore(engine), midline=ExtractionSettings().body_map_midline
    )
    summary = service.retry_pending_merges(limit=args.limit)
    logger.info(
        "Attempted %d pending merge(s): %d applied, %d still pending",
        summary["attempted"],
        summary["applied"],
        summary["pending"],
    )
    return 1 if summary["pending"] else 0


if __name__ == "__main__":
    raise SystemExit(main())
