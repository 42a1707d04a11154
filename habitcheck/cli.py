#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
HabitCheck - Command line interface
Usage: habitcheck serve|stats|export [options]
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from habitcheck.config import config
from habitcheck.core.analytics import compute_snapshot_stats
from habitcheck.core.database import DatabaseManager, DatabaseError
from habitcheck.core.models import HabitCheckError
from habitcheck.core.store import EntryStore
from habitcheck.services.data_export import export_to_json, export_entries_csv, export_cough_logs_csv
from habitcheck.utils.datetime_utils import parse_timestamp
from habitcheck.utils.logger import configure_logging, setup_logger

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='habitcheck', description='Habit tracker and cough log')
    parser.add_argument('--log-file', help='Also write logs to this rotating file')
    subparsers = parser.add_subparsers(dest='command', required=True)

    serve = subparsers.add_parser('serve', help='Run the web dashboard')
    serve.add_argument('--host', default=config.server.host, help='Server host')
    serve.add_argument('--port', type=int, default=config.server.port, help='Server port')
    serve.add_argument('--reload', action='store_true', help='Reload on code changes')

    stats = subparsers.add_parser('stats', help='Print dashboard statistics as JSON')
    stats.add_argument('--data-file', type=Path, default=None, help='Database file to read')
    stats.add_argument('--now', default=None, help='Reference time in ISO 8601')

    export = subparsers.add_parser('export', help='Export all data')
    export.add_argument('--format', choices=['json', 'csv'], default='json')
    export.add_argument('--output', type=Path, default=None,
                        help='Output file for json, output directory for csv (default: EXPORT_DIR)')
    export.add_argument('--data-file', type=Path, default=None, help='Database file to read')

    return parser


def _load_store(data_file: Optional[Path]) -> EntryStore:
    """Store for one-shot commands; the data file is never written"""
    return EntryStore(DatabaseManager(data_file=data_file, auto_backup=False, read_only=True)).initialize()


def run_serve(args) -> int:
    import uvicorn

    logger.info(f"🚀 Starting web server on http://{args.host}:{args.port}")
    logger.info(f"📚 API docs: http://{args.host}:{args.port}/api/docs")
    uvicorn.run(
        "habitcheck.dashboard.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=config.log_level.value.lower(),
        server_header=False
    )
    return 0


def run_stats(args) -> int:
    now = parse_timestamp(args.now) if args.now else None
    store = _load_store(args.data_file)
    stats = compute_snapshot_stats(store.snapshot(), now)
    print(json.dumps(stats.to_dict(), ensure_ascii=False, indent=2))
    return 0


def run_export(args) -> int:
    snapshot = _load_store(args.data_file).snapshot()
    output = args.output or config.export_dir
    if args.output is None and args.format == 'json':
        output = output / f"habitcheck_export_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"

    if args.format == 'json':
        written = [export_to_json(snapshot, output)]
    else:
        written = [
            export_entries_csv(snapshot, output / 'habit_entries.csv'),
            export_cough_logs_csv(snapshot, output / 'cough_logs.csv')
        ]

    for path in written:
        print(path)
    return 0


COMMANDS = {
    'serve': run_serve,
    'stats': run_stats,
    'export': run_export,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging(config)
    if args.log_file:
        setup_logger(args.log_file)

    try:
        return COMMANDS[args.command](args)
    except (HabitCheckError, DatabaseError, ValueError, OSError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("👋 Stopped by user")
        return 0


if __name__ == '__main__':
    sys.exit(main())
