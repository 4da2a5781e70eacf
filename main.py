from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from orcidsync.config import (
    AUTHOR_SEARCH_ROWS,
    DEFAULT_CONTACT_EMAIL,
    DEFAULT_MAPPING_FILE,
    DEFAULT_STORE_FILE,
    EnrichmentStrategy,
    SyncConfig,
)
from orcidsync.exceptions import FILE_WRITE_ERRORS, MappingError
from orcidsync.log_utils import logger, LogCategory
from orcidsync.sync import run_sync


def create_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser for the sync command.
    """
    parser = argparse.ArgumentParser(
        prog="orcidsync",
        description="ORCID → Crossref → per-researcher publication store",
    )
    parser.add_argument(
        "--mapping",
        default=DEFAULT_MAPPING_FILE,
        help=f"Researcher mapping JSON (default: {DEFAULT_MAPPING_FILE})",
    )
    parser.add_argument(
        "--store",
        default=DEFAULT_STORE_FILE,
        help=f"Publication store JSON, rewritten in place (default: {DEFAULT_STORE_FILE})",
    )
    parser.add_argument(
        "--strategy",
        default=EnrichmentStrategy.HARVEST.value,
        choices=[s.value for s in EnrichmentStrategy],
        help="harvest: records built from Crossref only; per-work: ORCID works overlaid with Crossref "
             "(default: harvest)",
    )
    parser.add_argument(
        "--email",
        default=DEFAULT_CONTACT_EMAIL,
        help="Contact address sent in the User-Agent header",
    )
    parser.add_argument(
        "--rows",
        type=int,
        default=AUTHOR_SEARCH_ROWS,
        help=f"Maximum author-search results accepted per researcher (default: {AUTHOR_SEARCH_ROWS})",
    )
    parser.add_argument(
        "--no-details",
        action="store_true",
        help="per-work strategy: skip the per-work ORCID detail calls",
    )
    parser.add_argument(
        "--require-author-match",
        action="store_true",
        help="Keep only author-search results listing the researcher's family name",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch and merge but do not write the store",
    )
    parser.add_argument("--log-file", default=None, help="Mirror the log to this file")
    parser.add_argument("--quiet", action="store_true", help="Only print warnings and errors")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments, run the sync, and return an exit code: 2 when the mapping
    cannot be used, 1 when the store cannot be written, 0 otherwise.
    """
    args = create_parser().parse_args(argv)

    if args.quiet:
        logger.set_quiet()
    if args.log_file:
        logger.set_log_file(args.log_file)

    try:
        config = SyncConfig(
            author_search_result_cap=args.rows,
            enrichment_strategy=EnrichmentStrategy(args.strategy),
            fetch_details=not args.no_details,
            contact_email=args.email,
            fallback_require_author_match=args.require_author_match,
            dry_run=args.dry_run,
        )
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}", category=LogCategory.ERROR)
        return 2

    logger.step("ORCID + Crossref sync started", category=LogCategory.PLAN)
    try:
        run_sync(args.mapping, args.store, config)
    except MappingError as e:
        logger.error(str(e), category=LogCategory.ERROR)
        return 2
    except FILE_WRITE_ERRORS as e:
        logger.error(f"Cannot write store {args.store}: {e}", category=LogCategory.ERROR)
        return 1
    finally:
        logger.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
