from __future__ import annotations

import argparse
import os
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, load_config
from ..csvfile.template import TEMPLATE_FILENAME, write_template
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import log_summary, setup_logging
from ..models.student import CommittedStudent
from ..models.validation import ParseResult
from ..services.committer import BatchCommitter
from ..services.converter import convert_to_students
from ..services.crm_sync import CrmLinkage, CrmSyncDispatcher, WebhookCrmSink
from ..services.file_validator import validate_student_file
from ..services.progress import GroupProgressBar
from ..services.summary import get_import_summary, render_summary_line
from ..store.base import StoreUnavailableError, StudentStore
from ..store.memory import InMemoryStudentStore

"""CLI entrypoint.

Subcommands:
- template: write the sample CSV operators fill in
- validate: check a CSV and report every row diagnostic, nothing is written
- import:   validate, then commit the valid rows group by group

Exit codes: 0 everything succeeded, 2 partial (invalid rows or failed
commits), 1 fatal (config, unreadable file, missing columns, no store).
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; its values take precedence over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="student-import", description="Bulk student CSV importer")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to import.yml")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    t = sub.add_parser("template", help="Write the CSV template with a sample row")
    t.add_argument("--output", type=Path, default=Path(TEMPLATE_FILENAME))

    v = sub.add_parser("validate", help="Validate a student CSV without importing")
    v.add_argument("file", type=Path)

    i = sub.add_parser("import", help="Validate and import a student CSV")
    i.add_argument("file", type=Path)
    i.add_argument("--strict", action="store_true", help="Import nothing if any row is invalid")
    i.add_argument("--property-id", help="Property the students are assigned to")
    i.add_argument("--property-crm-id", help="CRM record id of the property")
    i.add_argument("--provider-crm-id", help="CRM record id of the provider")
    i.add_argument("--user-crm-id", default="", help="CRM record id of the importing user")
    i.add_argument("--provider-id", default="", help="Provider id in this system")
    return p.parse_args(argv)


def _today(cfg: ImportConfig) -> date:
    try:
        return datetime.now(ZoneInfo(cfg.timezone)).date()
    except ZoneInfoNotFoundError:
        return datetime.now(ZoneInfo("UTC")).date()


@contextmanager
def _open_store(cfg: ImportConfig, logger) -> Iterator[StudentStore]:
    """Yield the configured store; in-memory when DISABLE_DB_CONNECT=1."""
    store_cfg = cfg.store
    if store_cfg.backend == "memory" or os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.info("mode=mock (in-memory store, nothing is persisted)")
        yield InMemoryStudentStore(
            max_write_operations=store_cfg.max_write_operations,
            max_query_values=store_cfg.max_query_values,
        )
        return

    from ..store.postgres import PostgresStudentStore

    store = PostgresStudentStore.connect(
        cfg.database.resolve_dsn(),
        max_write_operations=store_cfg.max_write_operations,
        max_query_values=store_cfg.max_query_values,
        metrics_callback=lambda m: logger.debug(
            f"atomic write operations={m.operations} elapsed_sec={m.elapsed_seconds:.3f}"
        ),
    )
    try:
        store.ensure_collections([store_cfg.addresses_collection, store_cfg.students_collection])
        logger.info("mode=live")
        yield store
    finally:
        store.close()


def _build_dispatcher(cfg: ImportConfig, logger) -> CrmSyncDispatcher | None:
    url = cfg.crm.resolved_url
    if not url:
        logger.debug("crm sync disabled (no student_sync_url)")
        return None
    sink = WebhookCrmSink(url, timeout=cfg.crm.timeout_seconds)

    def on_linked(committed: CommittedStudent, dataverse_id: str) -> None:
        logger.info(f"crm linked student {committed.student_id} -> {dataverse_id}")

    return CrmSyncDispatcher(
        sink, queue_size=cfg.crm.queue_size, workers=cfg.crm.workers, on_linked=on_linked
    )


def _read_and_validate(path: Path, cfg: ImportConfig, error_log: ErrorLogBuffer, logger) -> ParseResult | None:
    try:
        data = path.read_bytes()
    except OSError as e:
        logger.error(f"cannot read {path}: {e}")
        return None
    parsed = validate_student_file(data, today=_today(cfg))
    error_log.record_parse_result(path.name, parsed)
    if parsed.structural_error is not None:
        logger.error(f"{path.name}: {parsed.structural_error}")
        return None
    for err in parsed.iter_errors():
        logger.warning(f"row {err.row} {err.field}: {err.message}")
    return parsed


def _cmd_template(args: argparse.Namespace, logger) -> int:
    out = write_template(args.output)
    logger.info(f"template written: {out}")
    return EXIT_SUCCESS_ALL


def _cmd_validate(args: argparse.Namespace, cfg: ImportConfig, logger) -> int:
    error_log = ErrorLogBuffer()
    parsed = _read_and_validate(args.file, cfg, error_log, logger)
    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"error log: {log_path}")
    if parsed is None:
        return EXIT_FATAL
    log_summary(f"rows={len(parsed.rows)} valid={parsed.valid_count} invalid={parsed.invalid_count}")
    return EXIT_PARTIAL_FAILURE if parsed.invalid_count else EXIT_SUCCESS_ALL


def _cmd_import(args: argparse.Namespace, cfg: ImportConfig, logger) -> int:
    start = time.monotonic()
    error_log = ErrorLogBuffer()
    parsed = _read_and_validate(args.file, cfg, error_log, logger)
    if parsed is None:
        error_log.flush()
        return EXIT_FATAL
    if args.strict and parsed.invalid_count:
        logger.error(f"{parsed.invalid_count} invalid rows, nothing imported (--strict)")
        error_log.flush()
        return EXIT_PARTIAL_FAILURE

    students = convert_to_students(parsed.rows, parsed.errors, today=_today(cfg))
    linkage = CrmLinkage(
        property_dataverse_id=args.property_crm_id,
        provider_dataverse_id=args.provider_crm_id,
        user_dataverse_id=args.user_crm_id,
        provider_id=args.provider_id,
        property_id=args.property_id,
    )
    dispatcher = _build_dispatcher(cfg, logger)
    try:
        with _open_store(cfg, logger) as store, GroupProgressBar() as bar:
            committer = BatchCommitter(
                store,
                group_size=cfg.store.group_size,
                duplicate_chunk_size=cfg.store.duplicate_query_chunk_size,
                dispatcher=dispatcher,
                students_collection=cfg.store.students_collection,
                addresses_collection=cfg.store.addresses_collection,
            )
            result = committer.commit(students, on_progress=bar, crm_linkage=linkage)
    except StoreUnavailableError as e:
        logger.error(f"store: {e}")
        error_log.flush()
        return EXIT_FATAL
    finally:
        if dispatcher is not None:
            dispatcher.close()

    error_log.record_import_result(args.file.name, result)
    log_path = error_log.flush()
    for line in get_import_summary(result).splitlines():
        logger.info(line)
    if log_path is not None:
        logger.info(f"error log: {log_path}")

    summary_line = render_summary_line(
        result, invalid_rows=parsed.invalid_count, elapsed_seconds=time.monotonic() - start
    )
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])

    if parsed.invalid_count or result.error_count:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    # None only: an explicit [] must not fall back to sys.argv (pytest flags)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    if args.command == "template":
        return _cmd_template(args, logger)

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "validate":
        return _cmd_validate(args, cfg, logger)
    return _cmd_import(args, cfg, logger)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
