from __future__ import annotations

import argparse
import os
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from address_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from address_import.db.memory_store import InMemoryAddressStore
from address_import.db.postgres_store import PostgresAddressStore
from address_import.db.store import AddressStore, StorageError
from address_import.excel.reader import ParseError, file_kind_from_name
from address_import.excel.template import generate_address_template
from address_import.logging.error_log import ErrorLogBuffer
from address_import.logging.init import log_summary, setup_logging
from address_import.models.config_models import ImportConfig
from address_import.models.import_result import ChunkStatsAccumulator
from address_import.models.template_field import AddressType
from address_import.models.validation import ValidationResult
from address_import.services.default_policies import ensure_default_policies
from address_import.services.pipeline import commit, generate_error_artifact, validate_upload
from address_import.services.summary import render_import_summary, render_validation_summary

"""CLI entrypoint.

    python -m address_import.cli [--config PATH] [--debug] COMMAND ...

Commands:
- validate FILE --project P --type T [--errors-out X]   preview only, never writes
- import FILE --project P --type T [--errors-out X]     preview, then chunked commit
- template --project P --type T --out X                  download template
- init-settings --project P                              create default policies

Exit codes: 0 success, 1 fatal (config / parse / database), 2 partial
(validation errors or rolled back chunks).
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _resolve_dsn(cfg: ImportConfig) -> str:
    """Build the connection string.

    接続情報の解決優先順位:
        1. `.env` で読み込まれた環境変数 (main() で上書きモード読み込み済み)
           - DATABASE_URL / PGDSN があれば DSN 全体をそのまま使用
           - 個別 PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
        2. config/import.yml の database セクション (不足分のフォールバック)
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _open_store(cfg: ImportConfig) -> Iterator[AddressStore]:  # pragma: no cover (thin wrapper)
    """Yield the storage backend for this run.

    DISABLE_DB_CONNECT=1 selects the in-memory store (dry-run); otherwise a
    psycopg2 connection in autocommit mode is opened, since PostgresAddressStore
    issues BEGIN / COMMIT itself.
    """
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        yield InMemoryAddressStore()
        return

    conn = psycopg2.connect(_resolve_dsn(cfg))
    try:
        conn.autocommit = True
        yield PostgresAddressStore(conn)
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True により .env の値で既存環境変数を上書きし、PostgreSQL 接続情報を最優先化。
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="address_import", description="Address bulk importer")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to import.yml")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    types = [t.value for t in AddressType]
    for name, help_text in (("validate", "Validate a file without writing"),
                            ("import", "Validate and import a file")):
        sp = sub.add_parser(name, help=help_text)
        sp.add_argument("file", type=Path)
        sp.add_argument("--project", required=True)
        sp.add_argument("--type", dest="address_type", required=True, choices=types)
        sp.add_argument("--errors-out", type=Path, default=None, help="Write an error report (.xlsx)")

    tp = sub.add_parser("template", help="Write the import template for a project")
    tp.add_argument("--project", required=True)
    tp.add_argument("--type", dest="address_type", required=True, choices=types)
    tp.add_argument("--out", type=Path, required=True)

    ip = sub.add_parser("init-settings", help="Create default required-field settings")
    ip.add_argument("--project", required=True)
    return p.parse_args(argv)


def _write_error_report(path: Path | None, errors, logger) -> None:
    if path is None or not errors:
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(generate_error_artifact(errors))
    logger.info(f"error report written: {path}")


def _run_validate(args, store: AddressStore, logger) -> ValidationResult:
    result = validate_upload(
        store,
        args.file.read_bytes(),
        file_kind_from_name(args.file.name),
        args.project,
        args.address_type,
        file_name=args.file.name,
    )
    for column in result.unrecognized_columns:
        logger.warning(f"unrecognized column ignored: {column}")
    for e in result.errors:
        logger.debug(f"row={e.row} field={e.field} error={e.message}")
    return result


def _cmd_validate(args, cfg: ImportConfig, store: AddressStore, logger) -> int:
    result = _run_validate(args, store, logger)
    _write_error_report(args.errors_out, result.errors, logger)
    log_summary(render_validation_summary(result).removeprefix("SUMMARY "))
    return EXIT_PARTIAL_FAILURE if result.has_errors else EXIT_SUCCESS_ALL


def _cmd_import(args, cfg: ImportConfig, store: AddressStore, logger) -> int:
    preview = _run_validate(args, store, logger)
    if preview.has_errors:
        # プレビューで不合格の行がある場合は書き込みを行わない
        logger.error(f"validation failed for {preview.error_rows} row(s); nothing imported")
        _write_error_report(args.errors_out, preview.errors, logger)
        log_summary(render_validation_summary(preview).removeprefix("SUMMARY "))
        return EXIT_PARTIAL_FAILURE

    error_log = ErrorLogBuffer(cfg.error_log_dir)
    stats = ChunkStatsAccumulator()
    started = time.perf_counter()
    result = commit(
        store,
        args.project,
        args.address_type,
        preview.parsed_rows,
        chunk_size=cfg.chunk_size,
        error_log=error_log,
        stats=stats,
    )
    elapsed = time.perf_counter() - started

    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"error log written: {log_path}")
    _write_error_report(args.errors_out, result.errors, logger)
    log_summary(render_import_summary(result, elapsed, stats).removeprefix("SUMMARY "))
    return EXIT_PARTIAL_FAILURE if result.rolled_back else EXIT_SUCCESS_ALL


def _cmd_template(args, cfg: ImportConfig, store: AddressStore, logger) -> int:
    data = generate_address_template(store, args.project, args.address_type)
    args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_bytes(data)
    logger.info(f"template written: {args.out}")
    return EXIT_SUCCESS_ALL


def _cmd_init_settings(args, cfg: ImportConfig, store: AddressStore, logger) -> int:
    created = ensure_default_policies(store, args.project)
    if created:
        logger.info(f"default settings created: {', '.join(t.value for t in created)}")
    else:
        logger.info("settings already present for every address type")
    return EXIT_SUCCESS_ALL


_COMMANDS = {
    "validate": _cmd_validate,
    "import": _cmd_import,
    "template": _cmd_template,
    "init-settings": _cmd_init_settings,
}


def main(argv: list[str] | None = None) -> int:
    # NOTE: 空リスト [] を渡されたときに sys.argv[1:] が混入しないよう None のときのみ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    # .env を最優先で読み込む (DB 接続パラメータ優先順位保証)
    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if getattr(args, "file", None) is not None and not args.file.exists():
        logger.error(f"file not found: {args.file}")
        return EXIT_FATAL

    handler = _COMMANDS[args.command]
    try:
        with _open_store(cfg) as store:
            return handler(args, cfg, store, logger)
    except ParseError as e:
        logger.error(f"parse: {e}")
        return EXIT_FATAL
    except (psycopg2.Error, StorageError) as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
