from __future__ import annotations

import logging, os, sys, uuid
from logging.handlers import RotatingFileHandler

from pythonjsonlogger.json import JsonFormatter

PLAIN_FORMAT = '%(asctime)s %(levelname)-8s [%(run_id)s] %(name)s: %(message)s'
JSON_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s %(run_id)s'


def _build_formatter(json_mode: bool) -> logging.Formatter:
    if json_mode:
        return JsonFormatter(fmt=JSON_FORMAT, datefmt='%Y-%m-%dT%H:%M:%S%z')
    return logging.Formatter(fmt=PLAIN_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')


def _install_run_id(run_id: str) -> None:
    # jeder LogRecord bekommt run_id, auch die von httpx & Co.
    old_factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs):
        record = old_factory(*args, **kwargs)
        if not hasattr(record, "run_id"):
            record.run_id = run_id
        return record

    logging.setLogRecordFactory(record_factory)


def setup_logging_from_env() -> str:
    """Configure the root logger from LOG_* env vars and return the export's run id.

    Progress lines ("read N of M total issues ...") go to stdout; LOG_FILE adds
    a rotating file next to it.
    """
    run_id = os.getenv("RUN_ID", str(uuid.uuid4()))
    _install_run_id(run_id)

    log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    fmt = _build_formatter(os.getenv("LOG_JSON", "false").lower() == "true")

    root = logging.getLogger()
    root.setLevel(log_level)
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(fmt)
    root.addHandler(console)

    log = logging.getLogger(__name__)
    log_file = os.getenv("LOG_FILE")
    if log_file:
        try:
            fh = RotatingFileHandler(
                log_file,
                maxBytes=int(os.getenv("LOG_MAX_BYTES", "10485760")),
                backupCount=int(os.getenv("LOG_BACKUP_COUNT", "5")),
                encoding="utf-8",
            )
        except OSError as e:
            log.warning("Log file not writable, console only", extra={"log_file": log_file, "error": str(e)})
        else:
            fh.setFormatter(fmt)
            root.addHandler(fh)

    if log_level > logging.DEBUG:
        for noisy in ("httpx", "httpcore"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

    log.info("Logging initialized", extra={"level": logging.getLevelName(log_level)})
    return run_id
