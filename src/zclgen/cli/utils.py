"""CLI utilities."""

from pathlib import Path

import click

from zclgen.config import ZclGenConfig, load_config
from zclgen.core.errors import ZclGenError
from zclgen.core.logging import configure_logging, set_request_id
from zclgen.store.database import Database


def start_run() -> ZclGenConfig:
    """Load configuration, apply its logging section and tag the run.

    ``-v`` on the root command forces DEBUG regardless of the configured level.

    Raises:
        click.ClickException: If configuration is invalid.
    """
    try:
        config = load_config()
    except ZclGenError as e:
        raise click.ClickException(str(e)) from e

    ctx = click.get_current_context(silent=True)
    root = ctx.find_root() if ctx is not None else None
    logging_config = config.logging
    if root is not None and root.obj and root.obj.get("verbose"):
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)
    set_request_id()
    return config


def open_database(config: ZclGenConfig, db_path: Path | None) -> Database:
    """Open (and create if needed) the store.

    Without ``--db`` the path comes from configuration
    (``database.path``, overridable via ``ZCLGEN__DATABASE__PATH``).
    """
    path = db_path or Path(config.database.path)
    path.parent.mkdir(parents=True, exist_ok=True)
    db = Database(path, busy_timeout_ms=config.database.busy_timeout_ms)
    db.create_all()
    return db
