from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(level: str | None) -> None:
    """
    Configure the root logger. Safe to call more than once (create_app + manage.py).

    uvicorn is started with log_config=None, so its loggers propagate here too.
    """
    lvl = getattr(logging, str(level or "INFO").upper(), logging.INFO)
    logging.basicConfig(level=lvl, format=LOG_FORMAT, stream=sys.stdout)
    logging.getLogger().setLevel(lvl)

    # SQL echo is far too chatty below WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
