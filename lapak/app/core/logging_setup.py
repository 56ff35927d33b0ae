from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from lapak.app.core import config

_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    """
    Configure le logger racine une seule fois.

    - stream handler (stderr) toujours présent
    - fichier rotatif si LOG_FILE est défini
    - les loggers uvicorn/fastapi suivent le même niveau
    """
    level = (level or config.LOG_LEVEL).upper()
    log_file = log_file or config.LOG_FILE

    root = logging.getLogger()
    root.setLevel(level)
    fmt = logging.Formatter(_FORMAT)

    # évite les handlers dupliqués (reload, tests)
    if not any(getattr(h, "_lapak", False) for h in root.handlers):
        stream = logging.StreamHandler()
        stream.setFormatter(fmt)
        stream._lapak = True  # type: ignore[attr-defined]
        root.addHandler(stream)

        if log_file:
            path = Path(log_file).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.handlers.RotatingFileHandler(
                path, maxBytes=5_000_000, backupCount=3, encoding="utf-8"
            )
            handler.setFormatter(fmt)
            handler._lapak = True  # type: ignore[attr-defined]
            root.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        logging.getLogger(name).setLevel(level)
