from __future__ import annotations

import logging


_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=_FORMAT)
    # httpx logs every request at INFO; the tiled provider issues thousands.
    logging.getLogger("httpx").setLevel(logging.WARNING)
