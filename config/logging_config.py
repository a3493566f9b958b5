"""Rich-handler logging preset."""
import logging
from typing import Optional
from rich.logging import RichHandler
from .app_config import settings

NOISY_LOGGERS = ("pymodbus",)

def configure(level: Optional[str] = None):
    level = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(name)-22s │ %(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(rich_tracebacks=True, markup=False)],
    )
    # pymodbus logs every retry and frame at INFO/DEBUG
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, logging.getLogger().level))
