"""Bootstrap — one call that wires logging and the shared data source from settings.

Invariants:
    - Calling configure() again replaces the shared data source
    - Nothing runs at import time

Design Decisions:
    - Mirrors an application lifespan hook: setup_logging, then init_data_source
"""

import logging

from recordkit.config import Settings, get_settings
from recordkit.infrastructure.database import SqlExecutor, init_data_source
from recordkit.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


def configure(settings: Settings | None = None, with_logging: bool = True) -> SqlExecutor:
    """Initialize logging and the shared SqlExecutor. Returns the executor."""
    settings = settings or get_settings()
    if with_logging:
        setup_logging(settings.log_level, settings.log_format)
    executor = init_data_source(settings.database_url, echo=settings.database_echo)
    logger.info("recordkit data source initialized")
    return executor
