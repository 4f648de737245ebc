from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Optional

from loguru import logger


@dataclass(slots=True)
class SolverConfig:
    """
    Configuration options for constraint solving.

    - backend: registered backend name (see solver.make_backend)
    - timeout_ms: per-query bound handed to the backend, None for no bound
    - log_queries: log every rendered SMT query at debug level
    """
    backend: str = "z3"
    timeout_ms: Optional[int] = None
    log_queries: bool = False
    debug: bool = False


def configure_logging(debug: bool = False) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if debug else "INFO", format="[{level}] {message}")
    logger.debug(f"Logging initialized (debug={debug})")
