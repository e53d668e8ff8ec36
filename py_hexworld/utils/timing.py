"""Phase timing helpers."""

import time

import structlog

logger = structlog.get_logger()


def run_phase(name: str, func, *args, **kwargs):
    """
    Run one generation phase and log how long it took.

    Args:
        name: Phase name used in log events
        func: Callable implementing the phase
        *args: Positional arguments for ``func``
        **kwargs: Keyword arguments for ``func``

    Returns:
        Whatever ``func`` returns
    """
    logger.debug("Phase started", phase=name)
    start = time.perf_counter()
    result = func(*args, **kwargs)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info("Phase completed", phase=name, elapsed_ms=round(elapsed_ms, 2))
    return result
