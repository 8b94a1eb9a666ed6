import logging
import time
from functools import wraps
from typing import Callable


def setup_logging(level: str | int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def log_latency(operation_name: str):
    def decorator(func: Callable):
        logger = logging.getLogger(func.__module__)

        @wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                latency_ms = (time.perf_counter() - start) * 1000
                logger.error(
                    f'{operation_name} | latency_ms={latency_ms:.2f} '
                    f'| status=error | error={e!r}')
                raise
            latency_ms = (time.perf_counter() - start) * 1000
            logger.info(
                f'{operation_name} | latency_ms={latency_ms:.2f} '
                f'| status=success')
            return result

        return wrapper

    return decorator
