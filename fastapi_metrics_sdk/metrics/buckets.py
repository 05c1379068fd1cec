"""
Default histogram buckets and latency helpers.

Bucket bounds are expressed in milliseconds, finer at low latencies and
coarser at high ones.
"""

import time
from datetime import datetime, timezone
from typing import Union


DEFAULT_LATENCY_BUCKETS = (
    1.0, 2.0, 3.0, 4.0, 5.0,
    6.0, 8.0, 10.0, 13.0, 16.0,
    20.0, 25.0, 30.0, 40.0, 50.0,
    65.0, 80.0, 100.0, 130.0, 160.0,
    200.0, 250.0, 300.0, 400.0, 500.0,
    650.0, 800.0, 1000.0, 2000.0, 5000.0,
    10000.0, 20000.0, 50000.0, 100000.0,
)


def since_ms(start: Union[datetime, float]) -> float:
    """
    Milliseconds elapsed since ``start``, truncated to a whole number.

    Args:
        start: a ``datetime`` (naive values are taken as local time) or
            epoch seconds as returned by ``time.time()``

    Example:
        started = time.time()
        handle_request()
        latency.observe(since_ms(started), "GET")
    """
    if isinstance(start, datetime):
        if start.tzinfo is None:
            elapsed = (datetime.now() - start).total_seconds()
        else:
            elapsed = (datetime.now(timezone.utc) - start).total_seconds()
    else:
        elapsed = time.time() - start

    return float(int(elapsed * 1000))
