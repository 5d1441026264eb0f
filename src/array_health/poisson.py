from __future__ import annotations

import math


def _factorial(n: int) -> float:
    value = 1.0
    while n > 1:
        value *= n
        n -= 1
    return value


def pmf(rate: float, n: int) -> float:
    """Probability of exactly ``n`` events per time unit at ``rate``."""
    return rate ** n * math.exp(-rate) / _factorial(n)


def tail_at_least(rate: float, n: int) -> float:
    """Probability of ``n`` or more events per time unit at ``rate``."""
    if n == 0:
        return 1.0
    if n == 1:
        # 1 - pmf(rate, 0), without cancellation for tiny rates
        return -math.expm1(-rate)
    return 1.0 - sum(pmf(rate, k) for k in range(n))
