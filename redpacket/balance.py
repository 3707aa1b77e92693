"""Saturating arithmetic over non-negative integer balances.

Results clamp to ``[0, ceiling]`` instead of wrapping or going negative.
"""


def saturating_mul(a: int, b: int, ceiling: int) -> int:
    return min(a * b, ceiling)


def saturating_add(a: int, b: int, ceiling: int) -> int:
    return min(a + b, ceiling)


def saturating_sub(a: int, b: int) -> int:
    return max(a - b, 0)
