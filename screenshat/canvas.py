from __future__ import annotations

from screenshat.capture import SequenceStats


def even(n: int) -> int:
    """Round ``n`` up to the nearest even number.

    yuv420p and the other chroma-subsampled formats reject odd dimensions.
    """
    if n < 0:
        raise ValueError(f"Dimension can't be negative: {n}")
    return n + (n % 2)


def canvas_size(stats: SequenceStats) -> tuple[int, int]:
    return even(stats.widest_width), even(stats.tallest_height)
