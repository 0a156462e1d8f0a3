"""Decide which widths to capture and how tall each first attempt may be."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from screenshat.errors import UsageError

# Starting clip height when the page height is unknown. Tall enough that most
# pages fit on the first attempt.
DEFAULT_HEIGHT_CEILING = 10000
HEIGHT_STEP = 1000
FULL_HEIGHT = "full"


@dataclass(frozen=True)
class HeightPolicy:
    limit: Optional[int] = None

    @classmethod
    def parse(cls, value: str | int) -> "HeightPolicy":
        if isinstance(value, str):
            if value.strip().lower() == FULL_HEIGHT:
                return cls(None)
            try:
                value = int(value, 10)
            except ValueError:
                raise UsageError(
                    f'Max height must be a number or the word "{FULL_HEIGHT}", got {value!r}'
                ) from None
        if value <= 0:
            raise UsageError(f"Max height must be positive, got {value}")
        return cls(value)

    @property
    def unbounded(self) -> bool:
        return self.limit is None


@dataclass(frozen=True)
class CaptureRequest:
    width: int
    height_bound: int


@dataclass(frozen=True)
class CapturePlan:
    min_width: int
    max_width: int
    policy: HeightPolicy
    initial_bound: int

    @property
    def widths(self) -> range:
        return range(self.min_width, self.max_width + 1)

    @property
    def grows(self) -> bool:
        return self.policy.unbounded

    @property
    def width_digits(self) -> int:
        return len(str(self.max_width))

    def __len__(self) -> int:
        return self.max_width - self.min_width + 1

    def requests(self) -> list[CaptureRequest]:
        return [CaptureRequest(width, self.initial_bound) for width in self.widths]


def plan_captures(min_width: int, max_width: int, policy: HeightPolicy) -> CapturePlan:
    if min_width <= 0 or max_width <= 0:
        raise UsageError(f"Widths must be positive, got {min_width} and {max_width}")
    if min_width > max_width:
        raise UsageError(
            f"Minimum width ({min_width}) can't be greater than maximum width ({max_width})"
        )
    bound = DEFAULT_HEIGHT_CEILING if policy.unbounded else policy.limit
    return CapturePlan(min_width=min_width, max_width=max_width, policy=policy, initial_bound=bound)
