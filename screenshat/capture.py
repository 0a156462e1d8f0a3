"""Full-page screenshots across a range of widths.

Playwright's clip region needs a height, and we don't know how tall the page
is at a given width until we've rendered it. With an unbounded policy we
clip to a generous ceiling; a screenshot that comes back as tall as the
ceiling was probably cut off, so the ceiling is raised past what we got and
the width is captured again.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from PIL import Image

from screenshat.browser import DEFAULT_VIEWPORT_HEIGHT
from screenshat.errors import Cancelled, CaptureError
from screenshat.planner import HEIGHT_STEP, CapturePlan, CaptureRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureResult:
    width: int
    measured_width: int
    measured_height: int
    path: Path
    attempts: int = 1


@dataclass
class SequenceStats:
    tallest_height: int = 0
    widest_width: int = 0

    def observe(self, result: CaptureResult) -> None:
        self.tallest_height = max(self.tallest_height, result.measured_height)
        self.widest_width = max(self.widest_width, result.measured_width)


@dataclass
class CaptureRun:
    plan: CapturePlan
    results: list[CaptureResult] = field(default_factory=list)
    stats: SequenceStats = field(default_factory=SequenceStats)


def screenshot_path(output_dir: Path, browser_name: str, width: int, digits: int) -> Path:
    return Path(output_dir) / f"screenshot-{browser_name}-{width:0{digits}d}.png"


def frame_pattern(output_dir: Path, browser_name: str, digits: int) -> str:
    """ffmpeg image2 pattern matching every :func:`screenshot_path` of a run."""
    return str(Path(output_dir) / f"screenshot-{browser_name}-%0{digits}d.png")


def measure_image(path: Path) -> tuple[int, int]:
    with Image.open(path) as img:
        return img.size


def _shoot(page, path: Path, width: int, height: int) -> tuple[int, int]:
    page.screenshot(
        path=str(path),
        full_page=True,
        clip={"x": 0, "y": 0, "width": width, "height": height},
    )
    return measure_image(path)


def capture_width(
    page,
    plan: CapturePlan,
    request: CaptureRequest,
    path: Path,
    *,
    log: logging.Logger | None = None,
) -> CaptureResult:
    log = log or logger
    width, bound = request.width, request.height_bound
    page.set_viewport_size({"width": width, "height": DEFAULT_VIEWPORT_HEIGHT})
    measured_width, measured_height = _shoot(page, path, width, bound)
    attempts = 1
    while plan.grows and measured_height >= bound:
        log.warning("Height limit (%d) reached at %dpx wide, increasing.", bound, width)
        bound = measured_height + HEIGHT_STEP
        measured_width, measured_height = _shoot(page, path, width, bound)
        attempts += 1
    return CaptureResult(
        width=width,
        measured_width=measured_width,
        measured_height=measured_height,
        path=path,
        attempts=attempts,
    )


def capture_sequence(
    page,
    plan: CapturePlan,
    output_dir: Path,
    browser_name: str,
    *,
    on_capture: Optional[Callable[[CaptureResult], None]] = None,
    cancel: Optional[threading.Event] = None,
    log: logging.Logger | None = None,
) -> CaptureRun:
    """Capture every width in ``plan`` into ``output_dir``, narrowest first.

    Any failure aborts the whole run: a sequence with a hole in it can't be
    fed to the encoder as a numbered pattern.
    """
    log = log or logger
    run = CaptureRun(plan=plan)
    for request in plan.requests():
        width = request.width
        if cancel is not None and cancel.is_set():
            raise Cancelled(f"Cancelled before capturing {width}px")
        path = screenshot_path(output_dir, browser_name, width, plan.width_digits)
        log.debug("Taking screenshot at %d pixels wide", width)
        try:
            result = capture_width(page, plan, request, path, log=log)
        except Exception as exc:
            # Ctrl-C reaches the browser driver too; report that as a cancel
            if cancel is not None and cancel.is_set():
                raise Cancelled(f"Cancelled while capturing {width}px") from exc
            raise CaptureError(f"Screenshot at {width}px failed: {exc}") from exc
        run.stats.observe(result)
        run.results.append(result)
        log.debug(
            "Screenshot saved to %s (%dx%d)",
            path,
            result.measured_width,
            result.measured_height,
        )
        if on_capture is not None:
            on_capture(result)
    return run
