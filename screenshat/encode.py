"""Run ffmpeg and turn its output into events.

ffmpeg is started with ``-progress pipe:1`` so machine-readable ``key=value``
progress lines arrive on stdout; its log on stderr is merged into the same
stream so every line can be reported in order.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator, Optional, Union

from screenshat.errors import Cancelled, EncodeError

logger = logging.getLogger(__name__)

GLOBAL_ARGS = ["-hide_banner", "-nostdin", "-nostats", "-y", "-progress", "pipe:1"]

_INPUT_RE = re.compile(r"^Input #\d+, (?P<format>[^,]+), from '(?P<source>.*)':$")
_STREAM_RE = re.compile(
    r"Stream #\d+:\d+.*?: Video: (?P<codec>[^,\s]+)[^,]*, "
    r"(?P<pix_fmt>[^,(\s]+)(?:\([^)]*\))?, (?P<width>\d+)x(?P<height>\d+)"
)
_FRAME_RE = re.compile(r"^frame=\s*(?P<frame>\d+)$")


class EncodeState(Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RawLine:
    text: str


@dataclass(frozen=True)
class Details:
    info: dict


@dataclass(frozen=True)
class Progress:
    fraction: float


@dataclass(frozen=True)
class Finished:
    returncode: int

    @property
    def ok(self) -> bool:
        return self.returncode == 0


EncodeEvent = Union[RawLine, Details, Progress, Finished]


def find_ffmpeg(ffmpeg: Optional[str] = None) -> str:
    path = shutil.which(ffmpeg or "ffmpeg")
    if not path:
        raise EncodeError("ffmpeg not found in PATH")
    return path


class EncodeSupervisor:
    """One ffmpeg run for one encoder job.

    A supervisor can only be run once. ``frame_count`` is the number of
    input images and turns ffmpeg's frame counter into a 0..1 fraction.
    """

    def __init__(
        self,
        args: list[str],
        frame_count: int,
        *,
        ffmpeg: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.args = list(args)
        self.frame_count = max(1, frame_count)
        self.ffmpeg = ffmpeg
        self.cancel = cancel
        self.log = log or logger
        self.state = EncodeState.NOT_STARTED
        self.returncode: Optional[int] = None
        self.progress = 0.0
        self.details: Optional[dict] = None

    @property
    def full_args(self) -> list[str]:
        """Everything passed to ffmpeg after the executable itself."""
        return [*GLOBAL_ARGS, *self.args]

    def command(self, executable: str) -> list[str]:
        return [executable, *self.full_args]

    def _cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.is_set()

    def events(self) -> Iterator[EncodeEvent]:
        if self.state is not EncodeState.NOT_STARTED:
            raise EncodeError("Encoder has already been started")
        cmd = self.command(find_ffmpeg(self.ffmpeg))
        self.log.debug("Starting %s", cmd[0])
        pending_input: dict = {}
        with subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            bufsize=1,
        ) as process:
            self.state = EncodeState.RUNNING
            try:
                for raw in process.stdout:
                    if self._cancelled():
                        process.terminate()
                        break
                    line = raw.strip()
                    if not line:
                        continue
                    yield RawLine(line)

                    match = _FRAME_RE.match(line)
                    if match:
                        self.progress = min(1.0, int(match.group("frame")) / self.frame_count)
                        yield Progress(self.progress)
                        continue

                    if self.details is None:
                        match = _INPUT_RE.match(line)
                        if match:
                            pending_input = match.groupdict()
                            continue
                        match = _STREAM_RE.search(line)
                        if match and pending_input:
                            info = dict(pending_input)
                            info.update(match.groupdict())
                            info["width"] = int(info["width"])
                            info["height"] = int(info["height"])
                            self.details = info
                            yield Details(info)

                self.returncode = process.wait()
            finally:
                if process.poll() is None:
                    process.kill()

        # ffmpeg shares our process group, so Ctrl-C may have stopped it first
        if self._cancelled() and self.returncode != 0:
            self.state = EncodeState.CANCELLED
            raise Cancelled("Video encoding cancelled")
        if self.returncode == 0:
            self.state = EncodeState.SUCCEEDED
            self.progress = 1.0
            yield Progress(1.0)
        else:
            self.state = EncodeState.FAILED
        yield Finished(self.returncode)

    def run(self, listener: Optional[Callable[[EncodeEvent], None]] = None) -> Finished:
        """Drain :meth:`events`, raising :class:`EncodeError` if ffmpeg failed."""
        finished = None
        for event in self.events():
            if listener is not None:
                listener(event)
            if isinstance(event, Finished):
                finished = event
        if not finished.ok:
            raise EncodeError(
                f"Video creation failed and exited with code {finished.returncode}",
                returncode=finished.returncode,
            )
        return finished
