"""Build the ffmpeg invocation that turns a screenshot sequence into videos.

The graph is modelled first (pad, optional split, one branch per output) and
only turned into ffmpeg syntax at the end, so the branching can be checked
without parsing filter strings.

- https://ffmpeg.org/ffmpeg-filters.html#pad-1
- https://trac.ffmpeg.org/wiki/Creating%20multiple%20outputs
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

from screenshat.errors import AssemblyError, UsageError


class OutputFormat(str, Enum):
    GIF = "gif"
    MP4 = "mp4"
    PNG = "png"
    WEBM = "webm"

    @classmethod
    def parse(cls, tag: str) -> "OutputFormat":
        try:
            return cls(tag.lower())
        except ValueError:
            known = ", ".join(sorted(f.value for f in cls))
            raise UsageError(
                f"Unrecognized output format {tag!r} (expected one of {known})"
            ) from None


@dataclass(frozen=True)
class CodecPolicy:
    codec: str
    pix_fmt: str
    extra: tuple[str, ...] = ()

    def args(self) -> list[str]:
        return ["-c:v", self.codec, *self.extra, "-pix_fmt", self.pix_fmt]


CODECS: dict[OutputFormat, CodecPolicy] = {
    # yuv420p so the mp4 plays in QuickTime and browsers, faststart for streaming
    OutputFormat.MP4: CodecPolicy("libx264", "yuv420p", ("-movflags", "+faststart")),
    OutputFormat.PNG: CodecPolicy("apng", "rgba"),
    OutputFormat.GIF: CodecPolicy("gif", "rgb24"),
    OutputFormat.WEBM: CodecPolicy("libvpx-vp9", "yuva420p", ("-b:v", "800k")),
}

OutputSpec = Mapping[OutputFormat, Path]


@dataclass(frozen=True)
class EncoderJob:
    input_pattern: str
    start_number: int
    frame_count: int
    canvas_width: int
    canvas_height: int
    outputs: OutputSpec = field(default_factory=dict)

    def ordered_outputs(self) -> list[tuple[OutputFormat, Path]]:
        return sorted(self.outputs.items(), key=lambda item: item[0].value)


@dataclass(frozen=True)
class PadStage:
    width: int
    height: int

    def render(self) -> str:
        # transparent black, re-evaluated per frame because frame sizes vary
        return f"pad=w={self.width}:h={self.height}:x=0:y=0:eval=frame:color=black@0x00"


@dataclass(frozen=True)
class SplitStage:
    labels: tuple[str, ...]

    def render(self) -> str:
        return f"split={len(self.labels)}" + "".join(f"[{label}]" for label in self.labels)


@dataclass(frozen=True)
class Branch:
    format: OutputFormat
    path: Path
    label: Optional[str] = None

    def args(self) -> list[str]:
        head = ["-map", f"[{self.label}]"] if self.label else []
        return head + CODECS[self.format].args() + [str(self.path)]


@dataclass(frozen=True)
class FilterGraph:
    pad: PadStage
    branches: tuple[Branch, ...]
    split: Optional[SplitStage] = None

    def filter_args(self) -> list[str]:
        if self.split is None:
            return ["-vf", self.pad.render()]
        return ["-filter_complex", f"{self.pad.render()},{self.split.render()}"]


def build_filter_graph(job: EncoderJob) -> FilterGraph:
    if not job.outputs:
        raise AssemblyError("No video outputs requested")
    for name, value in (("width", job.canvas_width), ("height", job.canvas_height)):
        if value <= 0 or value % 2:
            raise AssemblyError(f"Canvas {name} must be a positive even number, got {value}")

    outputs = job.ordered_outputs()
    pad = PadStage(job.canvas_width, job.canvas_height)
    if len(outputs) == 1:
        fmt, path = outputs[0]
        return FilterGraph(pad=pad, branches=(Branch(fmt, path),))

    labels = tuple(f"out{i}" for i in range(1, len(outputs) + 1))
    branches = tuple(Branch(fmt, path, label) for (fmt, path), label in zip(outputs, labels))
    return FilterGraph(pad=pad, branches=branches, split=SplitStage(labels))


def build_args(job: EncoderJob) -> list[str]:
    """Return the ffmpeg arguments for ``job``, without the executable."""
    graph = build_filter_graph(job)
    args = ["-start_number", str(job.start_number), "-i", job.input_pattern]
    args.extend(graph.filter_args())
    for branch in graph.branches:
        args.extend(branch.args())
    return args


def format_command(args: list[str]) -> str:
    return " ".join(shlex.quote(str(arg)) for arg in args)
