from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from screenshat.capture import SequenceStats
from screenshat.ffmpeg_args import OutputSpec


@dataclass
class RunSummary:
    """What a run did, as printed by ``--json``."""

    browser: str
    output_dir: Path
    min_width: int
    max_width: int
    max_height: Optional[int]
    stats: SequenceStats
    num_digits: int
    url: str
    video_files: Optional[OutputSpec] = None
    video_width: Optional[int] = None
    video_height: Optional[int] = None
    ffmpeg_args: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "browser": self.browser,
            "outputDir": str(self.output_dir),
            "minWidth": self.min_width,
            "maxWidth": self.max_width,
            "maxHeight": self.max_height,
            "tallestScreenshotHeight": self.stats.tallest_height,
            "widestScreenshotWidth": self.stats.widest_width,
            "numDigits": self.num_digits,
            "url": self.url,
        }
        if self.video_files:
            files = sorted(self.video_files.items(), key=lambda item: item[0].value)
            data["videoFiles"] = {fmt.value: str(path) for fmt, path in files}
            data["videoHeight"] = self.video_height
            data["videoWidth"] = self.video_width
            data["ffmpegArgs"] = list(self.ffmpeg_args)
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
