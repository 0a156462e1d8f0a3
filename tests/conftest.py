from pathlib import Path

import pytest
from PIL import Image


class FakePage:
    """Stands in for a Playwright page; screenshots are real, blank PNGs.

    Like Playwright, the saved image is cut off at the clip height when the
    page is taller than that.
    """

    def __init__(self, content_height, content_width=None, fail_at=None):
        self.content_height = content_height
        self.content_width = content_width
        self.fail_at = fail_at
        self.viewports = []
        self.clips = []

    def _height_for(self, width):
        if callable(self.content_height):
            return self.content_height(width)
        return self.content_height

    def set_viewport_size(self, size):
        self.viewports.append(size)

    def screenshot(self, path, full_page=False, clip=None):
        width = self.viewports[-1]["width"]
        if self.fail_at == width:
            raise RuntimeError("Target page, context or browser has been closed")
        self.clips.append(dict(clip))
        shot_width = min(clip["width"], self.content_width or clip["width"])
        shot_height = min(clip["height"], self._height_for(width))
        Image.new("RGBA", (shot_width, shot_height)).save(path)


@pytest.fixture
def fake_page():
    return FakePage


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    d = tmp_path / "shots"
    d.mkdir()
    return d


@pytest.fixture(autouse=True)
def reset_package_logger():
    import logging

    logger = logging.getLogger("screenshat")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
