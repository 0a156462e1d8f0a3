from contextlib import contextmanager
from pathlib import Path

import pytest
from playwright.sync_api import Error as PlaywrightError

from screenshat import browser, cli
from screenshat.errors import CaptureError, UsageError


class FakeBrowser:
    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.closed = False
        self.visited = []

    def _maybe_fail(self, step):
        if self.fail_on == step:
            raise PlaywrightError(f"{step} failed")

    def new_page(self):
        self._maybe_fail("new_page")
        return self

    def goto(self, url):
        self._maybe_fail("goto")
        self.visited.append(url)

    def close(self):
        self.closed = True
        self._maybe_fail("close")


class FakeLauncher:
    def __init__(self, fail_on):
        self.fail_on = fail_on
        self.launched = []

    def launch(self, headless=False):
        if self.fail_on == "launch":
            raise PlaywrightError("Executable doesn't exist")
        instance = FakeBrowser(self.fail_on)
        self.launched.append((headless, instance))
        return instance


@pytest.fixture
def playwright(monkeypatch):
    state = {"fail_on": None}

    @contextmanager
    def sync_playwright():
        launcher = FakeLauncher(state["fail_on"])
        state["chromium"] = launcher
        yield type("FakePlaywright", (), {"chromium": launcher, "firefox": launcher})()

    monkeypatch.setattr(browser, "sync_playwright", sync_playwright)
    return state


def only_browser(state):
    ((headless, instance),) = state["chromium"].launched
    return headless, instance


def test_page_is_opened_headless_at_url(playwright) -> None:
    with browser.open_page("chromium", "https://example.com") as page:
        assert page.visited == ["https://example.com"]
        assert not page.closed
    headless, instance = only_browser(playwright)
    assert headless
    assert instance.closed


def test_launch_failure_is_capture_error(playwright) -> None:
    playwright["fail_on"] = "launch"
    with pytest.raises(CaptureError, match="Executable doesn't exist"):
        with browser.open_page("chromium", "https://example.com"):
            pass


@pytest.mark.parametrize("step", ["new_page", "goto"])
def test_failure_after_launch_closes_browser(playwright, step) -> None:
    playwright["fail_on"] = step
    with pytest.raises(CaptureError, match=f"{step} failed"):
        with browser.open_page("chromium", "https://example.com"):
            pass
    _, instance = only_browser(playwright)
    assert instance.closed


def test_close_failure_is_capture_error(playwright) -> None:
    playwright["fail_on"] = "close"
    with pytest.raises(CaptureError, match="close failed"):
        with browser.open_page("chromium", "https://example.com"):
            pass


def test_browser_closed_when_capture_fails(playwright) -> None:
    with pytest.raises(CaptureError, match="Screenshot at 320px failed"):
        with browser.open_page("chromium", "https://example.com"):
            raise CaptureError("Screenshot at 320px failed")
    _, instance = only_browser(playwright)
    assert instance.closed


def test_unknown_browser_is_rejected_before_launch(playwright) -> None:
    with pytest.raises(UsageError, match="lynx"):
        with browser.open_page("lynx", "https://example.com"):
            pass
    assert "chromium" not in playwright


def test_cli_exits_nonzero_when_page_cannot_open(playwright, tmp_path: Path, capsys) -> None:
    playwright["fail_on"] = "new_page"
    with pytest.raises(SystemExit) as info:
        cli.main(["--url", "https://example.com", "--min-width", "320", "--max-width", "321",
                  "--output-dir", str(tmp_path), "--no-progress"])
    assert info.value.code == 1
    assert "new_page failed" in capsys.readouterr().err
    assert list(tmp_path.glob("screenshot-*.png")) == []
