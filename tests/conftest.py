"""Shared fixtures: an in-memory stand-in for Playwright and a small generated site."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest

from pdf_export.config import Config
from pdf_export.readiness import COUNT_SVGS_JS

FAKE_PDF_BYTES = b"%PDF-1.4\n% fake\n%%EOF\n"


class FakePage:
    def __init__(self, browser: "FakeBrowser", name: int, viewport=None, device_scale_factor=None):
        self.browser = browser
        self.name = name
        self.viewport = viewport
        self.device_scale_factor = device_scale_factor
        self.url: Optional[str] = None
        self.styles: List[str] = []
        self.evaluated: List[str] = []
        self.pdf_calls: List[dict] = []
        self.close_calls = 0

    async def goto(self, url: str, wait_until=None, timeout=None):
        self.url = url
        self.browser.events.append(("goto", self.name, url))
        if self.browser.goto_delay:
            await asyncio.sleep(self.browser.goto_delay)
        for marker, message in self.browser.goto_errors.items():
            if marker in url:
                raise RuntimeError(message)
        if self.browser.disconnect_on_goto:
            self.browser.connected = False

    async def wait_for_load_state(self, state=None, timeout=None):
        return None

    async def add_style_tag(self, content: str = None, **kwargs):
        if self.browser.style_error:
            raise RuntimeError(self.browser.style_error)
        self.styles.append(content)

    async def evaluate(self, expression: str):
        self.evaluated.append(expression)
        if expression in self.browser.evaluate_results:
            return self.browser.evaluate_results[expression](self)
        if expression == COUNT_SVGS_JS:
            return 0
        if "classList.add" in expression:
            return None
        return True

    async def pdf(self, path: str, **options):
        self.pdf_calls.append(options)
        if self.browser.pdf_error:
            raise RuntimeError(self.browser.pdf_error)
        Path(path).write_bytes(FAKE_PDF_BYTES)

    def is_closed(self) -> bool:
        return self.close_calls > 0

    async def close(self):
        self.close_calls += 1
        self.browser.open_now -= 1
        self.browser.events.append(("close", self.name))


class FakeBrowser:
    def __init__(self):
        self.pages: List[FakePage] = []
        self.events: List[tuple] = []
        self.connected = True
        self.closed = False
        self.open_now = 0
        self.peak_open = 0
        self.goto_delay = 0.0
        self.goto_errors: Dict[str, str] = {}
        self.evaluate_results: Dict[str, Callable[[FakePage], object]] = {}
        self.style_error: Optional[str] = None
        self.pdf_error: Optional[str] = None
        self.disconnect_on_goto = False

    async def new_page(self, viewport=None, device_scale_factor=None):
        page = FakePage(self, len(self.pages), viewport, device_scale_factor)
        self.pages.append(page)
        self.open_now += 1
        self.peak_open = max(self.peak_open, self.open_now)
        self.events.append(("open", page.name))
        return page

    def is_connected(self) -> bool:
        return self.connected

    async def close(self):
        self.closed = True
        self.connected = False


class FakeChromium:
    def __init__(self, browser: FakeBrowser, launch_error: Optional[Exception] = None):
        self.browser = browser
        self.launch_error = launch_error
        self.launch_calls: List[dict] = []

    async def launch(self, **kwargs):
        self.launch_calls.append(kwargs)
        if self.launch_error:
            raise self.launch_error
        return self.browser


class FakePlaywright:
    def __init__(self, browser: FakeBrowser, launch_error: Optional[Exception] = None):
        self.chromium = FakeChromium(browser, launch_error)
        self.stopped = False

    async def stop(self):
        self.stopped = True


class FakeAsyncPlaywright:
    def __init__(self, playwright: FakePlaywright):
        self._playwright = playwright

    async def start(self):
        return self._playwright


@pytest.fixture
def fake_browser(monkeypatch) -> FakeBrowser:
    """Patch Playwright in the session module with an in-memory browser."""
    browser = FakeBrowser()
    playwright = FakePlaywright(browser)
    browser.playwright = playwright
    monkeypatch.setattr("pdf_export.session.async_playwright", lambda: FakeAsyncPlaywright(playwright))
    return browser


@pytest.fixture
def failing_launch(monkeypatch) -> FakePlaywright:
    """Patch Playwright so that launching Chromium fails."""
    playwright = FakePlaywright(FakeBrowser(), launch_error=RuntimeError("Executable doesn't exist"))
    monkeypatch.setattr("pdf_export.session.async_playwright", lambda: FakeAsyncPlaywright(playwright))
    return playwright


SIMPLE_PAGE = """<!DOCTYPE html>
<html><head><title>{title}</title></head>
<body><h1>{title}</h1><p>Body text.</p></body></html>
"""


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A small generated site: root page, a report, a dashboard and excluded files."""
    root = tmp_path / "dist"
    (root / "reports").mkdir(parents=True)
    (root / "dashboards").mkdir()
    (root / "_observablehq").mkdir()
    (root / "index.html").write_text(SIMPLE_PAGE.format(title="Home"), encoding="utf-8")
    (root / "404.html").write_text(SIMPLE_PAGE.format(title="Missing"), encoding="utf-8")
    (root / "reports" / "q1.html").write_text(SIMPLE_PAGE.format(title="Q1 Report"), encoding="utf-8")
    (root / "dashboards" / "overview.html").write_text(SIMPLE_PAGE.format(title="Overview"), encoding="utf-8")
    (root / "_observablehq" / "client.html").write_text("<html></html>", encoding="utf-8")
    return root


@pytest.fixture
def config() -> Config:
    return Config.from_dict({
        "defaults": {"format": "A4", "timeout": 5000},
        "documents": {"dashboard": {"format": "A3", "landscape": True, "margin": "1cm"}},
        "excludeFiles": ["404.html", "_observablehq/**"],
        "waitConditions": {"renderTimeout": 1000, "checkTimeout": 500},
    })
