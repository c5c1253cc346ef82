"""End-to-end runs against a real headless Chromium.

Skipped when Playwright's Chromium build is not installed
(``python -m playwright install chromium``).
"""

from __future__ import annotations

import asyncio
import re
import time
from pathlib import Path

import pytest
import pytest_asyncio

from pdf_export.config import Config
from pdf_export.converter import PDFConverter
from pdf_export.exceptions import SessionLaunchError
from pdf_export.readiness import IMAGES_COMPLETE_JS, RENDER_COMPLETE_JS, VISUALIZATIONS_READY_JS
from pdf_export.session import BrowserSession

pytestmark = pytest.mark.integration

MEDIABOX_RE = re.compile(rb"/MediaBox\s*\[\s*0\s+0\s+([\d.]+)\s+([\d.]+)\s*\]")

A3_LONG_PT = 1190.55
A3_SHORT_PT = 841.89

CHART_PAGE = """<!DOCTYPE html>
<html><head><title>Chart</title></head>
<body>
  <h1>Quarterly figures</h1>
  <div class="viz-mount-point" id="chart"></div>
  <script>
    setTimeout(() => {
      const svg = document.createElementNS('http://www.w3.org/2000/svg', 'svg');
      const rect = document.createElementNS('http://www.w3.org/2000/svg', 'rect');
      rect.setAttribute('width', '100');
      rect.setAttribute('height', '50');
      svg.appendChild(rect);
      document.getElementById('chart').appendChild(svg);
    }, 300);
  </script>
</body></html>
"""

BROKEN_CHART_PAGE = """<!DOCTYPE html>
<html><head><title>Broken</title></head>
<body><div class="viz-mount-point"></div></body></html>
"""

PLAIN_PAGE = """<!DOCTYPE html>
<html><head><title>Plain</title></head><body><p>No charts here.</p></body></html>
"""

FALLBACK_PAGE = """<!DOCTYPE html>
<html><head><title>Fallback</title></head>
<body>
  <div class="viz-mount-point"><div class="static-viz-fallback"><p>Static table</p></div></div>
</body></html>
"""

LOADING_PAGE = """<!DOCTYPE html>
<html><head><title>Loading</title></head>
<body><observablehq-loading></observablehq-loading><p>Waiting on data</p></body></html>
"""

# A lazy image far below the viewport is never fetched, so it stays incomplete
PENDING_IMAGE_PAGE = """<!DOCTYPE html>
<html><head><title>Image</title></head>
<body>
  <p>Figure below.</p>
  <img loading="lazy" src="figure.png" style="display: block; margin-top: 60000px" width="10" height="10">
</body></html>
"""


@pytest_asyncio.fixture
async def live_session():
    session = BrowserSession()
    try:
        await session.acquire()
    except SessionLaunchError as e:
        pytest.skip(f"Chromium not available: {e}")
    yield session
    await session.shutdown()


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def page_sizes(pdf_path: Path):
    return [(float(w), float(h)) for w, h in MEDIABOX_RE.findall(pdf_path.read_bytes())]


@pytest.mark.asyncio
async def test_landscape_type_geometry(live_session, tmp_path):
    dist = tmp_path / "dist"
    write(dist / "dashboards" / "wide.html", PLAIN_PAGE)
    config = Config.from_dict({"documents": {"dashboard": {"format": "A3", "landscape": True}}})
    converter = PDFConverter(dist, tmp_path / "out", config, verbose=False)

    result = await converter.convert_file(live_session, converter.describe(dist / "dashboards" / "wide.html"))

    assert result.success, result.error
    sizes = page_sizes(result.output_path)
    assert sizes
    width, height = sizes[0]
    assert width == pytest.approx(A3_LONG_PT, abs=3)
    assert height == pytest.approx(A3_SHORT_PT, abs=3)


@pytest.mark.asyncio
async def test_chart_rendered_before_capture(live_session, tmp_path):
    dist = tmp_path / "dist"
    write(dist / "reports" / "chart.html", CHART_PAGE)
    config = Config.from_dict({"waitConditions": {"waitForVisualizations": True, "renderTimeout": 5000}})
    converter = PDFConverter(dist, tmp_path / "out", config, verbose=False)

    result = await converter.convert_file(live_session, converter.describe(dist / "reports" / "chart.html"))

    assert result.success, result.error
    assert result.output_path == tmp_path / "out" / "reports" / "chart.pdf"
    assert result.output_path.read_bytes().startswith(b"%PDF")
    assert result.duration_ms < 5000
    assert live_session.open_pages == 0


@pytest.mark.asyncio
async def test_never_populating_chart_is_bounded(live_session, tmp_path):
    dist = tmp_path / "dist"
    write(dist / "reports" / "broken.html", BROKEN_CHART_PAGE)
    config = Config.from_dict({"waitConditions": {"renderTimeout": 1000}})
    converter = PDFConverter(dist, tmp_path / "out", config, verbose=False)

    start = time.monotonic()
    result = await converter.convert_file(live_session, converter.describe(dist / "reports" / "broken.html"))

    assert result.success, result.error
    assert time.monotonic() - start >= 1.0


def test_missing_document_scenario(tmp_path):
    dist = tmp_path / "dist"
    write(dist / "index.html", PLAIN_PAGE)
    write(dist / "reports" / "r1.html", PLAIN_PAGE)
    converter = PDFConverter(dist, tmp_path / "out", Config(), parallel=2, verbose=False)
    converter.init()
    docs = [
        converter.describe(dist / "index.html"),
        converter.describe(dist / "reports" / "r1.html"),
        converter.describe(dist / "reports" / "missing.html"),
    ]

    try:
        summary = asyncio.run(converter.run(docs))
    except SessionLaunchError as e:
        pytest.skip(f"Chromium not available: {e}")

    assert (summary.total, summary.successful, summary.failed) == (3, 2, 1)
    assert "missing.html" in converter.stats.failures()[0].error


@pytest.mark.asyncio
@pytest.mark.parametrize("expression, body, expected", [
    (RENDER_COMPLETE_JS, "<p>text</p>", True),
    (RENDER_COMPLETE_JS, '<div class="viz-mount-point"></div>', False),
    (RENDER_COMPLETE_JS, '<div class="viz-mount-point"><svg><rect/></svg></div>', True),
    (RENDER_COMPLETE_JS, '<div class="viz-mount-point"><div class="static-viz-fallback"></div></div>', True),
    (RENDER_COMPLETE_JS, '<div class="viz-mount-point"><svg></svg></div><observablehq-loading></observablehq-loading>', False),
    (VISUALIZATIONS_READY_JS, "<svg></svg>", False),
    (VISUALIZATIONS_READY_JS, "<svg><circle r='2'/></svg>", True),
    (VISUALIZATIONS_READY_JS, "<svg data-rendered></svg>", True),
    (IMAGES_COMPLETE_JS, "<p>no images</p>", True),
    (IMAGES_COMPLETE_JS, '<img loading="lazy" src="https://example.invalid/x.png" style="display: block; margin-top: 60000px">', False),
])
async def test_readiness_predicates_in_browser(live_session, expression, body, expected):
    async with live_session.new_page() as page:
        await page.set_content(f"<!DOCTYPE html><html><body>{body}</body></html>")
        assert bool(await page.evaluate(expression)) is expected


@pytest.mark.asyncio
async def test_static_fallback_counts_as_rendered(live_session, tmp_path):
    dist = tmp_path / "dist"
    write(dist / "reports" / "fallback.html", FALLBACK_PAGE)
    config = Config.from_dict({"waitConditions": {"renderTimeout": 10000}})
    converter = PDFConverter(dist, tmp_path / "out", config, verbose=False)

    result = await converter.convert_file(live_session, converter.describe(dist / "reports" / "fallback.html"))

    assert result.success, result.error
    assert result.duration_ms < 5000


@pytest.mark.asyncio
async def test_loading_indicator_holds_until_render_timeout(live_session, tmp_path):
    dist = tmp_path / "dist"
    write(dist / "reports" / "loading.html", LOADING_PAGE)
    config = Config.from_dict({"waitConditions": {"renderTimeout": 1000}})
    converter = PDFConverter(dist, tmp_path / "out", config, verbose=False)

    start = time.monotonic()
    result = await converter.convert_file(live_session, converter.describe(dist / "reports" / "loading.html"))

    assert result.success, result.error
    assert time.monotonic() - start >= 1.0
    assert result.output_path.read_bytes().startswith(b"%PDF")


@pytest.mark.asyncio
async def test_pending_image_captured_after_check_timeout(live_session, tmp_path):
    dist = tmp_path / "dist"
    write(dist / "news" / "figure.html", PENDING_IMAGE_PAGE)
    config = Config.from_dict({"waitConditions": {"waitForImages": True, "checkTimeout": 1000}})
    converter = PDFConverter(dist, tmp_path / "out", config, verbose=False)

    start = time.monotonic()
    result = await converter.convert_file(live_session, converter.describe(dist / "news" / "figure.html"))

    assert result.success, result.error
    assert time.monotonic() - start >= 1.0
    assert result.output_path == tmp_path / "out" / "news" / "figure.pdf"
    assert result.output_path.read_bytes().startswith(b"%PDF")
