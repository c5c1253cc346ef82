"""Decide when a loaded page's asynchronous visualizations are done rendering.

Each check is a small predicate evaluated inside the page and polled until it
holds or its timeout runs out. A timeout is never an error: the caller logs a
warning and prints whatever the page currently shows, so one hung chart
cannot stall the batch.

The "svg has at least one child" test is only a proxy for "finished". A
legitimately empty chart and one still mid-render look the same to it.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .config import WaitConditions
from .logger import Logger

POLL_INTERVAL_MS = 500

# Loading indicators gone and every mount point holds either a rendered svg
# or the static fallback that ships with the page.
RENDER_COMPLETE_JS = """() => {
    if (document.querySelectorAll('observablehq-loading').length > 0) return false;
    const mounts = document.querySelectorAll('.viz-mount-point');
    return Array.from(mounts).every(mount =>
        mount.querySelector('svg') !== null ||
        mount.querySelector('.static-viz-fallback') !== null
    );
}"""

VISUALIZATIONS_READY_JS = """() => {
    const svgs = document.querySelectorAll('svg');
    return Array.from(svgs).every(svg =>
        svg.children.length > 0 || svg.hasAttribute('data-rendered')
    );
}"""

IMAGES_COMPLETE_JS = """() => {
    const images = document.querySelectorAll('img');
    return Array.from(images).every(img => img.complete);
}"""

COUNT_SVGS_JS = "() => document.querySelectorAll('svg').length"


@dataclass
class ReadinessReport:
    """Outcome of the readiness checks for one page."""

    timed_out: List[str] = field(default_factory=list)
    svg_count: int = 0
    elapsed_ms: float = 0.0

    @property
    def ready(self) -> bool:
        return not self.timed_out


async def poll_until(page, expression: str, timeout_ms: float, interval_ms: float = POLL_INTERVAL_MS) -> bool:
    """Evaluate ``expression`` in the page until it is truthy or time runs out.

    Returns False on timeout. Errors from the page itself (closed, navigated
    away) propagate.
    """
    deadline = time.monotonic() + timeout_ms / 1000
    while True:
        if await page.evaluate(expression):
            return True
        remaining_ms = (deadline - time.monotonic()) * 1000
        if remaining_ms <= 0:
            return False
        await asyncio.sleep(min(interval_ms, remaining_ms) / 1000)


async def wait_for_readiness(page, conditions: WaitConditions, logger: Optional[Logger] = None,
                             label: str = "", interval_ms: float = POLL_INTERVAL_MS) -> ReadinessReport:
    """Run the render check plus whichever sub-checks ``conditions`` enables."""
    start = time.monotonic()
    report = ReadinessReport()

    checks = [("render", RENDER_COMPLETE_JS, conditions.render_timeout)]
    if conditions.wait_for_visualizations:
        checks.append(("visualizations", VISUALIZATIONS_READY_JS, conditions.check_timeout))
    if conditions.wait_for_images:
        checks.append(("images", IMAGES_COMPLETE_JS, conditions.check_timeout))

    for name, expression, timeout_ms in checks:
        if not await poll_until(page, expression, timeout_ms, interval_ms):
            report.timed_out.append(name)
            if logger:
                logger.warning(f"Readiness check '{name}' timed out after {timeout_ms}ms for {label}")

    report.svg_count = await page.evaluate(COUNT_SVGS_JS)
    if logger and report.svg_count > 0:
        logger.info(f"Found {report.svg_count} SVG visualization(s)")

    if conditions.additional_wait_time:
        await asyncio.sleep(conditions.additional_wait_time / 1000)

    report.elapsed_ms = (time.monotonic() - start) * 1000
    return report
