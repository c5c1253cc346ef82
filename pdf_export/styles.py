"""Print stylesheet injection.

Styles are added after the page has loaded, so they come after the page's own
stylesheets and win on equal specificity.
"""

from pathlib import Path
from typing import List, Optional

from .config import FormatConfig

BASE_STYLESHEET = Path(__file__).parent / "assets" / "print.css"

PDF_EXPORT_CLASS = "pdf-export"

# Elements that only make sense on screen
PRINT_BADGE_SELECTORS = [".doi-badge-print"]


class StyleManager:
    """Builds and injects the base and per-document-type print styles."""

    def __init__(self, stylesheet_path: Optional[Path] = None):
        self.stylesheet_path = Path(stylesheet_path) if stylesheet_path else BASE_STYLESHEET
        self._base_styles: Optional[str] = None

    def load_styles(self) -> str:
        """Read the base stylesheet once and reuse it for every document."""
        if self._base_styles is None:
            with open(self.stylesheet_path, 'r', encoding='utf-8') as f:
                self._base_styles = f.read()
        return self._base_styles

    def generate_page_styles(self, page_config: FormatConfig) -> Optional[str]:
        """Build the per-document-type stylesheet, or None if the type adds nothing."""
        rules: List[str] = []

        if page_config.hide_selectors:
            selectors = ",\n".join(page_config.hide_selectors)
            rules.append(f"{selectors} {{\n    display: none !important;\n}}")

        if page_config.keep_together_selectors:
            selectors = ",\n".join(page_config.keep_together_selectors)
            rules.append(
                f"{selectors} {{\n    page-break-inside: avoid;\n    break-inside: avoid;\n}}"
            )

        if page_config.show_print_badges:
            selectors = ",\n".join(PRINT_BADGE_SELECTORS)
            rules.append(
                f"{selectors} {{\n    display: block !important;\n    text-align: right;\n    margin-top: 1cm;\n}}"
            )

        if page_config.prefer_css_page_size:
            orientation = "landscape" if page_config.landscape else "portrait"
            rules.append(f"@page {{\n    size: {page_config.format} {orientation};\n}}")

        if page_config.extra_css.strip():
            rules.append(page_config.extra_css.strip())

        if not rules:
            return None
        return "\n\n".join(rules) + "\n"

    async def inject(self, page, page_config: FormatConfig) -> None:
        """Append the base and per-type styles to a loaded page.

        Errors (page closed, navigation torn down) propagate to the caller.
        """
        await page.add_style_tag(content=self.load_styles())

        page_styles = self.generate_page_styles(page_config)
        if page_styles:
            await page.add_style_tag(content=page_styles)

        await page.evaluate(
            f"() => document.body && document.body.classList.add('{PDF_EXPORT_CLASS}')"
        )
