"""Command line entry point: ``pdf-export``."""

import argparse
import sys
from typing import List, Optional

from colorama import Fore, Style

from .config import Config, get_config_path, get_input_dir, get_output_dir
from .converter import PDFConverter
from .corpus import run_corpus, write_summary
from .dependencies import check_dependencies, install_browsers
from .exceptions import PDFExportError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pdf-export",
        description="Convert generated HTML documents (with live visualizations) to PDF",
    )
    parser.add_argument("-i", "--input", default=None, help="Input directory (default: $PDF_EXPORT_INPUT or dist)")
    parser.add_argument("-o", "--output", default=None, help="Output directory for PDFs (default: $PDF_EXPORT_OUTPUT or output)")
    parser.add_argument("-c", "--config", default=None, help="Configuration file path (default: $PDF_EXPORT_CONFIG or config/config.json)")
    parser.add_argument("-f", "--file", default=None, help="Convert a single file")
    parser.add_argument("-p", "--parallel", type=int, default=1, help="Number of documents converted at once (default: 1, sequential)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Quiet mode (warnings and errors only)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging for detailed output")
    parser.add_argument("--corpus", action="store_true", help="Convert the content-type directories and write _summary.json")
    parser.add_argument("--summary", default=None, help="Write the run summary as JSON to this path")
    parser.add_argument("--install-browsers", action="store_true", help="Install Playwright's Chromium before converting")
    return parser


def _fatal(message: str) -> int:
    print(f"{Fore.RED}[ERROR]{Style.RESET_ALL} Fatal error: {message}")
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Run the converter. Returns 0 even when some documents failed."""
    args = build_parser().parse_args(argv)

    if args.parallel < 1:
        return _fatal(f"--parallel must be at least 1, got {args.parallel}")

    if not check_dependencies():
        return 1
    if args.install_browsers and not install_browsers():
        return 1

    try:
        config = Config.load(get_config_path(args.config))
        converter = PDFConverter(
            get_input_dir(args.input),
            get_output_dir(args.output),
            config,
            parallel=args.parallel,
            verbose=not args.quiet,
            debug=args.debug,
        )

        if args.file:
            summary = converter.convert_single(args.file)
        elif args.corpus:
            summary = run_corpus(converter)
        else:
            summary = converter.convert_all()

        if args.summary:
            write_summary(args.summary, summary, converter.stats.results)
    except PDFExportError as e:
        return _fatal(str(e))

    return 0


if __name__ == "__main__":
    sys.exit(main())
