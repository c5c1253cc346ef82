#!/usr/bin/env python3
"""
HTML to PDF converter for generated site output.
Uses Playwright to load each page in headless Chromium, waits for the page's
visualizations to settle, injects print styles and prints it to PDF.

MIT License - Copyright (c) 2025 PDF Export
"""

import asyncio
import time
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from tqdm import tqdm

from .config import Config
from .documents import DocumentDescriptor, describe, find_html_files
from .exceptions import OutputDirectoryError, SessionLostError
from .logger import Logger
from .readiness import wait_for_readiness
from .session import BrowserSession
from .stats import ConversionResult, ConversionStatus, RunSummary, StatisticsAggregator
from .styles import StyleManager
from .utils import ensure_directory, format_bytes, format_duration


def chunked(items: List, size: int) -> List[List]:
    """Split ``items`` into consecutive lists of at most ``size`` elements."""
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    return [items[i:i + size] for i in range(0, len(items), size)]


class PDFConverter:
    """Converts HTML documents under an input root to PDFs under an output root."""

    def __init__(self, input_dir, output_dir, config: Config, parallel: int = 1,
                 verbose: bool = True, debug: bool = False,
                 style_manager: Optional[StyleManager] = None,
                 session_factory: Optional[Callable[[Logger], BrowserSession]] = None):
        """Initialize the converter.

        Args:
            input_dir: Root of the generated HTML site
            output_dir: Root that mirrors ``input_dir`` with PDFs
            config: Loaded run configuration
            parallel: Documents converted at once (1 = strictly sequential)
            verbose: If False, only warnings and errors are printed
            session_factory: Builds the browser session for a run
        """
        if parallel < 1:
            raise ValueError(f"parallel must be at least 1, got {parallel}")

        self.input_dir = Path(input_dir).absolute()
        self.output_dir = Path(output_dir).absolute()
        self.config = config
        self.parallel = parallel
        self.verbose = verbose
        self.logger = Logger(verbose=verbose, debug=debug)
        self.style_manager = style_manager or StyleManager()
        self.session_factory = session_factory or BrowserSession
        self.stats = StatisticsAggregator()

    def init(self) -> None:
        """Create the output root. Failure here aborts the run."""
        try:
            ensure_directory(self.output_dir)
        except OSError as e:
            raise OutputDirectoryError(f"Cannot create output directory {self.output_dir}: {e}") from e

        self.logger.info("PDF Converter initialized")
        self.logger.info(f"Input directory: {self.input_dir}")
        self.logger.info(f"Output directory: {self.output_dir}")

    def describe(self, file_path) -> DocumentDescriptor:
        return describe(Path(file_path).absolute(), self.input_dir, self.output_dir, self.config.type_map)

    def find_documents(self, subdirs: Optional[Iterable[str]] = None) -> List[DocumentDescriptor]:
        """Discover HTML files under the input root, minus excluded ones."""
        files = find_html_files(self.input_dir, self.config.exclude_files, subdirs)
        self.logger.info(f"Found {len(files)} HTML files to convert")
        return [self.describe(f) for f in files]

    async def convert_file(self, session: BrowserSession, doc: DocumentDescriptor) -> ConversionResult:
        """Convert one document. Never raises: failures come back as a failed result."""
        start = time.monotonic()
        page_config = self.config.get_page_config(doc.document_type)

        try:
            async with session.new_page() as page:
                self.logger.info(f"Converting: {doc.source_path}")

                if not doc.source_path.is_file():
                    raise FileNotFoundError(f"Document not found: {doc.source_path}")

                # Navigate via file URL so scripts run and relative assets resolve
                await page.goto(doc.url, wait_until="networkidle", timeout=page_config.timeout)
                await page.wait_for_load_state("domcontentloaded", timeout=page_config.timeout)

                await self.style_manager.inject(page, page_config)

                await wait_for_readiness(page, self.config.wait_conditions, self.logger,
                                         label=str(doc.source_path))

                ensure_directory(doc.output_path.parent)
                await page.pdf(path=str(doc.output_path), **page_config.pdf_options())

                size = doc.output_path.stat().st_size

        except Exception as e:
            duration_ms = (time.monotonic() - start) * 1000
            message = str(e).strip() or type(e).__name__
            self.logger.error(f"Failed to convert {doc.source_path}: {message.splitlines()[0]}")
            return ConversionResult(
                source_path=doc.source_path,
                output_path=doc.output_path,
                document_type=doc.document_type,
                status=ConversionStatus.FAILURE,
                duration_ms=duration_ms,
                error=message,
            )

        duration_ms = (time.monotonic() - start) * 1000
        self.logger.success(
            f"Generated: {doc.output_path} ({format_bytes(size)}) in {format_duration(duration_ms)}"
        )
        return ConversionResult(
            source_path=doc.source_path,
            output_path=doc.output_path,
            document_type=doc.document_type,
            status=ConversionStatus.SUCCESS,
            duration_ms=duration_ms,
            byte_size=size,
        )

    async def _convert_and_record(self, session: BrowserSession, doc: DocumentDescriptor) -> ConversionResult:
        result = await self.convert_file(session, doc)
        self.stats.record(result)
        return result

    def _check_session(self, session: BrowserSession) -> None:
        if not session.is_connected():
            raise SessionLostError("Browser disconnected during the run; remaining documents abandoned")

    async def _convert_sequential(self, session: BrowserSession, documents: List[DocumentDescriptor]) -> None:
        """Convert one document at a time with an ordered i/total progress bar."""
        for doc in tqdm(documents, desc="Converting files", unit="file", disable=not self.verbose):
            await self._convert_and_record(session, doc)
            self._check_session(session)

    async def _convert_chunked(self, session: BrowserSession, documents: List[DocumentDescriptor]) -> None:
        """Convert consecutive chunks of ``parallel`` documents.

        Documents inside a chunk run concurrently; the next chunk starts only
        once every document in the current one has a result, so at most
        ``parallel`` pages are ever open.
        """
        with tqdm(total=len(documents), desc="Converting files", unit="file", disable=not self.verbose) as pbar:
            for chunk in chunked(documents, self.parallel):
                results = await asyncio.gather(*(self._convert_and_record(session, doc) for doc in chunk))
                for result in results:
                    status = "Converted" if result.success else "Failed"
                    pbar.set_postfix_str(f"{status}: {result.source_path.name}")
                pbar.update(len(chunk))
                self._check_session(session)

    async def convert_documents(self, session: BrowserSession, documents: List[DocumentDescriptor]) -> RunSummary:
        """Drive the documents through an already-started session."""
        self.stats.set_total(len(documents))
        if self.parallel > 1 and len(documents) > 1:
            self.logger.info(f"Using parallel processing with {self.parallel} pages per batch")
            await self._convert_chunked(session, documents)
        else:
            self.logger.info("Using sequential processing")
            await self._convert_sequential(session, documents)
        return self.stats.summary()

    async def run(self, documents: List[DocumentDescriptor]) -> RunSummary:
        """Launch the browser, convert ``documents`` and close the browser again."""
        if not documents:
            self.stats.set_total(0)
            self.logger.warning("No HTML files found to convert")
            return self.stats.summary()

        async with self.session_factory(self.logger) as session:
            summary = await self.convert_documents(session, documents)

        self.report(summary)
        return summary

    def report(self, summary: RunSummary) -> None:
        """Print the end-of-run totals."""
        self.logger.info("")
        self.logger.info("Conversion complete:")
        self.logger.success(f"{summary.successful} files converted successfully")
        if summary.failed > 0:
            self.logger.error(f"{summary.failed} files failed")
            for result in self.stats.failures():
                self.logger.error(f"  - {result.source_path}: {result.error.splitlines()[0]}")
        self.logger.info(f"Total time: {format_duration(summary.elapsed_ms)}")
        self.logger.info(f"PDF files saved to: {self.output_dir}")

    def convert_all(self, subdirs: Optional[Iterable[str]] = None) -> RunSummary:
        """Convert every discovered document under the input root."""
        self.init()
        documents = self.find_documents(subdirs)
        return asyncio.run(self.run(documents))

    def convert_single(self, file_path) -> RunSummary:
        """Convert one explicitly named document."""
        self.init()
        return asyncio.run(self.run([self.describe(file_path)]))
