"""Whole-site export: content-type directories, summary file and metadata links.

The summary lists every document with its output path so later steps (DOI
registration, listing pages) can find the PDFs that were actually produced.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .converter import PDFConverter
from .logger import Logger
from .stats import ConversionResult, RunSummary

SUMMARY_FILENAME = "_summary.json"
METADATA_DIRNAME = "_metadata"
PDF_URL_PREFIX = "/pdfs/"


def build_summary(summary: RunSummary, results: List[ConversionResult]) -> Dict[str, Any]:
    data = summary.as_dict()
    data["generated"] = datetime.now(timezone.utc).isoformat()
    data["files"] = [result.to_summary_entry() for result in results]
    return data


def write_summary(path: Path, summary: RunSummary, results: List[ConversionResult]) -> Path:
    """Write the run summary as pretty-printed JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(build_summary(summary, results), f, indent=2)
    return path


def update_metadata(input_dir: Path, output_dir: Path, results: List[ConversionResult],
                    logger: Optional[Logger] = None) -> int:
    """Record ``pdf_url`` in each converted document's metadata file.

    Metadata lives at ``<input>/_metadata/<dir>/<stem>.json`` and is only
    updated when it already exists. A metadata file that cannot be read,
    parsed or written is skipped with a warning. Returns the number of files
    updated.
    """
    logger = logger or Logger(verbose=False)
    input_dir = Path(input_dir)
    output_dir = Path(output_dir)
    updated = 0

    for result in results:
        if not result.success:
            continue
        try:
            relative_source = Path(result.source_path).relative_to(input_dir)
            relative_output = Path(result.output_path).relative_to(output_dir)
        except ValueError:
            continue

        metadata_path = input_dir / METADATA_DIRNAME / relative_source.with_suffix(".json")
        if not metadata_path.is_file():
            continue

        try:
            with open(metadata_path, 'r', encoding='utf-8') as f:
                metadata = json.load(f)
            if not isinstance(metadata, dict):
                logger.warning(f"Skipping metadata {metadata_path}: not a JSON object")
                continue
            metadata["pdf_url"] = PDF_URL_PREFIX + relative_output.as_posix()
            with open(metadata_path, 'w', encoding='utf-8') as f:
                json.dump(metadata, f, indent=2)
        except (OSError, ValueError) as e:
            # ValueError covers JSONDecodeError and UnicodeDecodeError
            logger.warning(f"Skipping metadata {metadata_path}: {e}")
            continue
        updated += 1

    return updated


def run_corpus(converter: PDFConverter) -> RunSummary:
    """Convert every content-type directory and write ``_summary.json``."""
    subdirs = sorted(converter.config.type_map)
    converter.logger.info(f"Content directories: {', '.join(subdirs)}")

    summary = converter.convert_all(subdirs=subdirs)
    results = list(converter.stats.results)

    summary_path = write_summary(converter.output_dir / SUMMARY_FILENAME, summary, results)
    converter.logger.info(f"Summary written to {summary_path}")

    updated = update_metadata(converter.input_dir, converter.output_dir, results, converter.logger)
    if updated:
        converter.logger.info(f"Linked {updated} metadata file(s) to their PDFs")

    return summary
