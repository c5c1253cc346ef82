"""Document descriptors and discovery of HTML files under the input root."""

from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .config import DEFAULT_TYPE_MAP

ROOT_DOCUMENT_TYPE = "page"
ARTIFACT_SUFFIX = ".pdf"


@dataclass(frozen=True)
class DocumentDescriptor:
    source_path: Path
    document_type: str
    output_path: Path

    @property
    def url(self) -> str:
        return self.source_path.absolute().as_uri()


def _relative_to(path: Path, root: Path) -> Optional[Path]:
    try:
        return path.absolute().relative_to(root.absolute())
    except ValueError:
        return None


def get_document_type(source_path: Path, input_root: Path, type_map: Optional[Dict[str, str]] = None) -> str:
    """Derive the document type from the top-level content directory.

    ``reports/q1.html`` is a ``report`` with the default map; directories
    missing from the map use their own name; files at the root (or outside
    it) are plain pages.
    """
    type_map = DEFAULT_TYPE_MAP if type_map is None else type_map
    relative = _relative_to(Path(source_path), Path(input_root))
    if relative is None or len(relative.parts) < 2:
        return ROOT_DOCUMENT_TYPE
    top = relative.parts[0]
    return type_map.get(top, top)


def generate_output_path(source_path: Path, input_root: Path, output_root: Path) -> Path:
    """Mirror ``source_path`` under ``output_root`` with the artifact extension.

    Files outside the input root land directly in the output root.
    """
    source_path = Path(source_path)
    relative = _relative_to(source_path, Path(input_root))
    if relative is None:
        relative = Path(source_path.name)
    return Path(output_root) / relative.with_suffix(ARTIFACT_SUFFIX)


def describe(source_path: Path, input_root: Path, output_root: Path,
             type_map: Optional[Dict[str, str]] = None) -> DocumentDescriptor:
    source_path = Path(source_path)
    return DocumentDescriptor(
        source_path=source_path,
        document_type=get_document_type(source_path, input_root, type_map),
        output_path=generate_output_path(source_path, input_root, output_root),
    )


def should_exclude(file_path: Path, input_root: Path, patterns: Iterable[str]) -> bool:
    """Check a file against glob-style exclusion patterns.

    A pattern matches either the path relative to the input root or the bare
    file name.
    """
    file_path = Path(file_path)
    relative = _relative_to(file_path, Path(input_root))
    rel_str = relative.as_posix() if relative is not None else file_path.as_posix()
    return any(fnmatch(rel_str, pattern) or fnmatch(file_path.name, pattern) for pattern in patterns)


def find_html_files(input_root: Path, exclude_patterns: Iterable[str] = (),
                    subdirs: Optional[Iterable[str]] = None) -> List[Path]:
    """Return absolute paths of HTML files under ``input_root``, sorted and filtered.

    ``subdirs`` restricts the search to those top-level directories.
    """
    input_root = Path(input_root).absolute()
    patterns = list(exclude_patterns)

    if subdirs is None:
        search_roots = [input_root]
    else:
        search_roots = [input_root / name for name in subdirs]

    found = set()
    for root in search_roots:
        if not root.is_dir():
            continue
        for path in root.rglob("*.html"):
            if path.is_file() and not should_exclude(path, input_root, patterns):
                found.add(path)
    return sorted(found)
