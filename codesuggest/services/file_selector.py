"""
Selection of the changed files worth sending to the model.
"""
from typing import Iterable, List, Optional

from codesuggest.models import FileDiff
from codesuggest.services.language_detector import detect_language


def is_excluded(file_path: str, patterns: Iterable[str]) -> bool:
    """
    Check a path against exclusion patterns.

    "*.ext" patterns match by suffix; any other pattern matches as a
    suffix or a substring of the path.
    """
    for pattern in patterns:
        trimmed = pattern.strip()
        if not trimmed:
            continue
        if trimmed.startswith("*."):
            if file_path.endswith(trimmed[1:]):
                return True
        elif file_path.endswith(trimmed) or trimmed in file_path:
            return True
    return False


def is_supported_language(file_path: str, supported_languages: Iterable[str]) -> bool:
    """The detected language must appear (case-insensitively) in the supported list."""
    supported = ",".join(supported_languages).lower()
    return detect_language(file_path).lower() in supported


def select_files(
    file_diffs: List[FileDiff],
    excluded_patterns: Iterable[str],
    supported_languages: Iterable[str],
    max_files: int,
    max_file_size_kb: Optional[int] = None,
) -> List[FileDiff]:
    """
    Filter a batch of file changes down to the ones to analyze.

    Rules are applied in order: exclusion patterns, language allow-list,
    optional diff size cap, then truncation to ``max_files``. Input order
    is preserved.

    Args:
        file_diffs: Changed files in host order.
        excluded_patterns: Exclusion patterns.
        supported_languages: Language tags to keep.
        max_files: Maximum number of files to return.
        max_file_size_kb: Drop files whose diff is larger than this, if set.

    Returns:
        Selected file diffs.
    """
    if not file_diffs:
        return []

    patterns = list(excluded_patterns)
    languages = list(supported_languages)

    selected = [f for f in file_diffs if not is_excluded(f.file_path, patterns)]
    selected = [f for f in selected if is_supported_language(f.file_path, languages)]
    if max_file_size_kb is not None and max_file_size_kb > 0:
        limit = max_file_size_kb * 1024
        selected = [f for f in selected if len(f.diff.encode("utf-8")) <= limit]

    return selected[:max(max_files, 0)]
