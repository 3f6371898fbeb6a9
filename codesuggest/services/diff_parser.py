"""
Diff parser for splitting a unified diff into per-file changes.
"""
from typing import List

from unidiff import PatchSet

from codesuggest.models import FileDiff


class DiffParser:
    """Parser for git diff content."""

    def parse(self, diff_content: str) -> List[FileDiff]:
        """
        Parse diff content into one FileDiff per changed file.

        Deleted and binary files are skipped since there are no new lines
        to review.

        Args:
            diff_content: Raw unified diff.

        Returns:
            File diffs in patch order.
        """
        if not diff_content or not diff_content.strip():
            return []

        patch_set = PatchSet(diff_content)
        files = []

        for patched_file in patch_set:
            if patched_file.is_removed_file or patched_file.is_binary_file:
                continue

            hunks = "".join(str(hunk) for hunk in patched_file)
            if not hunks:
                continue

            files.append(FileDiff(file_path=patched_file.path, diff=hunks))

        return files
