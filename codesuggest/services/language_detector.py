"""
Language detection from file extensions.
"""
from typing import Optional

UNKNOWN_LANGUAGE = "unknown"

EXTENSION_LANGUAGES = {
    ".java": "java",
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".go": "go",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".scala": "scala",
    ".sc": "scala",
    ".rb": "ruby",
    ".php": "php",
    ".cs": "csharp",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".c": "c",
    ".h": "c",
    ".rs": "rust",
    ".swift": "swift",
    ".sql": "sql",
    ".sh": "shell",
    ".bash": "shell",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".xml": "xml",
    ".json": "json",
}


def detect_language(file_path: Optional[str]) -> str:
    """
    Map a file path to a language tag by its extension.

    Args:
        file_path: Path of the changed file.

    Returns:
        Language tag such as "python", or "unknown".
    """
    if not file_path:
        return UNKNOWN_LANGUAGE

    name = file_path.lower().rsplit("/", 1)[-1]
    dot = name.rfind(".")
    if dot < 0:
        return UNKNOWN_LANGUAGE
    return EXTENSION_LANGUAGES.get(name[dot:], UNKNOWN_LANGUAGE)
