"""
Unit tests for language detection.
"""
import pytest

from codesuggest.services.language_detector import detect_language


@pytest.mark.parametrize("path, expected", [
    ("src/Main.java", "java"),
    ("web/app.js", "javascript"),
    ("web/App.JSX", "javascript"),
    ("web/index.ts", "typescript"),
    ("web/View.tsx", "typescript"),
    ("pkg/service.py", "python"),
    ("cmd/main.go", "go"),
    ("build.gradle.kts", "kotlin"),
    ("lib/core.rb", "ruby"),
    ("src/Program.cs", "csharp"),
    ("src/engine.cc", "cpp"),
    ("include/engine.h", "c"),
    ("src/lib.rs", "rust"),
    ("deploy/run.sh", "shell"),
    ("config/app.YAML", "yaml"),
    ("db/schema.sql", "sql"),
])
def test_known_extensions(path, expected):
    assert detect_language(path) == expected


@pytest.mark.parametrize("path", [
    "README",
    "docs/guide.md",
    "Makefile",
    "archive.tar.gz",
    "",
    None,
])
def test_unknown_extensions(path):
    assert detect_language(path) == "unknown"


def test_directory_dots_do_not_count_as_extension():
    assert detect_language("my.project/Makefile") == "unknown"
