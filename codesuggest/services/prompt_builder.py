"""
Prompt construction for code suggestion analysis.
"""
from typing import Dict, List

from codesuggest.models import FileDiff

SYSTEM_PROMPT = """You are an expert code reviewer. Analyze the given code diff and propose improvements as a JSON array.

Each suggestion must be a JSON object of this form:
{
  "filePath": "<file path>",
  "startLine": <start line number>,
  "endLine": <end line number>,
  "originalCode": "<original code>",
  "suggestedCode": "<improved code>",
  "explanation": "<why the change is an improvement>",
  "severity": "CRITICAL|WARNING|INFO|HINT",
  "category": "SECURITY|PERFORMANCE|BUG_RISK|CODE_STYLE|BEST_PRACTICE|DUPLICATION|COMPLEXITY|ERROR_HANDLING",
  "confidence": <0.0 to 1.0>
}

Review criteria:
1. SECURITY: SQL injection, XSS, path traversal, hard-coded credentials
2. PERFORMANCE: N+1 queries, needless loops, memory leaks, inefficient algorithms
3. BUG_RISK: null dereferences, race conditions, resource leaks, wrong logic
4. CODE_STYLE: naming conventions, formatting, consistency
5. BEST_PRACTICE: design patterns, SOLID principles, idiomatic usage
6. DUPLICATION: repeated code, extractable methods
7. COMPLEXITY: cyclomatic complexity, nesting depth, method length
8. ERROR_HANDLING: missing exception handling, overly broad catches, ignored errors

Rules:
- Only analyze changed code (lines included in the diff)
- Use a low confidence when unsure
- Higher severity requires higher confidence
- Suggested code must be complete and runnable
- Respond with a JSON array only, no additional text"""


def build_user_prompt(file_diff: FileDiff, language: str) -> str:
    """
    Build the per-file user prompt.

    Args:
        file_diff: File change to analyze.
        language: Detected language tag.

    Returns:
        Prompt text.
    """
    parts = [
        "## File Under Analysis",
        "",
        f"- **File path**: {file_diff.file_path}",
        f"- **Language**: {language}",
        "",
        "## Diff",
        "",
        "```diff",
        file_diff.diff,
        "```",
        "",
    ]

    if file_diff.full_content:
        parts.extend([
            "## Full File Context (for reference)",
            "",
            f"```{language}",
            file_diff.full_content,
            "```",
            "",
        ])

    parts.append("Analyze the code changes above and return your suggestions as a JSON array.")
    return "\n".join(parts)


def build_messages(file_diff: FileDiff, language: str) -> List[Dict[str, str]]:
    """System and user chat messages for one file."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_prompt(file_diff, language)},
    ]
