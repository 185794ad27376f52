"""Prompt construction.

The system prompt is identical for every file in a run and is part of the
cache key, so any wording change here invalidates cached results. Bump
PROMPT_VERSION when editing the templates so the change is explicit.
"""

from __future__ import annotations

PROMPT_VERSION = "2026-10-01"

BASE_AUDIT_PROMPT = """### ROLE & OBJECTIVE
You are an elite software architect reviewing a single-file diff.
Enforce clean code, SOLID principles and maintainability.

### GLOBAL STANDARDS
1. **Clean code:** names must be semantic; no magic numbers.
2. **Split code:** suggest splitting functions or components that do too much.
3. **Performance:** point out obvious bottlenecks.
4. **Error handling:** check boundaries and failure paths.

### REVIEW RULES
- Focus on added lines (starting with '+'); use removed lines ('-') only to spot
  regressions such as deleted checks or dropped error handling.
- Text shown as <REDACTED_SECRET> was removed on purpose; do not report it.
- Report line numbers from the new version of the file.
- Do not comment on code that already follows best practice."""

OUTPUT_FORMAT = """### OUTPUT FORMAT (JSON ONLY)
Respond with a single JSON object and nothing else:
{ "status": "PASS" | "FAIL", "issues": [{ "line": number, "severity": "CRITICAL" | "WARNING" | "INFO", "message": "string", "suggestion": "string" }] }
Use "PASS" with an empty "issues" list when there is nothing to report."""


def build_system_prompt(config: dict, guidelines: str | None = None) -> str:
    parts = [BASE_AUDIT_PROMPT]

    tech_stack = config.get("tech_stack")
    if tech_stack:
        parts.append(f"### TECH STACK CONTEXT\nThe code is written in: {tech_stack}")

    rules = config.get("rules") or []
    if rules:
        numbered = "\n".join(f"{i}. {rule}" for i, rule in enumerate(rules, 1))
        parts.append(f"### PROJECT SPECIFIC RULES (HIGHEST PRIORITY)\n{numbered}")

    if guidelines:
        parts.append(f"### TEAM GUIDELINES\n{guidelines.strip()}")

    parts.append(OUTPUT_FORMAT)
    return "\n\n".join(parts)


def build_user_prompt(file_path: str, content: str) -> str:
    return f"""Review the following change to `{file_path}`.

```diff
{content}
```"""


DEFAULT_COMMIT_PROMPT = """### ROLE
You are a strict release manager enforcing the Conventional Commits standard.

### RULES
1. The subject MUST be `<type>(<scope>): <subject>`; the scope is optional.
   Types: feat, fix, docs, style, refactor, perf, test, build, ci, chore, revert.
   Example: "feat(auth): add google login support"
2. The subject is lowercase and imperative ("add", not "added").
3. The message says enough to understand what changed."""

COMMIT_OUTPUT_FORMAT = """### OUTPUT FORMAT (JSON ONLY)
{ "status": "PASS" | "FAIL", "message": "reason for failure", "suggestion": "corrected example" }"""


def build_commit_prompt(commit_format: str | None = None) -> str:
    """System prompt for commit-message checks; ``commit_format`` replaces the default policy."""
    if commit_format:
        policy = (
            "### ROLE\nYou are a strict release manager.\n\n"
            "### RULES (COMPANY POLICY)\n"
            f'Every commit message must follow this format:\n"{commit_format}"\n'
            "Reject any message that does not."
        )
    else:
        policy = DEFAULT_COMMIT_PROMPT
    return f"{policy}\n\n{COMMIT_OUTPUT_FORMAT}"


def build_commit_user_prompt(message: str) -> str:
    return f'Commit Message: "{message}"'
