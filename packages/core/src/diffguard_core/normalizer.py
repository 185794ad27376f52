"""Turn a model's free-text reply into a canonical AuditResult.

The same coercion runs on live replies and on values read back from the
cache, so both sources are trusted only after passing through here.
Nothing in this module raises on bad input.
"""

from __future__ import annotations

import json
import logging
import re

from diffguard_core.models import AuditIssue, AuditResult, AuditStatus, Severity

logger = logging.getLogger(__name__)

PARSE_FAILURE_MESSAGE = "Failed to parse AI response"
INVALID_FORMAT_MESSAGE = "Invalid AI response format"

_STATUSES = {s.value: s for s in AuditStatus}
_SEVERITIES = {s.value: s for s in Severity}


def strip_code_fences(raw: str) -> str:
    # Strip only the outer ```json ... ``` fence the model wraps the reply in,
    # not backticks inside message or suggestion values.
    cleaned = re.sub(r"^```(?:json)?\s*", "", raw.strip())
    return re.sub(r"\s*```$", "", cleaned.strip())


def extract_first_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` substring, honouring JSON string escapes."""
    start = text.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def _loads(text: str):
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return None


def parse_audit_response(raw) -> AuditResult:
    """Parse and normalize a raw reply. Always returns an AuditResult."""
    if not isinstance(raw, str) or not raw.strip():
        return AuditResult.error(PARSE_FAILURE_MESSAGE)

    cleaned = strip_code_fences(raw)
    data = _loads(cleaned)
    if data is None:
        candidate = extract_first_object(cleaned)
        data = _loads(candidate) if candidate else None
    if data is None:
        logger.warning("Failed to parse model response as JSON: %s", raw[:200])
        return AuditResult.error(PARSE_FAILURE_MESSAGE)

    return normalize_audit_result(data)


def _coerce_line(value) -> int:
    if isinstance(value, bool):
        return 1
    if isinstance(value, int):
        return value if value > 0 else 1
    if isinstance(value, float) and value.is_integer() and value > 0:
        return int(value)
    return 1


def _coerce_issue(item) -> AuditIssue | None:
    if not isinstance(item, dict):
        return None
    message = item.get("message")
    if not isinstance(message, str) or not message.strip():
        return None
    severity = item.get("severity")
    suggestion = item.get("suggestion")
    return AuditIssue(
        line=_coerce_line(item.get("line")),
        severity=_SEVERITIES.get(severity, Severity.WARNING) if isinstance(severity, str) else Severity.WARNING,
        message=message,
        suggestion=suggestion if isinstance(suggestion, str) and suggestion.strip() else None,
    )


def normalize_audit_result(data) -> AuditResult:
    """Coerce an already-decoded JSON value into a well-formed AuditResult."""
    if not isinstance(data, dict):
        return AuditResult.error(INVALID_FORMAT_MESSAGE)

    status = data.get("status")
    if not isinstance(status, str) or status not in _STATUSES:
        return AuditResult.error(INVALID_FORMAT_MESSAGE)

    raw_issues = data.get("issues")
    issues = []
    if isinstance(raw_issues, list):
        for item in raw_issues:
            issue = _coerce_issue(item)
            if issue is not None:
                issues.append(issue)

    message = data.get("message")
    suggestion = data.get("suggestion")
    return AuditResult(
        status=_STATUSES[status],
        issues=tuple(issues),
        message=message if isinstance(message, str) and message else None,
        suggestion=suggestion if isinstance(suggestion, str) and suggestion else None,
    )
