"""Response normalizer — turn untrusted model text into an AnalysisResult.

The hosted model is asked for JSON but nothing guarantees it.  Every field
is checked before use and the diagram is stripped of any markdown fences
the model added despite the instructions.
"""

from __future__ import annotations

import json
import re
from typing import Any

from codelens.domain.entities import AnalysisResult, Finding, FindingCategory, Severity
from codelens.domain.exceptions import MalformedResponseError

REQUIRED_FIELDS: tuple[str, ...] = ("summary", "documentation", "mermaid", "analysis")

_OPEN_FENCE = re.compile(r"\A```(?:[\w+-]*[ \t]*\r?\n)?")
_CLOSE_FENCE = re.compile(r"\r?\n?[ \t]*```\Z")


def strip_code_fences(text: str) -> str:
    """Remove leading/trailing ``` fences (with or without a language tag).

    Repeats until nothing changes, so applying it twice equals applying it once.
    """
    result = text.strip()
    while True:
        stripped = _OPEN_FENCE.sub("", result, count=1)
        stripped = _CLOSE_FENCE.sub("", stripped, count=1).strip()
        if stripped == result:
            return result
        result = stripped


def parse_finding(item: Any) -> Finding:
    """Validate one finding record (``type``/``category``, ``severity``, ``description``)."""
    if not isinstance(item, dict):
        raise MalformedResponseError(f"Finding is not an object: {item!r}")

    raw_category = item.get("type", item.get("category"))
    raw_severity = item.get("severity")
    description = item.get("description")

    try:
        category = FindingCategory(str(raw_category).strip().lower())
        severity = Severity(str(raw_severity).strip().lower())
    except ValueError as exc:
        raise MalformedResponseError(f"Finding has an unknown type or severity: {exc}") from exc

    if not isinstance(description, str):
        raise MalformedResponseError("Finding is missing a 'description'.")

    return Finding(category=category, severity=severity, description=description)


def normalize(raw: str) -> AnalysisResult:
    """Parse the model output and return a validated :class:`AnalysisResult`."""
    text = strip_code_fences(raw)

    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"Model returned invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedResponseError("Model response is not a JSON object.")

    missing = [name for name in REQUIRED_FIELDS if name not in data]
    if missing:
        raise MalformedResponseError(
            f"Model response missing field(s): {', '.join(missing)}"
        )

    for name in ("summary", "documentation", "mermaid"):
        if not isinstance(data[name], str):
            raise MalformedResponseError(f"Model response field '{name}' is not a string.")

    findings = data["analysis"]
    if not isinstance(findings, list):
        raise MalformedResponseError("Model response field 'analysis' is not a list.")

    return AnalysisResult(
        summary=data["summary"],
        documentation=data["documentation"],
        diagram=strip_code_fences(data["mermaid"]),
        findings=tuple(parse_finding(item) for item in findings),
    )
