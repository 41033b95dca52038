"""
llm/validator.py

Parses raw text from the remote model and merges it over a fallback.

The remote reply is untrusted input:
  - markdown fences and preamble text are tolerated
  - a field that is missing or has the wrong type takes the fallback's value
  - numeric fields are clamped (risk 1–10, confidence 0–100, occurrences
    1–10000), never rejected
A reply that is not a JSON object at all yields None and the caller
returns the fallback unchanged.
"""

from __future__ import annotations

import json
import logging
import math
import re
from datetime import datetime
from typing import Any

from ..models import (
    AttackAnalysis,
    AttackPattern,
    PatternStatus,
    clamp_confidence,
    clamp_risk,
)

logger = logging.getLogger(__name__)

_MAX_FIELD_LEN = 500
_MAX_RECOMMENDATIONS = 10
_MAX_ANOMALIES = 20
_MAX_OCCURRENCES = 10_000


def extract_json(raw_text: str) -> Any | None:
    """Return the decoded JSON value embedded in *raw_text*, or None."""
    if not raw_text or not raw_text.strip():
        logger.warning("Remote model returned empty response")
        return None

    text = raw_text.strip()

    # Strip markdown code fences if present: ```json ... ``` or ``` ... ```
    fence_match = re.search(r"```(?:json)?\s*([\s\S]+?)\s*```", text)
    if fence_match:
        text = fence_match.group(1)

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Find the first {...} block in case there's preamble text
    brace_match = re.search(r"\{[\s\S]+\}", text)
    if brace_match:
        try:
            return json.loads(brace_match.group(0))
        except json.JSONDecodeError as exc:
            logger.warning("Remote output is not valid JSON: %s | raw=%r", exc, raw_text[:200])
            return None

    logger.warning("Remote output contains no JSON object | raw=%r", raw_text[:200])
    return None


def merge_analysis(raw_text: str, fallback: AttackAnalysis) -> AttackAnalysis | None:
    """Overlay a remote single-log analysis onto *fallback*."""
    data = extract_json(raw_text)
    if not isinstance(data, dict):
        if data is not None:
            logger.warning("Remote analysis parsed but is not an object: %r", type(data))
        return None

    risk = _get_number(data, "riskScore")
    confidence = _get_number(data, "confidence")
    recommendations = _get_str_list(data, "recommendations")
    is_new = data.get("isNewPattern")

    return AttackAnalysis(
        attack_type=_get_str(data, "attackType") or fallback.attack_type,
        technique=_get_str(data, "technique") or fallback.technique,
        risk_score=clamp_risk(risk if risk is not None else fallback.risk_score),
        confidence=clamp_confidence(confidence if confidence is not None else fallback.confidence),
        recommendations=recommendations or list(fallback.recommendations),
        is_new_pattern=is_new if isinstance(is_new, bool) else fallback.is_new_pattern,
        pattern_name=_get_str(data, "patternName") or fallback.pattern_name,
        pattern_description=_get_str(data, "patternDescription") or fallback.pattern_description,
    )


def parse_anomalies(
    raw_text: str,
    first_seen: datetime,
    last_seen: datetime,
) -> list[AttackPattern] | None:
    """
    Convert a remote {"anomalies": [...]} reply into AttackPatterns.

    A bare JSON array is accepted too. Entries that are not objects are
    skipped; missing fields get neutral defaults.
    """
    data = extract_json(raw_text)
    if isinstance(data, dict):
        items = data.get("anomalies", [])
    else:
        items = data
    if not isinstance(items, list):
        logger.warning("Remote anomaly output has no anomaly list: %r", type(items))
        return None

    patterns: list[AttackPattern] = []
    for item in items[:_MAX_ANOMALIES]:
        if not isinstance(item, dict):
            continue
        confidence = _get_number(item, "confidence")
        risk = _get_number(item, "riskScore")
        occurrences = _get_number(item, "occurrences")
        patterns.append(AttackPattern(
            name=_get_str(item, "name") or "Unknown Pattern",
            description=_get_str(item, "description") or "No description available",
            technique=_get_str(item, "technique") or "Unknown",
            confidence=clamp_confidence(confidence if confidence is not None else 50),
            risk_score=clamp_risk(risk if risk is not None else 5),
            occurrences=_clamp_occurrences(occurrences),
            first_seen=first_seen,
            last_seen=last_seen,
            status=PatternStatus.NEW.value,
            ai_generated=True,
        ))
    return patterns


def _get_str(data: dict, key: str) -> str | None:
    """Extract a non-empty string field, truncated. None if missing or not a string."""
    val = data.get(key)
    if not isinstance(val, str):
        return None
    val = val.strip()[:_MAX_FIELD_LEN]
    return val or None


def _get_number(data: dict, key: str) -> float | None:
    """Finite number field as a float. None for bools, NaN, infinities and ints too large for a float."""
    val = data.get(key)
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        return None
    try:
        val = float(val)
    except OverflowError:
        return None
    if not math.isfinite(val):
        return None
    return val


def _clamp_occurrences(value: float | None) -> int:
    if value is None:
        return 1
    return int(max(1, min(_MAX_OCCURRENCES, value)))


def _get_str_list(data: dict, key: str) -> list[str]:
    val = data.get(key)
    if not isinstance(val, list):
        return []
    return [
        item.strip()[:_MAX_FIELD_LEN]
        for item in val[:_MAX_RECOMMENDATIONS]
        if isinstance(item, str) and item.strip()
    ]
