"""
llm/prompt_builder.py

Builds sanitized prompts for the remote model from TrafficLog records.

Security:
  - Every string field is truncated and stripped of control characters.
  - Known prompt-injection phrases are replaced by a sanitized token.
    Attack payloads are attacker-controlled text, so they go through the
    same filter as everything else.
  - The system prompt defines the model's role and the exact output schema.
"""

from __future__ import annotations

import hashlib
import json
import re
from collections.abc import Sequence

from ..models import TrafficLog

_MAX_STRING_LEN = 200
_MAX_BATCH_ENTRIES = 50
_MAX_BATCH_JSON_LEN = 6000

# Injection patterns; a match replaces the whole value with a sanitized token
_INJECTION_RE = re.compile(
    r"ignore\s+(previous|all|prior)\s+instructions?"
    r"|you\s+are\s+(now|a)\s+"
    r"|forget\s+(everything|all|your)"
    r"|system\s*:"
    r"|assistant\s*:"
    r"|<\s*/?\s*(system|user|assistant)"
    r"|\[INST\]"
    r"|###\s*(instruction|system)",
    re.IGNORECASE,
)

ANALYSIS_SYSTEM_PROMPT = """\
You are a cybersecurity expert specializing in attack pattern analysis.
You will receive one web traffic log captured by a honeypot.
Identify the attack technique, risk level and countermeasures.

RULES:
- Respond ONLY with a valid JSON object matching the schema below.
- Base analysis ONLY on the provided data.

OUTPUT SCHEMA:
{
  "attackType": "<specific attack classification>",
  "technique": "<detailed attack technique>",
  "riskScore": <integer 1-10>,
  "confidence": <integer 0-100>,
  "recommendations": ["<countermeasure>", "..."],
  "isNewPattern": <true|false>,
  "patternName": "<name if new pattern>",
  "patternDescription": "<unique characteristics if new pattern>"
}"""

_ANALYSIS_TEMPLATE = """\
TRAFFIC LOG — ANALYSIS REQUIRED

IP: {source_ip}
Country: {country}
Attack Type: {attack_type}
Target: {target}
Method: {method}
Port: {port}
Severity: {severity}
User Agent: {user_agent}
Payload: {payload}

Provide your analysis as JSON."""

ANOMALY_SYSTEM_PROMPT = """\
You are an AI security analyst specializing in anomaly detection and novel
attack pattern identification.

RULES:
- Respond ONLY with a valid JSON object: {"anomalies": [ ... ]}
- Each anomaly: {"name": str, "description": str, "confidence": int 0-100,
  "technique": str, "riskScore": int 1-10, "occurrences": int}
- Only report patterns with confidence above 70.
- If nothing significant is found, return {"anomalies": []}."""

_ANOMALY_TEMPLATE = """\
Analyze these recent attack logs for anomalous patterns that might represent
new attack techniques: unusual vectors, novel payloads, coordinated sources,
new exploitation methods.

{logs_json}"""


def _sanitize_str(value: object) -> str:
    """Truncate, strip injection patterns and control characters."""
    value = str(value)[:_MAX_STRING_LEN]
    if _INJECTION_RE.search(value):
        return f"[SANITIZED:{hashlib.md5(value.encode()).hexdigest()[:8]}]"
    value = re.sub(r"[\x00-\x1f\x7f]", "", value)
    return value


def build_analysis_prompt(log: TrafficLog) -> tuple[str, str]:
    """Build (system_prompt, user_prompt) for a single log."""
    user_prompt = _ANALYSIS_TEMPLATE.format(
        source_ip=_sanitize_str(log.source_ip),
        country=_sanitize_str(log.country),
        attack_type=_sanitize_str(log.attack_type),
        target=_sanitize_str(log.target),
        method=_sanitize_str(log.method),
        port=int(log.port),
        severity=_sanitize_str(log.severity),
        user_agent=_sanitize_str(log.user_agent or "N/A"),
        payload=_sanitize_str(log.payload or "N/A"),
    )
    return ANALYSIS_SYSTEM_PROMPT, user_prompt


def build_anomaly_prompt(logs: Sequence[TrafficLog]) -> tuple[str, str]:
    """Build (system_prompt, user_prompt) summarising a batch of logs."""
    summary = [
        {
            "ip": _sanitize_str(log.source_ip),
            "type": _sanitize_str(log.attack_type),
            "target": _sanitize_str(log.target),
            "method": _sanitize_str(log.method),
        }
        for log in list(logs)[:_MAX_BATCH_ENTRIES]
    ]
    logs_json = json.dumps(summary, indent=2)[:_MAX_BATCH_JSON_LEN]
    return ANOMALY_SYSTEM_PROMPT, _ANOMALY_TEMPLATE.format(logs_json=logs_json)
