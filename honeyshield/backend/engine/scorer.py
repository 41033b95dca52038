"""
engine/scorer.py

ThreatScorer — rule-based analysis of a single TrafficLog.

Produces an attack technique label, a 1–10 risk score, a 0–100 confidence
and an ordered list of recommendations without calling any external
service. This is also the fallback the LLM adapter returns whenever the
remote call is skipped or fails.

The "new pattern" flag has a random trigger (15% by default) on top of its
content rules. It is a demo flourish; pass random_new_pattern_rate=0 to
make the scorer fully deterministic.
"""

from __future__ import annotations

import logging
import random
import re

from ..models import AttackAnalysis, TrafficLog, clamp_confidence, clamp_risk

logger = logging.getLogger(__name__)

HIGH_RISK_COUNTRIES: frozenset[str] = frozenset({"CN", "RU", "KP", "IR"})

DEFAULT_TECHNIQUE = "Advanced Persistent Threat"
CONFIDENCE_CAP = 95

_SEVERITY_WEIGHTS: dict[str, int] = {"high": 4, "medium": 2}

# First match wins.
_CATEGORY_WEIGHTS: tuple[tuple[str, int], ...] = (
    ("SQL",               3),
    ("Command Injection", 4),
    ("XSS",               2),
    ("Brute Force",       2),
    ("DDoS",              3),
)

_CATEGORY_RECOMMENDATIONS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("SQL", (
        "Implement parameterized queries",
        "Deploy a WAF rule for SQL injection signatures",
        "Conduct a security code review of the data access layer",
        "Apply least privilege to database accounts",
    )),
    ("XSS", (
        "Enforce a Content Security Policy",
        "Sanitize all user-supplied input",
        "Apply context-aware output encoding",
    )),
    ("Brute", (
        "Implement rate limiting on authentication endpoints",
        "Enable multi-factor authentication",
        "Require CAPTCHA after repeated failed logins",
    )),
    ("DDoS", (
        "Engage a DDoS protection service",
        "Apply traffic rate limiting",
        "Configure load balancing",
        "Enable autoscaling for exposed services",
    )),
)

GENERAL_RECOMMENDATIONS: tuple[str, ...] = (
    "Monitor traffic patterns for recurrence",
    "Update security policies",
    "Review firewall rules",
)

NEW_PATTERN_NAMES: tuple[str, ...] = (
    "Obfuscated Payload Variant",
    "Automated Scanner Campaign",
    "Sensitive File Probe",
    "Template Injection Probe",
    "Emerging Evasion Technique",
)

_URL_ESCAPE_RE = re.compile(r"%u[0-9a-f]{4}|%[0-9a-f]{2}", re.IGNORECASE)
_TEMPLATE_RE = re.compile(r"\{\{.*\}\}|\$\{.*\}|<%.*%>", re.DOTALL)
_SCANNER_AGENTS: tuple[str, ...] = (
    "sqlmap", "nikto", "nmap", "masscan", "zgrab", "gobuster", "dirbuster", "nuclei",
)
_KNOWN_CRAWLERS: tuple[str, ...] = ("googlebot", "bingbot")
_SENSITIVE_FILES: tuple[str, ...] = (".env", ".git")


class ThreatScorer:
    """
    Deterministic keyword/field scorer for TrafficLog records.

    Args:
        rng: random source for the demo "new pattern" trigger and name draw
        random_new_pattern_rate: probability of flagging a log as a new
            pattern when no content rule fires (0 disables it)
    """

    def __init__(
        self,
        rng: random.Random | None = None,
        random_new_pattern_rate: float = 0.15,
    ) -> None:
        self._rng = rng or random.Random()
        self.random_new_pattern_rate = random_new_pattern_rate

    def score_log(self, log: TrafficLog) -> AttackAnalysis:
        """Return an AttackAnalysis for *log*. Never raises on missing optional fields."""
        payload = log.payload or ""
        user_agent = log.user_agent or ""

        analysis = AttackAnalysis(
            attack_type=log.attack_type,
            technique=identify_technique(log.attack_type, payload),
            risk_score=risk_score(log),
            confidence=confidence_score(log),
            recommendations=recommendations(log.attack_type, log.country),
        )

        if self._is_new_pattern(log, payload, user_agent):
            analysis.is_new_pattern = True
            analysis.pattern_name = self._rng.choice(NEW_PATTERN_NAMES)
            analysis.pattern_description = (
                f"Novel attack behaviour from {log.source_ip} "
                f"targeting {log.target}"
            )

        logger.debug(
            "Scored log id=%s type=%r technique=%r risk=%d conf=%d new=%s",
            log.id, log.attack_type, analysis.technique,
            analysis.risk_score, analysis.confidence, analysis.is_new_pattern,
        )
        return analysis

    def _is_new_pattern(self, log: TrafficLog, payload: str, user_agent: str) -> bool:
        if has_url_escapes(payload):
            return True
        if is_scanner_agent(user_agent):
            return True
        target = log.target.lower()
        if any(marker in target for marker in _SENSITIVE_FILES):
            return True
        if _TEMPLATE_RE.search(payload):
            return True
        return self._rng.random() < self.random_new_pattern_rate


# ---------------------------------------------------------------------------
# Scoring rules
# ---------------------------------------------------------------------------

def identify_technique(attack_type: str, payload: str) -> str:
    """Map an attack type (refined by payload content) to a technique label."""
    p = payload.lower()

    if "SQL" in attack_type:
        if "union" in p:
            return "Union-based SQL Injection"
        if "sleep" in p or "waitfor" in p:
            return "Time-based Blind SQL Injection"
        if " or " in p or " and " in p or "'='" in p:
            return "Boolean-based Blind SQL Injection"
        if "drop table" in p or ";" in p:
            return "Stacked Queries SQL Injection"
        if "--" in p or "#" in p:
            return "Comment-based Authentication Bypass"
        return "Error-based SQL Injection"

    if "XSS" in attack_type:
        if "<script" in p:
            return "Reflected XSS via Script Tag"
        if "onerror=" in p or "onload=" in p:
            return "Event Handler XSS"
        if "javascript:" in p:
            return "JavaScript URI XSS"
        return "Cross-Site Scripting"

    if "Brute" in attack_type:
        return "Dictionary-based Credential Brute Force"

    if "DDoS" in attack_type:
        return "HTTP Flood (Layer 7)"

    if "Directory" in attack_type:
        if "../" in p or "..\\" in p:
            return "Path Traversal File Disclosure"
        return "Directory Enumeration"

    return DEFAULT_TECHNIQUE


def risk_score(log: TrafficLog) -> int:
    payload = (log.payload or "").lower()
    target = log.target.lower()

    score = 1
    score += _SEVERITY_WEIGHTS.get(log.severity, 0)

    for needle, weight in _CATEGORY_WEIGHTS:
        if needle in log.attack_type:
            score += weight
            break

    if "drop table" in payload:
        score += 2
    if "exec" in payload or "system" in payload:
        score += 3
    if "script" in payload:
        score += 1

    if "admin" in target or "config" in target:
        score += 2
    if "database" in target or "backup" in target:
        score += 2

    if log.country in HIGH_RISK_COUNTRIES:
        score += 1

    return clamp_risk(score)


def confidence_score(log: TrafficLog) -> int:
    payload = log.payload or ""
    p = payload.lower()
    target = log.target.lower()

    confidence = 70
    if len(payload) > 10:
        confidence += 10
    if "union select" in p or "<script>" in p:
        confidence += 15
    if "admin" in target or "login" in target:
        confidence += 10

    return clamp_confidence(min(CONFIDENCE_CAP, confidence))


def recommendations(attack_type: str, country: str) -> list[str]:
    """Category block, then geo block, then the general block."""
    recs: list[str] = []
    for needle, block in _CATEGORY_RECOMMENDATIONS:
        if needle in attack_type:
            recs.extend(block)
            break

    if country in HIGH_RISK_COUNTRIES:
        recs.append(f"Consider geo-blocking traffic originating from {country}")
        recs.append("Add the source IP to the threat intelligence watchlist")

    recs.extend(GENERAL_RECOMMENDATIONS)
    return recs


def has_url_escapes(payload: str) -> bool:
    return bool(_URL_ESCAPE_RE.search(payload))


def is_scanner_agent(user_agent: str) -> bool:
    ua = user_agent.lower()
    if any(tool in ua for tool in _SCANNER_AGENTS):
        return True
    return "bot" in ua and not any(crawler in ua for crawler in _KNOWN_CRAWLERS)
