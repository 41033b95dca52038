"""
generation/pools.py

Fixed value pools the mock generator draws from uniformly.
"""

from __future__ import annotations

COUNTRIES: tuple[str, ...] = ("CN", "RU", "US", "BR", "IN", "DE", "FR", "UK", "JP", "KR")

COUNTRY_NAMES: dict[str, str] = {
    "CN": "China",
    "RU": "Russia",
    "US": "United States",
    "BR": "Brazil",
    "IN": "India",
    "DE": "Germany",
    "FR": "France",
    "UK": "United Kingdom",
    "JP": "Japan",
    "KR": "South Korea",
}

ATTACK_TYPES: tuple[str, ...] = (
    "SQL Injection",
    "XSS Attempt",
    "Brute Force",
    "DDoS Attack",
    "Directory Traversal",
    "Command Injection",
    "Cross-Site Request Forgery",
    "Authentication Bypass",
    "Buffer Overflow",
    "Code Injection",
)

TARGETS: tuple[str, ...] = (
    "/admin/login.php",
    "/wp-admin/",
    "/login",
    "/admin/",
    "/api/users",
    "/search?q=",
    "/upload.php",
    "/index.php",
    "/config.php",
    "/database.php",
    "/.env",
    "/backup.sql",
)

METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "PATCH")
SEVERITIES: tuple[str, ...] = ("high", "medium", "low")
LOG_STATUSES: tuple[str, ...] = ("blocked", "monitored", "analyzed")

USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36",
    "curl/7.68.0",
    "python-requests/2.25.1",
    "Wget/1.20.3",
    "sqlmap/1.5.2#stable (http://sqlmap.org)",
    "Nikto/2.1.6",
)

PAYLOADS: tuple[str, ...] = (
    "' OR '1'='1",
    '<script>alert("XSS")</script>',
    "../../../etc/passwd",
    "admin' --",
    "UNION SELECT * FROM users--",
    "<img src=x onerror=alert(1)>",
    "; DROP TABLE users; --",
    "; cat /etc/passwd | exec sh",
    "%27%20OR%201%3D1--",
    "{{7*7}}",
)

PATTERN_TEMPLATES: tuple[dict[str, str], ...] = (
    {
        "name": "Advanced SQL Injection Variant",
        "description": "Sophisticated SQL injection using encoded payloads and time-based techniques",
        "technique": "Union-based injection with encoding",
    },
    {
        "name": "Hybrid Brute Force Attack",
        "description": "Combination of dictionary and brute force attacks with distributed source IPs",
        "technique": "Distributed credential stuffing",
    },
    {
        "name": "Polymorphic XSS Pattern",
        "description": "XSS attempts using dynamic payload generation to evade detection",
        "technique": "DOM-based XSS with obfuscation",
    },
    {
        "name": "Zero-Day Exploit Attempt",
        "description": "Previously unknown attack vector targeting specific application vulnerabilities",
        "technique": "Buffer overflow with shellcode injection",
    },
    {
        "name": "AI-Evading Command Injection",
        "description": "Command injection using obfuscated techniques to bypass ML detection",
        "technique": "Base64 encoded command execution",
    },
    {
        "name": "Multi-Vector DDoS Campaign",
        "description": "Coordinated attack using multiple protocols and attack vectors simultaneously",
        "technique": "Layer 3/4/7 hybrid amplification",
    },
    {
        "name": "Steganographic Data Exfiltration",
        "description": "Data theft using hidden channels in legitimate-looking traffic",
        "technique": "DNS tunneling with encrypted payloads",
    },
    {
        "name": "Living-off-the-Land Attack",
        "description": "Attack using legitimate system tools to avoid detection",
        "technique": "PowerShell fileless execution",
    },
)
