"""
Best-effort masking of secrets in delivery error messages.

This is a heuristic for terminal output, not a security guarantee:
it catches the common ways a token ends up in an error string (auth
headers, key=value pairs, URL credentials, query parameters).
"""

from __future__ import annotations

import re

REDACTED = "[REDACTED]"

_PATTERNS = [
    (re.compile(r"(?i)(authorization\s*[:=]\s*bearer\s+)[^\s]+"), rf"\g<1>{REDACTED}"),
    (
        re.compile(r"(?i)((?:token|secret|password|api[_-]?key)\s*[:=]\s*)[^\s,;]+"),
        rf"\g<1>{REDACTED}",
    ),
    (re.compile(r"(?i)(https?://[^/\s:@]+:)[^@\s/]+@"), rf"\g<1>{REDACTED}@"),
    (re.compile(r"(?i)([?&](?:token|key|secret|sig)=)[^&\s]+"), rf"\g<1>{REDACTED}"),
]


def redact(text: str) -> str:
    for pattern, replacement in _PATTERNS:
        text = pattern.sub(replacement, text)
    return text
