"""Catalogue of secret shapes scanned for in every diff before it leaves the machine.

Adding a new shape means appending a SecretPattern; the redactor has no
per-pattern logic. Vendor-specific shapes come first so their names are the
ones reported; generic ``NAME = "value"`` assignments run last.

No pattern may match the redaction marker itself, otherwise redaction would
not be idempotent. Value classes therefore exclude ``<``, and the patterns
that accept arbitrary characters start with a negative lookahead for the marker.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

REDACTION_MARKER = "<REDACTED_SECRET>"

_NOT_MARKER = r"(?!<REDACTED_SECRET>)"


@dataclass(frozen=True)
class SecretPattern:
    name: str
    regex: re.Pattern


def _p(name: str, pattern: str, flags: int = 0) -> SecretPattern:
    return SecretPattern(name=name, regex=re.compile(pattern, flags))


SECRET_PATTERNS: tuple[SecretPattern, ...] = (
    # Private key material
    _p(
        "PEM Private Key",
        r"-----BEGIN (?:[A-Z0-9]+ )*PRIVATE KEY-----[\s\S]*?-----END (?:[A-Z0-9]+ )*PRIVATE KEY-----",
    ),
    # A block cut off by diff truncation has no END line; redact to the end of the text.
    _p("PEM Private Key (unterminated)", r"-----BEGIN (?:[A-Z0-9]+ )*PRIVATE KEY-----[\s\S]*"),
    # Cloud providers
    _p("AWS Access Key ID", r"(?<![A-Za-z0-9/+=])(?:AKIA|ASIA)[0-9A-Z]{16}(?![A-Za-z0-9/+=])"),
    _p(
        "AWS Secret Access Key",
        r"(?:aws_secret_access_key|aws_secret_key)\s*[=:]\s*[\"']?[A-Za-z0-9/+=]{40}(?![A-Za-z0-9/+=])[\"']?",
        re.IGNORECASE,
    ),
    _p("Google Cloud API Key", r"AIza[0-9A-Za-z_\-]{35,}"),
    _p(
        "Google OAuth Client Secret",
        r"(?:client_secret|google_client_secret)\s*[=:]\s*[\"']?[A-Za-z0-9_\-]{24,}[\"']?",
        re.IGNORECASE,
    ),
    # Databases
    _p(
        "Database Connection String (URI)",
        r"(?:mongodb(?:\+srv)?|postgres(?:ql)?|mysql|mssql|redis|rediss|amqps?|rabbitmq)://[^\s'\"}{)<>]+",
        re.IGNORECASE,
    ),
    _p(
        "Database Connection String (env)",
        r"(?:DATABASE_URL|DATABASE_URI|DB_CONNECTION|MONGO_URI|REDIS_URL)\s*[=:]\s*[\"']?"
        + _NOT_MARKER
        + r"[^\s'\"<>]+[\"']?",
        re.IGNORECASE,
    ),
    # Tokens
    _p("JSON Web Token", r"eyJ[A-Za-z0-9_\-]{10,}\.eyJ[A-Za-z0-9_\-]{10,}\.[A-Za-z0-9_\-]+"),
    _p("Bearer Token", r"Bearer[ \t]+[A-Za-z0-9_\-.~+/]+=*"),
    _p("GitHub Personal Access Token", r"(?:ghp_[A-Za-z0-9]{36,}|github_pat_[A-Za-z0-9_]{22,})"),
    _p("GitHub OAuth Token", r"gho_[A-Za-z0-9]{36,}"),
    _p("GitHub App Token", r"gh[usr]_[A-Za-z0-9]{36,}"),
    _p("GitLab Personal Access Token", r"glpat-[A-Za-z0-9_\-]{20,}"),
    _p("Slack Token", r"xox[abposr]-[0-9]{10,}-[A-Za-z0-9\-]+"),
    _p("Stripe Secret Key", r"(?:sk|rk)_(?:live|test)_[A-Za-z0-9]{24,}"),
    # Generic assignments
    _p(
        "Generic API Key assignment",
        r"(?:api[_-]?key|api[_-]?secret|access[_-]?token|auth[_-]?token|secret[_-]?key|private[_-]?key|"
        r"encryption[_-]?key)\s*[=:]\s*[\"'][A-Za-z0-9_\-./+=]{16,}[\"']",
        re.IGNORECASE,
    ),
    _p(
        "Generic Secret env variable",
        r"(?:SECRET|TOKEN|PASSWORD|PASSWD|CREDENTIAL|AUTH)[A-Z_]*\s*[=:]\s*[\"']" + _NOT_MARKER + r"[^\"'\n]{8,}[\"']",
        re.IGNORECASE,
    ),
)

# Keywords that hint at sensitive content without being secrets themselves.
# Reported in dry-run previews only; never used to modify content.
SUSPICIOUS_KEYWORDS = (
    "password",
    "passwd",
    "secret",
    "credential",
    "private_key",
    "privatekey",
    "access_token",
    "accesstoken",
    "api_key",
    "apikey",
    "auth_token",
    "authtoken",
    "encryption_key",
    "master_key",
    "signing_key",
)
