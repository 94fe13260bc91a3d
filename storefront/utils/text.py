"""
Text helpers: slugs and opaque tokens
"""
import hashlib
import re
import secrets

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """
    Lowercase, collapse runs of anything outside [a-z0-9] into "-",
    strip leading/trailing "-".

    "Running Shoes (Men's)" -> "running-shoes-men-s"
    """
    return _NON_SLUG_CHARS.sub("-", (value or "").lower()).strip("-")


def generate_token(nbytes: int = 32) -> str:
    return secrets.token_hex(nbytes)


def hash_token(token: str) -> str:
    """SHA-256 hex digest; only the digest of reset tokens is stored"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def escape_like(value: str, escape: str = "\\") -> str:
    """Escape LIKE wildcards so the value matches literally"""
    return (
        value.replace(escape, escape * 2)
        .replace("%", escape + "%")
        .replace("_", escape + "_")
    )
