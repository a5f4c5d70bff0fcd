"""
Text normalization helpers

Upstream feeds mix full-width/half-width forms and combining sequences, so every
free-text field is stored in Unicode NFKC form.
"""
import unicodedata


def normalize_text(value: str) -> str:
    """Return the NFKC form of ``value``."""
    return unicodedata.normalize("NFKC", value)


def normalize_optional(value: str | None) -> str | None:
    """NFKC-normalize ``value`` while passing ``None`` through untouched."""
    if value is None:
        return None
    return normalize_text(value)
