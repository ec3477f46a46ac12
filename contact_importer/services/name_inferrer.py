"""
Best-effort display names for bare email addresses.

"john.doe@example.com" -> "John Doe", "jane_smith" -> "Jane Smith",
"support" -> "Support". No dictionary, no locale rules.
"""

# Separators tried in priority order; the first one present wins.
_SEPARATORS = (".", "_")


def _capitalize_first(segment: str) -> str:
    return segment[:1].upper() + segment[1:]


def infer_name(email: str) -> str:
    """Derive a display name from the local part of an address (or a bare local part)."""
    if not email:
        return ""

    local = email.split("@", 1)[0]

    for separator in _SEPARATORS:
        if separator in local:
            segments = [s for s in local.split(separator) if s]
            return " ".join(_capitalize_first(s) for s in segments)

    return _capitalize_first(local)
