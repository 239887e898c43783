"""URL-safe slug generation utilities."""

import re
import unicodedata

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$", re.IGNORECASE)


def slugify(text: str) -> str:
    """Convert text to a URL-safe slug (lowercase, hyphens, no special chars).

    Args:
        text: Text to slugify (e.g. "Championship 2026").

    Returns:
        Slugified text (e.g. "championship-2026").
    """
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def is_valid_slug(slug: str) -> bool:
    """Check that a public slug only holds letters, digits and hyphens."""
    return bool(slug) and SLUG_PATTERN.match(slug) is not None
