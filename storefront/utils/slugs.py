import re

SLUG_MAX_LENGTH = 150
SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"

_non_slug_chars = re.compile(r"[^a-z0-9]+")


def slugify(value: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Lowercase, collapse anything outside [a-z0-9] into '-', trim dashes."""
    slug = _non_slug_chars.sub("-", value.lower()).strip("-")
    return slug[:max_length].rstrip("-")
