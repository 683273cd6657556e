import re

_NON_WORD = re.compile(r"[^\w\s-]", re.ASCII)
_WHITESPACE = re.compile(r"\s+", re.ASCII)
_HYPHENS = re.compile(r"-+")


def slugify(name: str) -> str:
    """Lower-case, strip non-word characters, hyphenate whitespace, collapse hyphens.

    Leading and trailing hyphens are dropped. Names with no ASCII letters or
    digits yield an empty string; callers supply their own fallback.
    """
    slug = _NON_WORD.sub("", (name or "").lower())
    slug = _WHITESPACE.sub("-", slug)
    return _HYPHENS.sub("-", slug).strip("-")


def unique_slug(base: str, taken) -> str:
    # Deterministic given the set of slugs already in the collection
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"
