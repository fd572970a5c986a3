import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def generate_slug(title: str) -> str:
    return _NON_ALNUM.sub("-", (title or "").lower()).strip("-")
