from __future__ import annotations

import re
from typing import Dict, Optional

_URL_RE = re.compile(r"<(.*)>")
_REL_RE = re.compile(r'rel="?([^"]+)"?')


def parse_link_header(header: Optional[str]) -> Dict[str, str]:
    """
    Parse an RFC 5988 style ``link`` header into a rel -> url mapping.

    Canvas paginates with entries like ``<https://.../courses?page=2>; rel="next"``.
    Entries without a ``;`` separated rel part are skipped; when a rel repeats,
    the last occurrence wins.
    """
    if not header:
        return {}

    links: Dict[str, str] = {}
    for part in header.split(","):
        section = part.split(";")
        if len(section) < 2:
            continue
        url = _URL_RE.sub(r"\1", section[0]).strip()
        name = _REL_RE.sub(r"\1", section[1]).strip()
        links[name] = url
    return links


def next_link(header: Optional[str]) -> Optional[str]:
    """Return the ``next`` page URL from a link header, if any."""
    return parse_link_header(header).get("next") or None


__all__ = ["parse_link_header", "next_link"]
