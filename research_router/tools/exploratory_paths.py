"""Same-origin follow-up URL candidates derived from a seed result.

Candidates are plain strings. Callers run them through the same trust and
security classification as any retrieved result before fetching.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

from research_router.models.research import MergedResult

_NUMBERED_SEGMENT = re.compile(r"^(.*?)([0-9]+)(\.[^.]*)?$")


def generate_exploratory_paths(seed: MergedResult | str) -> list[str]:
    """Parent path and numeric siblings (n-1, n+1) of the seed URL."""
    url = seed if isinstance(seed, str) else seed.url
    try:
        parsed = urlparse(url)
    except ValueError:
        return []
    if not parsed.scheme or not parsed.netloc:
        return []

    origin = f"{parsed.scheme}://{parsed.netloc}"
    segments = [s for s in parsed.path.split("/") if s]
    paths: list[str] = []

    if len(segments) > 1:
        paths.append(origin + "/" + "/".join(segments[:-1]) + "/")

    last = segments[-1] if segments else ""
    match = _NUMBERED_SEGMENT.match(last)
    if match:
        base, digits, ext = match.group(1), match.group(2), match.group(3) or ""
        number = int(digits)
        for candidate in (number - 1, number + 1):
            if candidate <= 0:
                continue
            sibling = f"{base}{candidate}{ext}"
            paths.append(origin + "/" + "/".join(segments[:-1] + [sibling]))

    return paths
