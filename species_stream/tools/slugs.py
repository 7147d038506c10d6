from __future__ import annotations

import re


def generate_fish_slug(name: str) -> str:
    """URL slug for a species, e.g. "Thunnus thynnus" -> "thunnus-thynnus"."""
    if not name:
        return ""
    slug = re.sub(r"\s+", "-", name.lower().strip())
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")
