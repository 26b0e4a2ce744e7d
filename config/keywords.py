from __future__ import annotations


# Central keyword tables for every name-based heuristic. Order matters: within a
# table the first matching entry wins, so keep the more specific terms first
# where two fields could claim the same header or node name.
#
# All matching is a case-insensitive substring test.

# Header aliases per logical ProfileRecord field (tabular parser).
HEADER_ALIASES: dict[str, list[str]] = {
    "name": ["name", "full name", "fullname"],
    "designation": ["designation", "title", "position", "role"],
    "organization": ["org", "organization", "company", "employer"],
    "image_url": ["profileimage", "image", "photo", "picture", "imageurl"],
    "linkedin_url": ["linkedin", "linkedin id", "linkedin url", "profile url"],
}

# Text node roles inside a template container, checked in this order.
TEXT_ROLE_KEYWORDS: list[tuple[str, list[str]]] = [
    ("name", ["name", "speaker", "participant"]),
    ("designation", ["designation", "title", "position"]),
    ("organization", ["org", "company", "employer"]),
]

# Fillable shapes whose name contains one of these are image slots.
IMAGE_SLOT_KEYWORDS: list[str] = ["image", "photo", "picture", "profile", "avatar"]

# Frames whose name contains one of these are treated as templates.
TEMPLATE_KEYWORDS: list[str] = ["template", "profile", "card", "speaker", "participant"]


def matches_any(text: str | None, keywords: list[str]) -> bool:
    low = (text or "").lower()
    return any(k.lower() in low for k in keywords)
