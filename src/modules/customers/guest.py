"""Recognition of synthetic e-mails generated by guest checkouts.

Storefront clients that do not ask the shopper for an e-mail generate one
(``guest_<ts>_<rand>_<rand>_<token>@checkout.guest``).  Such addresses never
belong to a real account, so they may be reused across checkouts even when a
customer record with the same e-mail already exists.
"""

from __future__ import annotations

import re

GUEST_EMAIL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^guest_\d+_\d+_\d+_[a-z0-9]+@checkout\.guest$"),
    re.compile(r"@checkout\.guest$"),
    re.compile(r"^guest_.*@"),
    re.compile(r"^temp_guest_"),
    re.compile(r"^anonymous_guest_"),
)


def is_guest_email(email: str | None) -> bool:
    """Return ``True`` when *email* looks like a generated guest address."""
    if not email:
        return False
    normalized = email.strip().lower()
    return any(pattern.search(normalized) for pattern in GUEST_EMAIL_PATTERNS)
