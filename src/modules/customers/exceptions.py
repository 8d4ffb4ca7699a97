"""Customer domain exceptions.

Raised by the Service Layer when business rules are violated.  Each one
subclasses a kind from ``shared.domain.errors`` so the API boundary can
translate it without knowing the module.
"""

from __future__ import annotations

from shared.domain.errors import InvalidInput, InvalidState, NotFound, Unauthorized


class CustomerNotFound(NotFound):
    """The requested customer does not exist."""


class CustomerProfileMissing(Unauthorized):
    """An authenticated user has no linked customer record."""


class EmailAlreadyRegistered(InvalidState):
    """Guest checkout attempted with an e-mail owned by a registered account."""


class AddressNotFound(NotFound):
    """The address does not exist or belongs to another customer."""


class NeighborhoodNotFound(NotFound):
    """The referenced neighborhood does not exist or is inactive."""


class InvalidAddress(InvalidInput):
    """Address fields are incomplete or inconsistent."""
