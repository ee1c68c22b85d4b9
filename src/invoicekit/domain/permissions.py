"""Explicit write capabilities.

Mutating service calls accept an optional ``capability``. When it is given the
call is checked against it; when it is omitted the caller is assumed to have
authorized the operation already. Nothing here reads ambient state.
"""

from dataclasses import dataclass
from typing import Optional

from invoicekit.domain.errors import PermissionDenied

INVOICES = "invoices"
PAYMENTS = "payments"
QUOTES = "quotes"
RECURRING = "recurring"
PRODUCTS = "products"

ALL_SECTIONS = frozenset({INVOICES, PAYMENTS, QUOTES, RECURRING, PRODUCTS})

ROLE_SECTIONS = {
    "owner": ALL_SECTIONS,
    "manager": ALL_SECTIONS,
    "employee": frozenset({INVOICES, PAYMENTS, QUOTES}),
    "viewer": frozenset(),
}


@dataclass(frozen=True)
class Capability:
    """Set of sections a caller may write to."""

    sections: frozenset[str]

    @classmethod
    def for_role(cls, role: str) -> "Capability":
        """Build the capability granted to a tenant role.

        Raises:
            ValueError: If the role is unknown
        """
        try:
            return cls(sections=ROLE_SECTIONS[role.lower()])
        except KeyError:
            raise ValueError(f"Unknown role '{role}'") from None

    @classmethod
    def full(cls) -> "Capability":
        return cls(sections=ALL_SECTIONS)

    def allows(self, section: str) -> bool:
        return section in self.sections


def require(capability: Optional[Capability], section: str) -> None:
    """Raise PermissionDenied unless ``capability`` allows writing ``section``."""
    if capability is None:
        return
    if not capability.allows(section):
        raise PermissionDenied(f"Write access to '{section}' is not permitted")
