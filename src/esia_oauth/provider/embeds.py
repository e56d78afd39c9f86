"""Scope-gated embed sections for resource owner lookups.

ESIA returns optional sub-resources of a person (contacts, documents, ...)
only when they are listed in the ``embed`` query parameter, and only if
the token was granted a scope that authorizes them.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Final


if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping


class EmbedSection(StrEnum):
    """Resource owner sections that may be embedded in a details query."""

    CONTACTS = "contacts.elements"
    ADDRESSES = "addresses.elements"
    DOCUMENTS = "documents.elements"
    VEHICLES = "vehicles.elements"
    ORGANIZATIONS = "organizations.elements"


# Declaration order is the order of sections in the embed parameter
EMBED_SCOPES: Final[dict[EmbedSection, frozenset[str]]] = {
    EmbedSection.CONTACTS: frozenset({"contacts", "email", "mobile"}),
    EmbedSection.ADDRESSES: frozenset({"contacts"}),
    EmbedSection.DOCUMENTS: frozenset(
        {
            "id_doc",
            "medical_doc",
            "military_doc",
            "foreign_passport_doc",
            "drivers_licence_doc",
            "birth_cert_doc",
            "residence_doc",
            "temporary_residence_doc",
        }
    ),
    EmbedSection.VEHICLES: frozenset({"vehicles"}),
    EmbedSection.ORGANIZATIONS: frozenset({"usr_org"}),
}


def normalize_scope(scope: str) -> str:
    """Return the last non-empty path segment of ``scope``.

    ``"email"``, ``"/email"`` and ``"/scope/email"`` all become ``"email"``.
    """
    return scope.rstrip("/").rsplit("/", 1)[-1]


class EmbedResolver:
    """Maps granted scopes to the embed sections they authorize.

    Attributes:
        table: Section to authorizing scopes mapping, in output order.
    """

    def __init__(
        self, table: Mapping[EmbedSection, frozenset[str]] = EMBED_SCOPES
    ) -> None:
        self.table = table

    def resolve(self, scopes: Iterable[str]) -> list[EmbedSection]:
        """Return every section authorized by at least one of ``scopes``.

        The result follows table declaration order, not scope order.
        """
        granted = {normalize_scope(scope) for scope in scopes}
        return [
            section
            for section, authorizing in self.table.items()
            if granted & authorizing
        ]
