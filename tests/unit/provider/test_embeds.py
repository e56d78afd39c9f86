"""Unit tests for the embed resolver."""

from __future__ import annotations

import pytest

from esia_oauth.provider import EMBED_SCOPES, EmbedResolver, EmbedSection, normalize_scope


pytestmark = pytest.mark.unit


@pytest.fixture
def resolver() -> EmbedResolver:
    """Create a resolver with the default table."""
    return EmbedResolver()


class TestNormalizeScope:
    """Tests for normalize_scope."""

    @pytest.mark.parametrize(
        ("scope", "expected"),
        [
            ("email", "email"),
            ("/email", "email"),
            ("/scope/email", "email"),
            ("/usr_org/", "usr_org"),
        ],
    )
    def test_returns_last_segment(self, scope: str, expected: str) -> None:
        """Should reduce path shaped scopes to their name."""
        assert normalize_scope(scope) == expected


class TestEmbedResolver:
    """Tests for EmbedResolver.resolve."""

    def test_no_scopes(self, resolver: EmbedResolver) -> None:
        """Should return no sections without scopes."""
        assert resolver.resolve([]) == []

    def test_unrelated_scopes(self, resolver: EmbedResolver) -> None:
        """Should ignore scopes that authorize no section."""
        assert resolver.resolve(["openid", "fullname", "birthdate"]) == []

    def test_email_authorizes_contacts_only(self, resolver: EmbedResolver) -> None:
        """Should not authorize addresses through email."""
        assert resolver.resolve({"email"}) == [EmbedSection.CONTACTS]

    def test_contacts_authorizes_contacts_and_addresses(
        self, resolver: EmbedResolver
    ) -> None:
        """Should authorize both sections through the contacts scope."""
        assert resolver.resolve({"contacts"}) == [
            EmbedSection.CONTACTS,
            EmbedSection.ADDRESSES,
        ]

    def test_organizations(self, resolver: EmbedResolver) -> None:
        """Should authorize organizations through usr_org."""
        assert resolver.resolve({"/usr_org"}) == [EmbedSection.ORGANIZATIONS]

    @pytest.mark.parametrize("scope", sorted(EMBED_SCOPES[EmbedSection.DOCUMENTS]))
    def test_every_document_scope(self, resolver: EmbedResolver, scope: str) -> None:
        """Should authorize documents through any document scope."""
        assert resolver.resolve([scope]) == [EmbedSection.DOCUMENTS]

    def test_follows_table_order(self, resolver: EmbedResolver) -> None:
        """Should list sections in table order regardless of scope order."""
        scopes = ["usr_org", "vehicles", "id_doc", "mobile"]

        assert resolver.resolve(scopes) == [
            EmbedSection.CONTACTS,
            EmbedSection.DOCUMENTS,
            EmbedSection.VEHICLES,
            EmbedSection.ORGANIZATIONS,
        ]

    def test_is_idempotent(self, resolver: EmbedResolver) -> None:
        """Should return the same sections when resolving the same scopes again."""
        scopes = frozenset({"usr_inf", "email", "vehicles", "addresses"})

        first = resolver.resolve(scopes)

        assert first
        assert resolver.resolve(scopes) == first
        assert resolver.resolve(sorted(scopes)) == first

    def test_repeated_scopes_do_not_duplicate(self, resolver: EmbedResolver) -> None:
        """Should not duplicate sections for repeated scopes."""
        scopes = ["email", "mobile", "contacts", "email"]
        assert resolver.resolve(scopes) == resolver.resolve(set(scopes))

    def test_section_values(self) -> None:
        """Should render sections as ESIA embed names."""
        assert ",".join([EmbedSection.CONTACTS, EmbedSection.VEHICLES]) == (
            "contacts.elements,vehicles.elements"
        )

    def test_custom_table(self) -> None:
        """Should resolve against a supplied table."""
        resolver = EmbedResolver({EmbedSection.VEHICLES: frozenset({"cars"})})
        assert resolver.resolve(["cars", "vehicles"]) == [EmbedSection.VEHICLES]
