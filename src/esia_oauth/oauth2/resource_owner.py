"""Generic resource owner container."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Mapping


class GenericResourceOwner:
    """Resource owner details as returned by the provider.

    Attributes:
        response: Raw response data.
        resource_owner_id_key: Key of the identifier inside ``response``.
    """

    def __init__(self, response: Mapping[str, Any], resource_owner_id_key: str) -> None:
        self.response = dict(response)
        self.resource_owner_id_key = resource_owner_id_key

    @property
    def id(self) -> Any:
        """Return the resource owner identifier."""
        return self.response.get(self.resource_owner_id_key)

    def get(self, key: str, default: Any = None) -> Any:
        return self.response.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.response)
