"""ESIA access token claims model."""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


SUBJECT_CLAIM = "urn:esia:sbj_id"


class AccessTokenClaims(BaseModel):
    """Claims carried by an ESIA access token.

    Attributes:
        subject_id: ESIA subject (person) identifier from ``urn:esia:sbj_id``.
        scope: Space-delimited granted scopes; each entry is URL shaped,
            e.g. ``http://esia.gosuslugi.ru/usr_inf?oid=1000299654``.
        issuer: Token issuer (``iss``).
        client_id: Information system the token was issued to.
        expires_at: Expiration timestamp (``exp``), a NumericDate which
            may be fractional.
        not_before: Not-before timestamp (``nbf``).
        issued_at: Issuance timestamp (``iat``).
    """

    model_config = ConfigDict(
        extra="allow",
        frozen=True,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    subject_id: str = Field(..., alias=SUBJECT_CLAIM, min_length=1)
    scope: Annotated[str, BeforeValidator(lambda v: v or "")] = ""
    issuer: str | None = Field(default=None, alias="iss")
    client_id: str | None = None
    expires_at: int | float | None = Field(default=None, alias="exp")
    not_before: int | float | None = Field(default=None, alias="nbf")
    issued_at: int | float | None = Field(default=None, alias="iat")
