"""ESIA access token parsing and validation."""

from esia_oauth.token.access_token import EsiaAccessToken
from esia_oauth.token.claims import SUBJECT_CLAIM, AccessTokenClaims


__all__ = [
    "SUBJECT_CLAIM",
    "AccessTokenClaims",
    "EsiaAccessToken",
]
