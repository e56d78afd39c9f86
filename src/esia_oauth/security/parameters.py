"""Client secret computation for ESIA requests.

ESIA verifies ``client_secret`` as a detached signature over the
concatenation ``scope + timestamp + client_id + state``. The field order,
the absence of separators and the timestamp format are all part of the
contract with the verifier: any deviation is not detected locally, ESIA
simply rejects the request as carrying an invalid signature.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Final

from jose.utils import base64url_encode

from esia_oauth.exceptions import SigningParametersError
from esia_oauth.observability.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Mapping

    from esia_oauth.security.signer.protocol import Signer

logger = get_logger(__name__)

TIMESTAMP_FORMAT: Final[str] = "%Y.%m.%d %H:%M:%S %z"
SIGNED_FIELDS: Final[tuple[str, ...]] = ("scope", "timestamp", "client_id", "state")


def format_timestamp(moment: datetime | None = None) -> str:
    """Format a moment as ``YYYY.MM.DD HH:MM:SS ±HHMM``.

    Defaults to now in local time. Naive datetimes are interpreted as local
    time; aware datetimes keep their own offset.
    """
    if moment is None:
        moment = datetime.now()
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return moment.strftime(TIMESTAMP_FORMAT)


def encode_signature(signature: bytes) -> str:
    """Base64url-encode ``signature`` without padding."""
    return base64url_encode(signature).decode("ascii")


class ParameterSigner:
    """Injects the signed ``client_secret`` into request parameters.

    Attributes:
        signer: Signer producing the detached signature.
    """

    def __init__(self, signer: Signer) -> None:
        self.signer = signer

    @staticmethod
    def build_message(params: Mapping[str, Any]) -> bytes:
        """Build the exact byte message ESIA expects to be signed.

        Raises:
            SigningParametersError: If a signed field is missing or empty.
        """
        parts = []
        for field in SIGNED_FIELDS:
            value = params.get(field)
            if value is None or str(value) == "":
                raise SigningParametersError(field)
            parts.append(str(value))
        return "".join(parts).encode("utf-8")

    def sign_parameters(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Return a copy of ``params`` with ``client_secret`` set.

        Any existing ``client_secret`` is overwritten; every other key is
        left untouched. SigningError from the signer propagates unchanged.
        """
        message = self.build_message(params)
        signature = self.signer.sign(message)

        signed = dict(params)
        signed["client_secret"] = encode_signature(signature)
        logger.debug(
            "Request parameters signed",
            client_id=signed["client_id"],
            state=signed["state"],
            signature_size=len(signature),
        )
        return signed
