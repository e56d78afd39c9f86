"""Signer backed by an external openssl-compatible executable.

Shelling out avoids embedding a CMS implementation and lets deployments
use a GOST-enabled openssl build, which ESIA requires in production.
"""

from __future__ import annotations

import subprocess
from typing import TYPE_CHECKING

from esia_oauth.exceptions import SigningError
from esia_oauth.observability.logging import get_logger
from esia_oauth.security.signer.base import CertificateSigner


if TYPE_CHECKING:
    from pathlib import Path

logger = get_logger(__name__)


class ProcessSigner(CertificateSigner):
    """Produces detached PKCS#7 signatures by running ``openssl smime``.

    One short-lived process is spawned per signature. The message is fed on
    stdin and the DER signature is read from stdout.

    Attributes:
        tool_path: Executable name or path of the signing tool.
        timeout: Seconds to wait for the tool before killing it (None waits forever).
    """

    SIGN_ARGUMENTS = ("smime", "-sign", "-binary", "-outform", "DER", "-noattr")

    def __init__(
        self,
        certificate_path: str | Path,
        private_key_path: str | Path,
        private_key_password: str | None = None,
        tool_path: str = "openssl",
        timeout: float | None = 30.0,
    ) -> None:
        super().__init__(certificate_path, private_key_path, private_key_password)
        self.tool_path = tool_path
        self.timeout = timeout

    def build_command(self) -> list[str]:
        """Return the argv used to invoke the signing tool."""
        return [
            self.tool_path,
            *self.SIGN_ARGUMENTS,
            "-signer",
            str(self.certificate_path),
            "-inkey",
            str(self.private_key_path),
            "-passin",
            f"pass:{self.private_key_password or ''}",
        ]

    def sign(self, message: bytes) -> bytes:
        """Sign ``message`` with the external tool.

        communicate() writes the whole message and closes stdin while both
        output streams are drained, so neither side can block on a full
        pipe. The context manager closes all three pipes and reaps the
        process on every path.

        Raises:
            SigningError: If the tool cannot be started, times out, or exits
                with a non-zero status.
        """
        logger.debug("Signing message", tool=self.tool_path, size=len(message))

        try:
            process = subprocess.Popen(  # noqa: S603
                self.build_command(),
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            logger.error("Signing tool could not be started", tool=self.tool_path)
            msg = f"Cannot run signing tool {self.tool_path!r}: {e}"
            raise SigningError(msg) from e

        with process:
            try:
                output, errors = process.communicate(message, timeout=self.timeout)
            except subprocess.TimeoutExpired as e:
                process.kill()
                process.communicate()
                logger.error("Signing tool timed out", timeout=self.timeout)
                msg = f"Signing timed out after {self.timeout}s"
                raise SigningError(msg, process.returncode) from e

        if process.returncode != 0:
            error = SigningError.sign_failed_as_of(
                errors.decode("utf-8", errors="replace"),
                process.returncode,
            )
            logger.warning(
                "Signing tool failed",
                code=error.code,
                error=error.message,
            )
            raise error

        return output
