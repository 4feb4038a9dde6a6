"""
Captcha recognition seam used by the LinkHaitao login flow.

The recognizer itself is an external program; this module only hands it an
image and validates the code it prints.
"""
import asyncio
import os
import shlex
import tempfile
from typing import Optional, Protocol

from affiliate_orders import config
from affiliate_orders.exceptions import RecognitionFailure
from affiliate_orders.utils import get_logger

logger = get_logger(__name__)


class CaptchaSolver(Protocol):
    async def solve(self, image: bytes) -> str:
        ...


def validate_code(raw: Optional[str], length: Optional[int] = None) -> str:
    """Strip recognizer output and require the configured code length."""
    expected = config.CAPTCHA_CODE_LENGTH if length is None else length
    code = (raw or "").strip()
    if len(code) != expected:
        raise RecognitionFailure(
            "Captcha recognizer returned an invalid code",
            details={"code": code, "expected_length": expected},
        )
    return code


class CommandCaptchaSolver:
    """Runs ``<command> <image-path>`` and reads the code from stdout."""

    def __init__(self, command: Optional[str] = None):
        self.command = shlex.split(command or config.CAPTCHA_SOLVER_COMMAND)

    async def solve(self, image: bytes) -> str:
        fd, path = tempfile.mkstemp(suffix=".png", prefix="captcha_")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(image)
            try:
                process = await asyncio.create_subprocess_exec(
                    *self.command,
                    path,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as e:
                raise RecognitionFailure("Captcha recognizer could not be started", details={"error": str(e)}) from e
            stdout, stderr = await process.communicate()
        finally:
            try:
                os.unlink(path)
            except OSError:
                logger.warning("Could not remove captcha temp file", path=path)

        if process.returncode != 0:
            raise RecognitionFailure(
                "Captcha recognizer exited with an error",
                details={
                    "returncode": process.returncode,
                    "stderr": stderr.decode("utf-8", errors="replace").strip()[:200],
                },
            )
        return validate_code(stdout.decode("utf-8", errors="replace"))


__all__ = ["CaptchaSolver", "CommandCaptchaSolver", "validate_code"]
