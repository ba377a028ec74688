"""Rendering of build output messages."""

import io
import re
from typing import Any, TextIO

from icrbuild.exceptions import BuildError

_SUCCESSFULLY_BUILT = re.compile(r"Successfully built ([0-9a-f]+)")


class BuildOutput:
    """Write build output messages the way ``docker build`` prints them.

    In quiet mode progress is buffered, only the image ID is printed on
    success, and the buffered progress goes to the error stream on failure.

    Parameters
    ----------
    out : TextIO
        Stream for build progress and the image ID.
    err : TextIO
        Stream for buffered progress after a quiet build fails.
    quiet : bool
        Suppress progress unless the build fails.
    """

    def __init__(self, out: TextIO, err: TextIO, quiet: bool = False):
        self.out = out
        self.err = err
        self.quiet = quiet
        self.image_id = None
        self._buffer = io.StringIO()

    @property
    def _progress(self) -> TextIO:
        return self._buffer if self.quiet else self.out

    def write(self, message: dict[str, Any]) -> None:
        """Render one build output message.

        Raises
        ------
        BuildError
            If the message reports a build error.
        """
        if message.get("errorDetail") or message.get("error"):
            detail = message.get("errorDetail") or {}
            text = detail.get("message") or message.get("error") or "unknown build error"
            details = {"code": detail["code"]} if detail.get("code") else None
            raise BuildError(text, details)

        aux = message.get("aux")
        if isinstance(aux, dict) and aux.get("ID"):
            self.image_id = aux["ID"]

        if "stream" in message:
            text = message["stream"]
            match = _SUCCESSFULLY_BUILT.search(text)
            if match and not self.image_id:
                self.image_id = match.group(1)
            self._progress.write(text)
        elif "status" in message:
            line = message["status"]
            if message.get("id"):
                line = f"{message['id']}: {line}"
            if message.get("progress"):
                line = f"{line} {message['progress']}"
            self._progress.write(f"{line}\n")
        self._progress.flush()

    def fail(self) -> None:
        """Flush buffered quiet-mode progress to the error stream."""
        if self.quiet:
            self.err.write(self._buffer.getvalue())
            self.err.flush()

    def finish(self) -> None:
        """Print the image ID in quiet mode."""
        if self.quiet and self.image_id:
            self.out.write(f"{self.image_id}\n")
            self.out.flush()
