"""
Build engine.

Prepares the build context with the docker SDK (``.dockerignore``
handling, Dockerfiles outside the context, tar archiving) and drives any
client exposing the docker SDK ``build`` interface, rendering its output
like ``docker build``.
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, TextIO

from docker.api.build import process_dockerfile
from docker.utils import tar

from icrbuild.exceptions import BuildError, ValidationError

from .display import BuildOutput

logger = logging.getLogger(__name__)

DEFAULT_DOCKERFILE = "Dockerfile"


class BuildClient(Protocol):
    def build(self, fileobj, tag=None, dockerfile=None, buildargs=None, pull=False, nocache=False, decode=True): ...


@dataclass
class BuildRequest:
    """
    A resolved image build.

    Attributes
    ----------
    context : Path
        Build context directory.
    tag : str
        Full image name including the registry host.
    dockerfile : str or None
        Dockerfile path, relative to the context or absolute.
    build_args : list[str]
        ``KEY=VALUE`` or ``KEY`` entries.
    nocache : bool
        Do not use cached layers.
    pull : bool
        Always pull base images.
    quiet : bool
        Print only the image ID unless the build fails.
    """

    context: Path
    tag: str
    dockerfile: str | None = None
    build_args: list[str] = field(default_factory=list)
    nocache: bool = False
    pull: bool = False
    quiet: bool = False


def parse_build_args(build_args: list[str]) -> dict[str, str]:
    """
    Parse ``--build-arg`` values.

    ``KEY=VALUE`` sets the value. A bare ``KEY`` takes its value from the
    environment and is left out when the variable is not set.

    Parameters
    ----------
    build_args : list[str]
        Raw ``--build-arg`` values.

    Returns
    -------
    dict[str, str]
        Build arguments by name.

    Raises
    ------
    ValidationError
        If an entry has an empty key.
    """
    parsed = {}
    for entry in build_args or []:
        key, sep, value = entry.partition("=")
        if not key:
            raise ValidationError("Invalid build argument, expected KEY=VALUE", {"build_arg": entry})
        if sep:
            parsed[key] = value
        elif key in os.environ:
            parsed[key] = os.environ[key]
    return parsed


def read_dockerignore(context: Path) -> list[str] | None:
    """
    Read exclusion patterns from the context's ``.dockerignore``.

    Returns
    -------
    list[str] or None
        Patterns without blank lines and comments, or None when the file
        does not exist.
    """
    dockerignore = context / ".dockerignore"
    if not dockerignore.exists():
        return None

    lines = (line.strip() for line in dockerignore.read_text().splitlines())
    return [line for line in lines if line and not line.startswith("#")]


def resolve_dockerfile(context: Path, dockerfile: str | None) -> tuple[str, str | None]:
    """
    Locate the Dockerfile for a build.

    Parameters
    ----------
    context : Path
        Absolute build context directory.
    dockerfile : str or None
        Dockerfile path relative to the context, or absolute.

    Returns
    -------
    tuple[str, str or None]
        Name of the Dockerfile inside the archive and, for a Dockerfile
        outside the context, its contents to embed.

    Raises
    ------
    ValidationError
        If the Dockerfile does not exist.
    """
    dockerfile = dockerfile or DEFAULT_DOCKERFILE
    location = Path(dockerfile) if os.path.isabs(dockerfile) else context / dockerfile
    if not location.is_file():
        raise ValidationError(f"Cannot locate specified Dockerfile: {dockerfile}", {"path": str(location)})

    name, contents = process_dockerfile(dockerfile, str(context))
    return name, contents


class BuildEngine:
    """
    Run image builds through a build client.

    Parameters
    ----------
    client : BuildClient
        Client implementing the docker SDK ``build`` interface.
    out : TextIO, optional
        Stream for build output, by default sys.stdout.
    err : TextIO, optional
        Stream for buffered quiet-mode output on failure, by default sys.stderr.
    """

    def __init__(self, client: BuildClient, out: TextIO | None = None, err: TextIO | None = None):
        self.client = client
        self.out = out or sys.stdout
        self.err = err or sys.stderr

    def run(self, request: BuildRequest) -> str | None:
        """
        Build an image.

        Parameters
        ----------
        request : BuildRequest
            What to build.

        Returns
        -------
        str or None
            Image ID when the build output reports one.

        Raises
        ------
        ValidationError
            If the context, Dockerfile or build arguments are invalid.
        BuildError
            If the build fails.
        """
        context = Path(request.context)
        if not context.is_dir():
            raise ValidationError("Build context is not a directory", {"path": str(context)})
        context = context.resolve()

        buildargs = parse_build_args(request.build_args)
        dockerfile = resolve_dockerfile(context, request.dockerfile)
        exclude = read_dockerignore(context)

        logger.debug("Archiving build context %s", context)
        output = BuildOutput(self.out, self.err, quiet=request.quiet)

        with tar(str(context), exclude=exclude, dockerfile=dockerfile) as archive:
            messages = self.client.build(
                fileobj=archive,
                tag=request.tag,
                dockerfile=dockerfile[0],
                buildargs=buildargs,
                pull=request.pull,
                nocache=request.nocache,
                decode=True,
            )
            try:
                for message in messages:
                    output.write(_as_message(message))
            except BuildError:
                output.fail()
                raise

        output.finish()
        return output.image_id


def _as_message(message: Any) -> dict[str, Any]:
    if isinstance(message, dict):
        return message
    return {"stream": str(message)}
