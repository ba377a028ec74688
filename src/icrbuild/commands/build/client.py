"""Build client that runs builds in the registry instead of a Docker daemon."""

import json
import logging
from typing import IO, Any, Iterator

import requests

from icrbuild.exceptions import IcrbuildError
from icrbuild.ibmcloud.registry import ImageBuildRequest
from icrbuild.ibmcloud.session import RegistrySession

logger = logging.getLogger(__name__)


class RegistryBuildClient:
    """
    Build client backed by a Container Registry session.

    Exposes the part of the docker SDK ``APIClient.build`` interface the
    build engine relies on, so the engine drives a remote registry build
    exactly as it would drive a local daemon.

    Parameters
    ----------
    session : RegistrySession
        Authenticated registry session.
    """

    def __init__(self, session: RegistrySession):
        self.session = session

    def daemon_host(self) -> str:
        # There is no daemon behind this client
        return ""

    def build(
        self,
        fileobj: IO[bytes],
        tag: str | list[str] | None = None,
        dockerfile: str | None = None,
        buildargs: dict[str, str] | None = None,
        pull: bool = False,
        nocache: bool = False,
        decode: bool = True,
    ) -> Iterator[Any]:
        """
        Start a build of a tarred context.

        Parameters
        ----------
        fileobj : IO[bytes]
            Seekable tar archive of the build context.
        tag : str or list[str], optional
            Image name; only the first tag is used.
        dockerfile : str, optional
            Dockerfile path inside the archive.
        buildargs : dict[str, str], optional
            Build arguments.
        pull : bool
            Always pull base images.
        nocache : bool
            Do not use cached layers.
        decode : bool
            Yield decoded messages (True) or raw JSON lines (False).

        Returns
        -------
        Iterator
            Build output messages. Failures surface as a final
            ``errorDetail`` message rather than an exception.
        """
        tags = [tag] if isinstance(tag, str) else list(tag or [])
        request = ImageBuildRequest(
            tag=tags[0] if tags else "",
            dockerfile=dockerfile or "",
            buildargs=json.dumps(buildargs) if buildargs else "",
            pull=pull,
            nocache=nocache,
        )
        messages = self._stream(request, fileobj)
        if decode:
            return messages
        return (json.dumps(message).encode("utf-8") + b"\r\n" for message in messages)

    def _stream(self, request: ImageBuildRequest, fileobj: IO[bytes]) -> Iterator[dict[str, Any]]:
        try:
            yield from self.session.builds.image_build(request, fileobj, self.session.build_target_header)
        except (IcrbuildError, requests.RequestException) as e:
            logger.debug("Registry build failed: %s", e)
            yield {"errorDetail": {"message": str(e)}, "error": str(e)}
