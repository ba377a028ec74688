"""Container Registry builds API client."""

import logging
from dataclasses import dataclass
from typing import IO, Any, Iterator

import requests
from docker.errors import StreamParseError
from docker.utils.json_stream import json_stream

from icrbuild.exceptions import CloudAPIError
from icrbuild.ibmcloud.http import raise_for_api_error
from icrbuild.ibmcloud.iam import IAMTokens

logger = logging.getLogger(__name__)

BUILDS_PATH = "/api/v1/builds"
STREAM_CHUNK_SIZE = 1024


@dataclass
class ImageBuildRequest:
    """
    Query parameters of a remote image build.

    Attributes
    ----------
    tag : str
        Full image name the build is tagged with.
    dockerfile : str
        Dockerfile path inside the build context.
    buildargs : str
        JSON object of build arguments, "" when there are none.
    pull : bool
        Always pull base images.
    nocache : bool
        Do not use cached layers.
    """

    tag: str = ""
    dockerfile: str = ""
    buildargs: str = ""
    pull: bool = False
    nocache: bool = False

    def to_params(self) -> dict[str, str]:
        """Render query parameters, leaving out empty and false values."""
        params = {
            "t": self.tag,
            "dockerfile": self.dockerfile,
            "buildargs": self.buildargs,
            "pull": "true" if self.pull else "",
            "nocache": "true" if self.nocache else "",
        }
        return {key: value for key, value in params.items() if value}


@dataclass
class BuildTargetHeader:
    """Account the build runs in."""

    account_id: str

    def to_headers(self) -> dict[str, str]:
        return {"Account": self.account_id}


class RegistryBuilds:
    """
    Client for the Container Registry builds API.

    Parameters
    ----------
    http : requests.Session
        HTTP session from new_http_session().
    endpoint : str
        Registry endpoint URL, e.g. "https://us.icr.io".
    tokens : IAMTokens
        IAM tokens, refreshed once if the registry answers 401.
    timeout : tuple[float, float]
        (connect, read) timeout in seconds.
    """

    def __init__(self, http: requests.Session, endpoint: str, tokens: IAMTokens, timeout: tuple[float, float]):
        self.http = http
        self.endpoint = endpoint.rstrip("/")
        self.tokens = tokens
        self.timeout = timeout

    def _headers(self, target: BuildTargetHeader) -> dict[str, str]:
        headers = {
            "Authorization": self.tokens.authorization(),
            "Content-Type": "application/x-tar",
        }
        if self.tokens.refresh_token:
            headers["X-Auth-Refresh-Token"] = self.tokens.refresh_token
        headers.update(target.to_headers())
        return headers

    def _post(self, request: ImageBuildRequest, build_context: IO[bytes], target: BuildTargetHeader):
        try:
            return self.http.post(
                f"{self.endpoint}{BUILDS_PATH}",
                params=request.to_params(),
                data=build_context,
                headers=self._headers(target),
                stream=True,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise CloudAPIError(f"registry request failed: {e}", api="registry") from e

    def image_build(
        self,
        request: ImageBuildRequest,
        build_context: IO[bytes],
        target: BuildTargetHeader,
    ) -> Iterator[dict[str, Any]]:
        """
        Run an image build in the registry and stream its output.

        Parameters
        ----------
        request : ImageBuildRequest
            Build parameters.
        build_context : IO[bytes]
            Seekable tar archive of the build context.
        target : BuildTargetHeader
            Account the build runs in.

        Yields
        ------
        dict[str, Any]
            Decoded build output messages (``stream``, ``status``,
            ``aux``, ``errorDetail``, ...).

        Raises
        ------
        CloudAPIError
            If the registry rejects the build or cannot be reached.
        """
        logger.debug("Submitting build of %s to %s", request.tag or "<untagged>", self.endpoint)
        response = self._post(request, build_context, target)

        if response.status_code == 401 and self.tokens.can_refresh:
            response.close()
            logger.info("Registry rejected the IAM token, refreshing and retrying")
            self.tokens.refresh()
            build_context.seek(0)
            response = self._post(request, build_context, target)

        try:
            raise_for_api_error(response, "registry")
            try:
                yield from json_stream(response.iter_content(chunk_size=STREAM_CHUNK_SIZE))
            except requests.RequestException as e:
                raise CloudAPIError(f"registry build stream interrupted: {e}", api="registry") from e
            except StreamParseError as e:
                raise CloudAPIError(f"registry returned malformed build output: {e}", api="registry") from e
        finally:
            response.close()
