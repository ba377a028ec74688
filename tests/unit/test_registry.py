"""Unit tests for the Container Registry builds client."""

import io
from unittest.mock import Mock

import pytest
import requests

from icrbuild.exceptions import CloudAPIError
from icrbuild.ibmcloud.iam import IAMTokens
from icrbuild.ibmcloud.registry import BuildTargetHeader, ImageBuildRequest, RegistryBuilds

TIMEOUT = (50, 180)


@pytest.fixture
def http():
    return Mock(spec=requests.Session)


@pytest.mark.unit
class TestImageBuildRequest:
    """Tests for ImageBuildRequest.to_params()."""

    def test_omits_empty_values(self):
        assert ImageBuildRequest(tag="us.icr.io/ns/app").to_params() == {"t": "us.icr.io/ns/app"}

    def test_all_values(self):
        request = ImageBuildRequest(
            tag="us.icr.io/ns/app",
            dockerfile="build/Dockerfile",
            buildargs='{"A": "1"}',
            pull=True,
            nocache=True,
        )
        assert request.to_params() == {
            "t": "us.icr.io/ns/app",
            "dockerfile": "build/Dockerfile",
            "buildargs": '{"A": "1"}',
            "pull": "true",
            "nocache": "true",
        }


@pytest.mark.unit
class TestRegistryBuilds:
    """Tests for RegistryBuilds.image_build()."""

    def test_posts_context_and_streams_output(self, http, make_response):
        http.post.return_value = make_response(200, [{"stream": "Step 1/2 : FROM alpine\n"}, {"aux": {"ID": "sha256:1"}}])
        builds = RegistryBuilds(http, "https://us.icr.io/", IAMTokens("at", "rt"), TIMEOUT)
        context = io.BytesIO(b"tar-bytes")

        messages = list(
            builds.image_build(ImageBuildRequest(tag="us.icr.io/ns/app"), context, BuildTargetHeader("acct"))
        )

        assert messages == [{"stream": "Step 1/2 : FROM alpine\n"}, {"aux": {"ID": "sha256:1"}}]
        kwargs = http.post.call_args.kwargs
        assert http.post.call_args.args == ("https://us.icr.io/api/v1/builds",)
        assert kwargs["params"] == {"t": "us.icr.io/ns/app"}
        assert kwargs["data"] is context
        assert kwargs["stream"] is True
        assert kwargs["timeout"] == TIMEOUT
        assert kwargs["headers"]["Authorization"] == "Bearer at"
        assert kwargs["headers"]["X-Auth-Refresh-Token"] == "rt"
        assert kwargs["headers"]["Account"] == "acct"
        assert kwargs["headers"]["Content-Type"] == "application/x-tar"

    def test_error_status(self, http, make_response):
        http.post.return_value = make_response(403, {"code": "CRG0020E", "message": "You are not authorized"})
        builds = RegistryBuilds(http, "https://us.icr.io", IAMTokens("at"), TIMEOUT)

        with pytest.raises(CloudAPIError, match="You are not authorized") as exc_info:
            list(builds.image_build(ImageBuildRequest(), io.BytesIO(b""), BuildTargetHeader("acct")))

        assert exc_info.value.status_code == 403
        assert exc_info.value.api == "registry"

    def test_refreshes_token_once_on_401(self, http, make_response):
        iam = Mock()
        iam.refresh.return_value = IAMTokens("fresh-at", "fresh-rt")
        tokens = IAMTokens("stale-at", "rt", iam=iam)
        http.post.side_effect = [make_response(401, {"message": "token expired"}), make_response(200, [{"stream": "ok\n"}])]
        builds = RegistryBuilds(http, "https://us.icr.io", tokens, TIMEOUT)
        context = io.BytesIO(b"tar-bytes")
        context.read()

        messages = list(builds.image_build(ImageBuildRequest(), context, BuildTargetHeader("acct")))

        assert messages == [{"stream": "ok\n"}]
        assert http.post.call_count == 2
        assert http.post.call_args.kwargs["headers"]["Authorization"] == "Bearer fresh-at"
        assert context.tell() == 0

    def test_401_without_refresh_token(self, http, make_response):
        http.post.return_value = make_response(401, {"message": "token expired"})
        builds = RegistryBuilds(http, "https://us.icr.io", IAMTokens("at"), TIMEOUT)

        with pytest.raises(CloudAPIError, match="token expired"):
            list(builds.image_build(ImageBuildRequest(), io.BytesIO(b""), BuildTargetHeader("acct")))

        assert http.post.call_count == 1

    def test_connection_error(self, http):
        http.post.side_effect = requests.ConnectionError("no route to host")
        builds = RegistryBuilds(http, "https://us.icr.io", IAMTokens("at"), TIMEOUT)

        with pytest.raises(CloudAPIError, match="no route to host"):
            list(builds.image_build(ImageBuildRequest(), io.BytesIO(b""), BuildTargetHeader("acct")))

    def test_malformed_stream(self, http, make_response):
        http.post.return_value = make_response(200, b'{"stream": "ok"}\r\n{broken')
        builds = RegistryBuilds(http, "https://us.icr.io", IAMTokens("at"), TIMEOUT)

        with pytest.raises(CloudAPIError, match="malformed build output"):
            list(builds.image_build(ImageBuildRequest(), io.BytesIO(b""), BuildTargetHeader("acct")))
