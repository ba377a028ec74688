"""Unit tests for build output rendering."""

import io

import pytest

from icrbuild.commands.build.display import BuildOutput
from icrbuild.exceptions import BuildError


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def err():
    return io.StringIO()


@pytest.mark.unit
class TestBuildOutput:
    """Tests for BuildOutput."""

    def test_stream_text_written_verbatim(self, out, err):
        output = BuildOutput(out, err)

        output.write({"stream": "Step 1/2 : FROM alpine\n"})
        output.write({"stream": " ---> 3f53bb00af94\n"})

        assert out.getvalue() == "Step 1/2 : FROM alpine\n ---> 3f53bb00af94\n"

    def test_status_line(self, out, err):
        output = BuildOutput(out, err)

        output.write({"status": "Downloading", "id": "a1b2", "progress": "[==>   ] 1MB/3MB"})
        output.write({"status": "Digest: sha256:0123"})

        assert out.getvalue() == "a1b2: Downloading [==>   ] 1MB/3MB\nDigest: sha256:0123\n"

    def test_image_id_from_success_line(self, out, err):
        output = BuildOutput(out, err)

        output.write({"stream": "Successfully built 3f53bb00af94\n"})

        assert output.image_id == "3f53bb00af94"

    def test_error_detail_code(self, out, err):
        output = BuildOutput(out, err)

        with pytest.raises(BuildError) as exc_info:
            output.write({"errorDetail": {"code": 1, "message": "RUN returned a non-zero code: 1"}})

        assert exc_info.value.message == "RUN returned a non-zero code: 1"
        assert exc_info.value.details == {"code": 1}

    def test_quiet_buffers_until_failure(self, out, err):
        output = BuildOutput(out, err, quiet=True)

        output.write({"stream": "Step 1/1 : FROM alpine\n"})
        assert out.getvalue() == ""

        output.fail()
        assert err.getvalue() == "Step 1/1 : FROM alpine\n"

    def test_finish_without_image_id(self, out, err):
        output = BuildOutput(out, err, quiet=True)

        output.finish()

        assert out.getvalue() == ""
