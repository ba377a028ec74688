"""Build flags and the build run itself."""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from icrbuild.exceptions import IcrbuildError, ValidationError, wrap_error
from icrbuild.ibmcloud.credentials import CloudConfig
from icrbuild.ibmcloud.session import new_registry_client
from icrbuild.lib.reference import is_valid_reference

from .client import RegistryBuildClient
from .engine import BuildEngine, BuildRequest

logger = logging.getLogger(__name__)


@dataclass
class BuildFlags:
    """Flags of a build, as given on the command line."""

    no_cache: bool = False
    pull: bool = False
    quiet: bool = False
    build_args: list[str] = field(default_factory=list)
    file: str = ""
    tag: str = ""


@dataclass
class BuildOptions:
    """
    Streams and flags for one build.

    Attributes
    ----------
    in_ : TextIO
        Input stream.
    out : TextIO
        Stream for build output.
    err : TextIO
        Stream for diagnostics.
    flags : BuildFlags
        Build flags.
    """

    in_: TextIO = field(default_factory=lambda: sys.stdin)
    out: TextIO = field(default_factory=lambda: sys.stdout)
    err: TextIO = field(default_factory=lambda: sys.stderr)
    flags: BuildFlags = field(default_factory=BuildFlags)

    def validate_tag(self) -> None:
        """
        Raises
        ------
        ValidationError
            If the tag is not a well formed image reference.
        """
        if not is_valid_reference(self.flags.tag):
            raise ValidationError("Image name is not in the correct format", {"tag": self.flags.tag})

    def run(self, directory: str, cloud_config: CloudConfig | None = None) -> str | None:
        """
        Authenticate with IBM Cloud and build the image in the registry.

        Parameters
        ----------
        directory : str
            Build context directory.
        cloud_config : CloudConfig, optional
            Connection settings.

        Returns
        -------
        str or None
            Image ID reported by the build, if any.

        Raises
        ------
        IcrbuildError
            If validation, authentication or the build fails.
        """
        self.validate_tag()

        try:
            registry_session, image_name = new_registry_client(self.flags.tag, cloud_config)
        except IcrbuildError as e:
            raise wrap_error(e, "Unable to connect to IBM Cloud") from e

        logger.debug(
            "Running IBM Container Registry build: context: %s, dockerfile: %s",
            directory,
            self.flags.file,
        )

        build_context = Path(directory).absolute()

        engine = BuildEngine(RegistryBuildClient(registry_session), out=self.out, err=self.err)
        return engine.run(
            BuildRequest(
                context=build_context,
                tag=image_name,
                dockerfile=self.flags.file or None,
                build_args=list(self.flags.build_args),
                nocache=self.flags.no_cache,
                pull=self.flags.pull,
                quiet=self.flags.quiet,
            )
        )
