"""Handler for the build command."""

import logging
import traceback
from typing import Any

from icrbuild.exceptions import (
    BuildError,
    CloudAPIError,
    ConfigError,
    CredentialError,
    IcrbuildError,
    ValidationError,
)
from icrbuild.ibmcloud.credentials import CloudConfig
from icrbuild.ibmcloud.session import resolve_registry
from icrbuild.lib.output import error, info, print_key_value, success

from .options import BuildFlags, BuildOptions

logger = logging.getLogger(__name__)


def build_options_from_args(args) -> BuildOptions:
    """Translate parsed arguments into build options.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command-line arguments

    Returns
    -------
    BuildOptions
        Options with standard streams
    """
    return BuildOptions(
        flags=BuildFlags(
            no_cache=args.no_cache,
            pull=args.pull,
            quiet=args.quiet,
            build_args=list(args.build_args or []),
            file=args.dockerfile or "",
            tag=args.tag,
        )
    )


def handle(ctx: dict[str, Any]) -> int:
    """Handle the build command.

    Parameters
    ----------
    ctx : dict[str, Any]
        Command context with config and args

    Returns
    -------
    int
        Exit code: 0 for success, 1 for a failed build or API call,
        2 for configuration, validation or credential errors.
    """
    args = ctx["args"]
    verbose = ctx["verbose"]
    options = build_options_from_args(args)

    try:
        cloud_config = CloudConfig.from_config(ctx.get("config"))
        if getattr(args, "region", None):
            cloud_config.region = args.region

        if ctx["dry_run"]:
            return handle_dry_run(options, args.directory, cloud_config)

        image_id = options.run(args.directory, cloud_config)
    except (ConfigError, ValidationError, CredentialError) as e:
        error(str(e))
        if verbose:
            traceback.print_exc()
        return 2
    except BuildError as e:
        error(f"Build failed: {e}")
        return 1
    except CloudAPIError as e:
        error(str(e))
        if e.status_code in (401, 403):
            info("Check that your API key or CLI session has access to the registry namespace")
        if verbose:
            traceback.print_exc()
        return 1
    except IcrbuildError as e:
        error(str(e))
        return 1

    if not options.flags.quiet:
        if image_id:
            success(f"Image built: {options.flags.tag} ({image_id})")
        else:
            success(f"Image built: {options.flags.tag}")
    return 0


def handle_dry_run(options: BuildOptions, directory: str, cloud_config: CloudConfig) -> int:
    """Show what would be built without authenticating or uploading.

    Parameters
    ----------
    options : BuildOptions
        Build options
    directory : str
        Build context directory
    cloud_config : CloudConfig
        Connection settings

    Returns
    -------
    int
        Exit code (0 for success)
    """
    options.validate_tag()
    endpoint, _, image_name = resolve_registry(options.flags.tag, cloud_config.region)
    flags = options.flags

    info("DRY RUN: Build image in IBM Cloud Container Registry")
    print_key_value("Image", image_name, indent=1)
    print_key_value("Registry", endpoint, indent=1)
    print_key_value("Context", directory, indent=1)
    print_key_value("Dockerfile", flags.file or "Dockerfile", indent=1)
    if flags.build_args:
        print_key_value("Build args", ", ".join(flags.build_args), indent=1)
    print_key_value("Cache", "disabled (--no-cache)" if flags.no_cache else "enabled", indent=1)
    print_key_value("Pull", "always (--pull)" if flags.pull else "if missing", indent=1)
    return 0
