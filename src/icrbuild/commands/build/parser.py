"""Parser configuration for the build command."""

import argparse


def register_arguments(parser: argparse.ArgumentParser) -> None:
    """Register the build arguments on the main parser.

    Parameters
    ----------
    parser : argparse.ArgumentParser
        Main parser
    """
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Optional: If specified, cached image layers from previous builds are not used in this build.",
    )
    parser.add_argument(
        "--pull",
        action="store_true",
        help="Optional: If specified, the base images are pulled even if an image with a matching tag "
        "already exists on the build host.",
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Optional: If specified, the build output is suppressed unless an error occurs.",
    )
    parser.add_argument(
        "--build-arg",
        dest="build_args",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Optional: Specify an additional build argument in the format 'KEY=VALUE'. The value of each "
        "build argument is available as an environment variable when you specify an ARG line that "
        "matches the key in your Dockerfile.",
    )
    parser.add_argument(
        "--file",
        "-f",
        dest="dockerfile",
        default="",
        help="Optional: Specify the location of the Dockerfile relative to the build context. If not "
        "specified, the default is 'PATH/Dockerfile', where PATH is the root of the build context.",
    )
    parser.add_argument(
        "--tag",
        "-t",
        required=True,
        help="The full name for the image that you want to build, which includes the registry URL "
        "and namespace.",
    )
    parser.add_argument(
        "directory",
        metavar="DIRECTORY",
        help="Build context directory",
    )
