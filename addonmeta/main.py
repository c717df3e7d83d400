"""The mtcli command line."""

from __future__ import annotations

import argparse
import logging
import shutil
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field

from addonmeta.api import is_valid_semver
from addonmeta.cli import version_string
from addonmeta.extractor import DefaultBundleExtractor

ENVIRONMENTS = ("integration", "stage", "production")


@dataclass
class ValidateOptions:
    """Options of the validate command."""

    env: str = ""
    version: str = ""
    disabled: str = ""
    enabled: str = ""
    excluded_namespaces: list[str] = field(default_factory=list)

    def verify_flags(self) -> None:
        """Raise ValueError if the options are inconsistent."""
        if self.env not in ENVIRONMENTS:
            raise ValueError(
                f"'{self.env}' is not a valid environment; must be one of "
                "'integration', 'stage' or 'production'"
            )
        # an unset version falls back to the metadata's addonImageSetVersion
        if not self.version:
            return
        if self.version != "latest" and not is_valid_semver(f"v{self.version}"):
            raise ValueError(
                f"'{self.version}' is not a valid version; must be one of "
                "'latest' or match 'MAJOR.MINOR.PATCH'"
            )
        if self.disabled and self.enabled:
            raise ValueError("'--disabled' and '--enabled' are mutually exclusive options")


def _copy_unpacker(source: str, directory: str, timeout: float) -> None:
    shutil.copytree(source, directory, dirs_exist_ok=True)


def _run_bundle_validate(args: argparse.Namespace) -> str | None:
    extractor = DefaultBundleExtractor(unpacker=_copy_unpacker)
    try:
        extractor.validate_bundle(args.path)
    except ValueError as err:
        raise ValueError(f"validating bundle {args.path}: {err}") from err
    return None


def _run_version(args: argparse.Namespace) -> str | None:
    return version_string()


def _add_verbose(parser: argparse.ArgumentParser, root: bool) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False if root else argparse.SUPPRESS,
        help="verbose output",
    )


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser of the command."""
    parser = argparse.ArgumentParser(
        prog="mtcli", description="Managed Tenants CLI swiss army knife."
    )
    _add_verbose(parser, root=True)
    commands = parser.add_subparsers(dest="command", metavar="command")

    bundle = commands.add_parser(
        "bundle", help="Run a bundle subcommand.", description="Run a bundle subcommand."
    )
    _add_verbose(bundle, root=False)
    bundle.set_defaults(help_parser=bundle)
    bundle_commands = bundle.add_subparsers(dest="bundle_command", metavar="command")

    validate = bundle_commands.add_parser(
        "validate",
        help="Validate a bundle given it's directory.",
        description="Same as `$ opm alpha bundle validate <image>` but works locally.",
        epilog="\n".join(
            [
                "  # Validate a bundle given it's directory.",
                "  mtcli bundle validate <bundle_path>",
            ]
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_verbose(validate, root=False)
    validate.add_argument("path")
    validate.set_defaults(handler=_run_bundle_validate)

    version = commands.add_parser(
        "version",
        help="Show mtcli version information.",
        description="Show mtcli version information.",
    )
    _add_verbose(version, root=False)
    version.set_defaults(handler=_run_version)

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%d-%m-%Y %H:%M:%S",
        force=True,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command and return its exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    handler = getattr(args, "handler", None)
    if handler is None:
        getattr(args, "help_parser", parser).print_help()
        return 0

    try:
        output = handler(args)
    except (OSError, ValueError) as err:
        print(err)
        return 1
    if output is not None:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())