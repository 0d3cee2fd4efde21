"""
Command-line interface for sitewright.

This module provides the `sitewright` CLI tool for building static sites.
"""

import argparse
import asyncio
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from sitewright import __version__
from sitewright.build import EmissionError, RenderError, SiteFactory, SourceError
from sitewright.cli_utils import ChangedFiles, ErrorFormatter, PathValidator, setup_logging
from sitewright.config import SiteOptionsError
from sitewright.url_resolver import SourceNotFoundError

KNOWN_ERRORS = (SiteOptionsError, SourceError, SourceNotFoundError, RenderError, EmissionError)


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    project_dir: Path
    src: Optional[str] = None
    dest: Optional[str] = None
    location: Optional[str] = None
    metrics: Union[bool, str, None] = None
    quiet: bool = False
    dev: bool = False
    verbose: bool = False


@dataclass
class UpdateArgs:
    """Arguments for the update command."""

    project_dir: Path
    files: List[str] = field(default_factory=list)
    quiet: bool = False
    verbose: bool = False


@dataclass
class RunArgs:
    """Arguments for the run command."""

    project_dir: Path
    script: str = ""
    verbose: bool = False


def _overrides(args: BuildArgs) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for name in ("src", "dest", "location", "metrics"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    if args.quiet:
        overrides["quiet"] = True
    if args.dev:
        overrides["dev"] = True
    return overrides


def build_command(args: BuildArgs) -> None:
    """Build the site.

    Examples:
        sitewright build                     # Build the current directory
        sitewright build my-site             # Build a specific project
        sitewright build --dest public       # Build into ./public
        sitewright build --metrics           # Print phase timings
        sitewright build --metrics m.json    # Save phase timings
    """
    setup_logging(quiet=args.quiet, verbose=args.verbose)

    try:
        site = SiteFactory.from_project(args.project_dir, **_overrides(args))
        result = asyncio.run(site.build())

        if result.success:
            ErrorFormatter.print_success(f"Built {result.pages} pages in {result.build_time:.2f}s")
            print(f"Output: {site.options.dest_path}")
            sys.exit(0)
        else:
            ErrorFormatter.print_error("Build halted", result.message)
            sys.exit(1)

    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except KNOWN_ERRORS as e:
        ErrorFormatter.handle_error("Build failed!", e, args.verbose)
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def update_command(args: UpdateArgs) -> None:
    """Rebuild the site after some files changed.

    The site is loaded in full first, then the update runs on top of it.

    Examples:
        sitewright update . index.html              # One page changed
        sitewright update . _data/colors.yml        # Data changed
        sitewright update . /abs/path/src/a.html    # Absolute paths work too
    """
    setup_logging(quiet=args.quiet, verbose=args.verbose)

    try:
        site = SiteFactory.from_project(args.project_dir)
        files = ChangedFiles.to_site_paths(args.files, site.options.src_path)

        async def rebuild():
            await site.source.load_directory()
            return await site.update(files)

        result = asyncio.run(rebuild())

        if result.success:
            for change in result.changes:
                print(f"  {change.kind.value:<15} {change.path}")
            ErrorFormatter.print_success(f"Updated {len(result.changes)} file(s) in {result.build_time:.2f}s")
            sys.exit(0)
        else:
            ErrorFormatter.print_error("Update halted", result.message)
            sys.exit(1)

    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except (ValueError,) + KNOWN_ERRORS as e:
        ErrorFormatter.handle_error("Update failed!", e, args.verbose)
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def run_command(args: RunArgs) -> None:
    """Run a named script from sitewright.ini (or a shell command).

    Examples:
        sitewright run deploy
        sitewright run my-site check
    """
    setup_logging(verbose=args.verbose)

    try:
        site = SiteFactory.from_project(args.project_dir)
        success = asyncio.run(site.run(args.script))

        if success:
            ErrorFormatter.print_success(f"{args.script} finished")
            sys.exit(0)
        else:
            ErrorFormatter.print_error("Script failed", args.script)
            sys.exit(1)

    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except SiteOptionsError as e:
        ErrorFormatter.handle_error("Configuration error", e, args.verbose)
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def main() -> None:
    """sitewright - static site build orchestrator."""
    parser = argparse.ArgumentParser(
        prog="sitewright",
        description="sitewright - static site build orchestrator",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"sitewright {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build the entire site",
    )
    build_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    build_parser.add_argument(
        "--src",
        default=None,
        help="Source directory, relative to the project (default: ./)",
    )
    build_parser.add_argument(
        "--dest",
        default=None,
        help="Destination directory, relative to the project (default: ./_site)",
    )
    build_parser.add_argument(
        "--location",
        default=None,
        help="Public base URL (default: http://localhost)",
    )
    build_parser.add_argument(
        "--metrics",
        nargs="?",
        const=True,
        default=None,
        help="Print phase timings, or save them to the given file",
    )
    build_parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only show warnings and errors",
    )
    build_parser.add_argument(
        "--dev",
        action="store_true",
        help="Development mode",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    # Update command
    update_parser = subparsers.add_parser(
        "update",
        help="Rebuild after some source files changed",
    )
    update_parser.add_argument(
        "project_dir",
        type=Path,
        help="Project directory",
    )
    update_parser.add_argument(
        "files",
        nargs="+",
        help="Changed files, relative to the source directory",
    )
    update_parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only show warnings and errors",
    )
    update_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    # Run command
    run_parser = subparsers.add_parser(
        "run",
        help="Run a named script",
    )
    run_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    run_parser.add_argument(
        "script",
        help="Script name (from [scripts] in sitewright.ini) or shell command",
    )
    run_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    # Parse arguments
    parsed_args = parser.parse_args()

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    # Validate project directory exists
    PathValidator.validate_project_dir(parsed_args.project_dir)

    # Execute command
    if parsed_args.command == "build":
        build_args = BuildArgs(
            project_dir=parsed_args.project_dir,
            src=parsed_args.src,
            dest=parsed_args.dest,
            location=parsed_args.location,
            metrics=parsed_args.metrics,
            quiet=parsed_args.quiet,
            dev=parsed_args.dev,
            verbose=parsed_args.verbose,
        )
        build_command(build_args)
    elif parsed_args.command == "update":
        update_args = UpdateArgs(
            project_dir=parsed_args.project_dir,
            files=parsed_args.files,
            quiet=parsed_args.quiet,
            verbose=parsed_args.verbose,
        )
        update_command(update_args)
    elif parsed_args.command == "run":
        run_args = RunArgs(
            project_dir=parsed_args.project_dir,
            script=parsed_args.script,
            verbose=parsed_args.verbose,
        )
        run_command(run_args)


if __name__ == "__main__":
    main()
