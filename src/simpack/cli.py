"""
Command-line interface for simpack.

This module provides the `simpack` CLI tool for building runnables.
"""

import argparse
import asyncio
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from simpack import __version__
from simpack.build.brands import BRAND_NAMES
from simpack.build.build_context import ALL_LOCALES, BuildRequest
from simpack.build.orchestrator import BuildResult, RunnableBuilder
from simpack.build.progress import ArtifactProgressDisplay
from simpack.config import SimpackConfig
from simpack.errors import SimpackError
from simpack.output import init_timer, log_error, log_header, log_success, set_verbose


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    repo: str
    root: Optional[Path] = None
    brands: str = "phet"
    locales: str = ALL_LOCALES
    minify: bool = True
    mangle: bool = True
    instrument: bool = False
    all_html: bool = False
    verbose: bool = False
    tui: bool = True


def parse_brands(brands: str) -> List[str]:
    """Split a comma-separated brand list, keeping order and dropping duplicates."""
    return list(dict.fromkeys(b.strip() for b in brands.split(",") if b.strip()))


def _use_tui(args: BuildArgs) -> bool:
    return args.tui and sys.stdout.isatty()


async def run_builds(config: SimpackConfig, requests: List[BuildRequest], use_tui: bool) -> List[BuildResult]:
    """Build each request in turn; the first failure aborts the remaining brands."""
    results = []
    for request in requests:
        if use_tui:
            with ArtifactProgressDisplay(None, f"{request.repo} ({request.brand})") as display:
                builder = RunnableBuilder(config, progress=display)
                results.append(await builder.build(request))
        else:
            builder = RunnableBuilder(config)
            results.append(await builder.build(request))
    return results


def build_command(args: BuildArgs) -> None:
    """Build a runnable for one or more brands.

    Examples:
        simpack build example-sim                       # phet brand, all locales
        simpack build example-sim --brands phet,phet-io
        simpack build example-sim --locales en,es --all-html
        simpack build example-sim --no-minify           # fast, unminified build
    """
    init_timer()
    set_verbose(args.verbose)
    log_header("simpack", __version__)

    try:
        config = SimpackConfig.from_env(root=args.root, verbose=args.verbose)
        brands = parse_brands(args.brands)
        if not brands:
            raise SimpackError("No brands given")

        # Validate every request before building any of them
        requests = [
            BuildRequest.create(
                repo=args.repo,
                brand=brand,
                locales=args.locales,
                instrument=args.instrument,
                all_html=args.all_html,
                minify=args.minify,
                mangle=args.mangle,
            )
            for brand in brands
        ]

        results = asyncio.run(run_builds(config, requests, _use_tui(args)))

        for result in results:
            log_success(f"Built {len(result.written)} files in {result.build_dir} ({result.build_time:.2f}s)")
        sys.exit(0)

    except SimpackError as e:
        log_error(str(e))
        sys.exit(1)

    except KeyboardInterrupt:
        log_error("Build interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    except Exception as e:
        log_error(f"Unexpected error: {type(e).__name__}: {e}")
        if args.verbose:
            import traceback

            print()
            print("Traceback:")
            print(traceback.format_exc())
        sys.exit(1)


def main(argv: Optional[List[str]] = None) -> None:
    """simpack - packages runnables into distributable HTML bundles."""
    parser = argparse.ArgumentParser(
        prog="simpack",
        description="simpack - packages runnables into distributable HTML bundles",
    )
    parser.add_argument("--version", action="version", version=f"simpack {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    build_parser = subparsers.add_parser("build", help="Build a runnable")
    build_parser.add_argument("repo", help="Target repository (directory under the workspace root)")
    build_parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Workspace root holding sibling repositories (default: $SIMPACK_ROOT or the parent of the cwd)",
    )
    build_parser.add_argument(
        "--brands",
        default="phet",
        help=f"Comma-separated brands to build ({', '.join(BRAND_NAMES)})",
    )
    build_parser.add_argument(
        "--locales",
        default=ALL_LOCALES,
        help='Locales to build: "*" for all, or comma-separated codes (default: "*")',
    )
    build_parser.add_argument("--no-minify", dest="minify", action="store_false", help="Skip minification")
    build_parser.add_argument("--no-mangle", dest="mangle", action="store_false", help="Do not mangle identifiers")
    build_parser.add_argument("--instrument", action="store_true", help="Instrument the bundled code")
    build_parser.add_argument("--all-html", action="store_true", help="Also produce the all-locales HTML file")
    build_parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose build output")
    build_parser.add_argument("--no-tui", dest="tui", action="store_false", help="Disable the live artifact table")

    parsed = parser.parse_args(argv)

    if parsed.command == "build":
        build_command(
            BuildArgs(
                repo=parsed.repo,
                root=parsed.root,
                brands=parsed.brands,
                locales=parsed.locales,
                minify=parsed.minify,
                mangle=parsed.mangle,
                instrument=parsed.instrument,
                all_html=parsed.all_html,
                verbose=parsed.verbose,
                tui=parsed.tui,
            )
        )
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
