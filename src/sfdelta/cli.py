"""sfdelta CLI: build a package.xml from branch changes, then retrieve or deploy it."""

import argparse
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import List, Optional


def build_parser(sfdelta_version: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sfdelta",
        description=(
            "Build a Salesforce package.xml from the metadata changed on the current "
            "branch since it diverged from BRANCH, and optionally retrieve or deploy it."
        ),
    )
    parser.add_argument("--version", action="version", version=f"sfdelta {sfdelta_version}")
    parser.add_argument(
        "-b", "--branch",
        default=None,
        help="Comparison branch (required)"
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-r", "--retrieve",
        action="store_true",
        help="Retrieve the changed components from the org into the project instead of writing the manifest"
    )
    mode.add_argument(
        "-d", "--deploy",
        metavar="NAME",
        default=None,
        help="Retrieve, stamp with change-set NAME, repackage and deploy"
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Salesforce DX project root (defaults to the current directory)"
    )
    parser.add_argument(
        "--api-version",
        default=None,
        help="Manifest API version (defaults to sourceApiVersion from sfdx-project.json, then 63.0)"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point for sfdelta."""
    try:
        sfdelta_version = get_version("sfdelta")
    except PackageNotFoundError:
        sfdelta_version = "dev"

    parser = build_parser(sfdelta_version)
    args, unknown = parser.parse_known_args(argv)

    if unknown:
        print(f"Error: Unrecognized arguments: {' '.join(unknown)}", file=sys.stderr)
        parser.print_help()
        sys.exit(1)

    if not args.branch:
        print("Error: Missing required parameter: -b <branch>", file=sys.stderr)
        parser.print_help()
        sys.exit(1)

    if args.deploy is not None and not args.deploy.strip():
        print("Error: Change-set name for --deploy must not be empty", file=sys.stderr)
        sys.exit(1)

    def echo(message: str) -> None:
        if not args.quiet:
            print(message)

    # Lazy import: argument errors and --help stay fast
    from .api import build_manifest, collect_changed_paths, deploy_changes, retrieve_changes, write_manifest
    from .config import load_config
    from .errors import SfDeltaError

    try:
        config = load_config(args.project_root, api_version=args.api_version)

        current_branch, changed = collect_changed_paths(config, args.branch)
        echo(f'Comparing "{current_branch}" branch to "{args.branch}"')
        echo(f"  Changed files: {len(changed)}")
        if not changed:
            echo("[OK] No changes")
            sys.exit(0)

        build = build_manifest(changed, api_version=config.api_version)
        if build.unclassified:
            echo(f"[WARN] {len(build.unclassified)} changed file(s) matched no metadata rule and were skipped")
        if build.is_empty:
            echo("[OK] No metadata components in changed files")
            sys.exit(0)
        echo(f"  Components: {build.component_count} across {build.type_count} types")

        if args.deploy is not None:
            result = deploy_changes(config, build, args.deploy.strip(), echo=echo)
            if result.ok:
                echo(f"[OK] Change set '{result.label}' deployed")
            sys.exit(0 if result.ok else 1)

        if args.retrieve:
            retrieve_changes(config, build)
            echo("[OK] Retrieve complete")
            sys.exit(0)

        manifest_path = write_manifest(build, config.manifest_path)
        echo(f"[OK] {manifest_path.relative_to(config.project_root).as_posix()} created!")
        sys.exit(0)
    except (SfDeltaError, FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
