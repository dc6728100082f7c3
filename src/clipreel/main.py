"""Subcommand dispatcher for clipreel.

Usage:
    clipreel compile    --config run.yaml --drive-credentials sa.json --publish-dir out/
    clipreel compile    --clips a.mp4 b.mp4 c.mp4 --publish-dir out/
    clipreel normalize  source.mov --output source.ts
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="clipreel",
        description="Compile recent clips into one video for reposting.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("compile", help="Fetch, normalize, merge and publish a compilation")
    subparsers.add_parser("normalize", help="Normalize a single clip")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "compile":
        from .compile_cli import main as compile_main
        compile_main(remaining)
    elif parsed.command == "normalize":
        from .normalize_cli import main as normalize_main
        normalize_main(remaining)


if __name__ == "__main__":
    main()
