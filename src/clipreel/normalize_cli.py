"""CLI for normalizing a single clip — check how a source will look.

Usage:
    clipreel normalize source.mov --output source.ts
    clipreel normalize source.mov --output source.ts --resolution 1280x720
"""

import argparse
import sys
from pathlib import Path

from .errors import TranscodeError
from .ffmpeg import FFmpeg
from .normalize import normalize_clip
from .settings import load_settings


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Normalize one clip to the compilation's intermediate encoding.",
    )
    parser.add_argument("source", help="Path to source video")
    parser.add_argument(
        "--output", default=None,
        help="Output .ts path (default: <source>.normalized.ts)",
    )
    parser.add_argument("--config", default=None, help="Path to YAML run settings")
    parser.add_argument("--resolution", default=None, help="e.g. 1920x1080")
    parser.add_argument("--preset", default=None, help="x264 preset")
    parsed = parser.parse_args(args)

    settings = load_settings(parsed.config, overrides={
        "resolution": parsed.resolution,
        "preset": parsed.preset,
    })
    source = Path(parsed.source)
    output = Path(parsed.output) if parsed.output else source.with_suffix(".normalized.ts")
    output.parent.mkdir(parents=True, exist_ok=True)

    print(f"Normalizing {source} -> {output} "
          f"({settings['width']}x{settings['height']}, {settings['preset']})")
    try:
        normalize_clip(source, output, settings, FFmpeg.from_settings(settings))
    except TranscodeError as e:
        print(f"Failed: {e}")
        sys.exit(1)
    print(f"Done: {output}")


if __name__ == "__main__":
    main()
