"""CLI for compilation runs — ledger selection, pipeline, handoff.

Two input modes:
  - ledger: select the most recent published clips from db.json and
    download them from Google Drive (needs clipreel[drive]).
  - local: compile the given local files, in the given order.

Usage:
    # From the ledger
    clipreel compile --config run.yaml \
        --drive-credentials service-account.json --publish-dir out/

    # From local files
    clipreel compile --clips a.mp4 b.mov c.webm --publish-dir out/

    # Check settings and selection only
    clipreel compile --config run.yaml --validate
"""

import argparse
import sys

from .errors import ClipreelError
from .fetch import DriveClipFetcher, LocalClipFetcher
from .ledger import load_ledger, select_sources
from .models import SourceClip
from .pipeline import CompilationPipeline
from .publish import DirectoryPublisher
from .settings import load_settings


def _parse_args(args=None):
    parser = argparse.ArgumentParser(
        description="Build a compilation from recent clips and hand it to publishers.",
    )
    parser.add_argument(
        "--config", default=None,
        help="Path to YAML run settings (default: built-in defaults)",
    )
    parser.add_argument(
        "--clips", nargs="+", default=None,
        help="Local clip files, in playback order (skips the ledger)",
    )
    parser.add_argument(
        "--ledger", default=None,
        help="Ledger JSON path (overrides settings)",
    )
    parser.add_argument(
        "--drive-credentials", default=None,
        help="Service account JSON for Google Drive downloads",
    )
    parser.add_argument(
        "--publish-dir", default=None,
        help="Copy the finished compilation into this directory",
    )
    parser.add_argument(
        "--output", default=None,
        help="Final compilation path during the run (overrides settings)",
    )
    parser.add_argument(
        "--chunk-size", type=int, default=None,
        help="Clips merged per chunk (overrides settings)",
    )
    parser.add_argument(
        "--resolution", default=None,
        help="Output frame size, e.g. 1920x1080 (overrides settings)",
    )
    parser.add_argument(
        "--preset", default=None,
        help="x264 preset (overrides settings)",
    )
    parser.add_argument(
        "--timeout", type=float, default=None,
        help="Seconds allowed per ffmpeg call (overrides settings)",
    )
    parser.add_argument(
        "--on-failure", choices=["skip", "abort"], default=None,
        help="Drop failing clips (skip) or end the run (abort)",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Print resolved settings and the clip selection, don't render",
    )
    return parser, parser.parse_args(args)


def main(args=None):
    parser, parsed = _parse_args(args)

    settings = load_settings(parsed.config, overrides={
        "ledger": parsed.ledger,
        "output": parsed.output,
        "chunk_size": parsed.chunk_size,
        "resolution": parsed.resolution,
        "preset": parsed.preset,
        "timeout": parsed.timeout,
        "on_failure": parsed.on_failure,
    })

    if parsed.clips:
        sources = [
            SourceClip(index=i, remote_id=path) for i, path in enumerate(parsed.clips)
        ]
        fetcher = LocalClipFetcher()
    else:
        try:
            entries = load_ledger(settings["ledger"])
        except ClipreelError as e:
            print(f"\nRun failed (ledger): {e}")
            sys.exit(1)
        print(f"Ledger: {len(entries)} entries in {settings['ledger']}")
        sources = select_sources(
            entries, max_clips=settings["max_clips"],
            min_id_length=settings["min_id_length"],
        )
        fetcher = None

    if parsed.validate:
        print(f"Settings valid: {settings['width']}x{settings['height']} @ "
              f"{settings['fps']}fps, preset={settings['preset']}, "
              f"chunk_size={settings['chunk_size']}, on_failure={settings['on_failure']}")
        print(f"Selected {len(sources)} clips:")
        for clip in sources:
            print(f"  {clip.index}: {clip.remote_id}")
        return

    if len(sources) < settings["min_clips"]:
        print(f"Not enough clips for a compilation yet "
              f"({len(sources)} < {settings['min_clips']}).")
        return

    if fetcher is None:
        if not parsed.drive_credentials:
            parser.error("Ledger mode requires --drive-credentials (or use --clips)")
        try:
            fetcher = DriveClipFetcher.from_service_account(parsed.drive_credentials)
        except ClipreelError as e:
            print(f"\nRun failed (credentials): {e}")
            sys.exit(1)

    publishers = []
    if parsed.publish_dir:
        publishers.append(DirectoryPublisher(parsed.publish_dir))

    pipeline = CompilationPipeline(fetcher, publishers, settings)
    try:
        result = pipeline.run(sources)
    except ClipreelError as e:
        print(f"\nRun failed ({pipeline.stage.value}): {e}")
        sys.exit(1)

    print(f"\nDone: {len(result.clip_indices)} clips in {result.chunks} chunks, "
          f"{len(result.dropped)} dropped")
    failed = [name for name, error in result.published.items() if error]
    if failed:
        print(f"Publishing failed for: {', '.join(failed)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
