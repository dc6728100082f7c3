"""Chunk merging and final assembly — concat-demuxer merges.

Both steps write a manifest next to their inputs and run ffmpeg from that
directory, so the manifest only ever holds basenames.

  - merge_chunk re-encodes. Normalized clips share codec parameters but
    each carries its own timestamps, and re-encoding gives the chunk one
    continuous audio/video timeline.
  - assemble_final stream-copies. Every chunk came out of merge_chunk with
    the same encoder settings, so a second full re-encode would only cost
    time.
"""

from pathlib import Path

from .concat import write_concat_manifest
from .errors import FFmpegError, InvalidArgument, MergeError, NoInputError
from .ffmpeg import FFmpeg, FFmpegCommand
from .normalize import CHANNELS, SAMPLE_RATE


def _manifest_for(output: Path, members: list[Path]) -> Path:
    """Write `<output stem>.txt` beside the members."""
    manifest = members[0].parent / f"{output.stem}.txt"
    try:
        return write_concat_manifest(members, manifest)
    except ValueError as e:
        raise InvalidArgument(str(e)) from e


def build_chunk_command(manifest: str, output: str | Path, settings: dict) -> FFmpegCommand:
    return (
        FFmpegCommand()
        .concat_input(manifest)
        .video_codec(settings["video_codec"], preset=settings["preset"], pix_fmt="yuv420p")
        .audio_codec(settings["audio_codec"], sample_rate=SAMPLE_RATE, channels=CHANNELS)
        .output(output)
    )


def build_final_command(manifest: str, output: str | Path) -> FFmpegCommand:
    return (
        FFmpegCommand()
        .concat_input(manifest)
        .stream_copy()
        .option("-movflags", "+faststart")
        .output(output)
    )


def merge_chunk(
    clips: list[str | Path],
    output: str | Path,
    settings: dict,
    ffmpeg: FFmpeg,
) -> Path:
    """Concatenate normalized clips, in the given order, into one chunk.

    Args:
        clips: Normalized clip paths, all in one directory.
        output: Chunk file path (.mp4).
        settings: Normalized run settings (codecs, preset).
        ffmpeg: Runner.

    Returns:
        Path to the chunk.

    Raises:
        InvalidArgument: `clips` is empty or spans several directories.
        MergeError: ffmpeg failed or timed out.
    """
    if not clips:
        raise InvalidArgument("Cannot merge an empty chunk")

    members = [Path(c) for c in clips]
    output = Path(output).resolve()
    manifest = _manifest_for(output, members)

    try:
        ffmpeg.run(build_chunk_command(manifest.name, output, settings), cwd=manifest.parent)
    except FFmpegError as e:
        output.unlink(missing_ok=True)
        raise MergeError(f"Merging {output.name} failed: {e}") from e
    return output


def assemble_final(
    chunks: list[str | Path],
    output: str | Path,
    ffmpeg: FFmpeg,
) -> Path:
    """Stream-copy chunks, in the given order, into the final compilation.

    Args:
        chunks: Chunk paths produced by merge_chunk, all in one directory.
        output: Final compilation path. May live outside the chunk directory.
        ffmpeg: Runner.

    Returns:
        Path to the compilation.

    Raises:
        NoInputError: `chunks` is empty. Raised before any file is written.
        MergeError: ffmpeg failed or timed out.
    """
    if not chunks:
        raise NoInputError("No chunks to assemble")

    members = [Path(c) for c in chunks]
    output = Path(output).resolve()
    output.parent.mkdir(parents=True, exist_ok=True)
    manifest = _manifest_for(output, members)

    try:
        ffmpeg.run(build_final_command(manifest.name, output), cwd=manifest.parent)
    except FFmpegError as e:
        output.unlink(missing_ok=True)
        raise MergeError(f"Final assembly into {output.name} failed: {e}") from e
    return output
