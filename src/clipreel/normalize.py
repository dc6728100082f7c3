"""Normalizer — rewrite one source clip into the intermediate encoding.

Every clip leaves this step with the same shape so later concat steps never
see mismatched streams:
  - video scaled to fit inside the target frame (never cropped, never
    stretched), then centered on a black letterbox/pillarbox to the exact
    target size, square pixels, constant frame rate, yuv420p H.264.
  - AAC stereo 44.1 kHz audio. Clips without audio get a silent track.
  - MPEG-TS container with Annex B H.264 (h264_mp4toannexb), which the
    concat demuxer joins without container-level fixups.
"""

from pathlib import Path

from .errors import FFmpegError, TranscodeError
from .ffmpeg import FFmpeg, FFmpegCommand

SAMPLE_RATE = 44100
CHANNELS = 2
SILENCE = f"anullsrc=channel_layout=stereo:sample_rate={SAMPLE_RATE}"


def letterbox_filter(width: int, height: int, fps: int) -> str:
    """Filter graph fitting input 0's video into width x height as [v]."""
    return (
        f"[0:v]scale={width}:{height}:force_original_aspect_ratio=decrease:force_divisible_by=2,"
        f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2,"
        f"setsar=1,fps={fps}[v]"
    )


def build_normalize_command(
    source: str | Path,
    output: str | Path,
    settings: dict,
    has_audio: bool = True,
    duration: float | None = None,
) -> FFmpegCommand:
    """Build the ffmpeg command that normalizes `source` into `output`.

    Without source audio, a silent lavfi source is added as input 1, cut to
    `duration` when known, and -shortest trims it to the video length.
    """
    cmd = FFmpegCommand().input(source)
    if not has_audio:
        cmd.lavfi_input(SILENCE, duration=duration)

    cmd.filter_complex(
        letterbox_filter(settings["width"], settings["height"], settings["fps"])
    )
    cmd.map("[v]")
    cmd.map("0:a:0" if has_audio else "1:a:0")
    if not has_audio:
        cmd.option("-shortest")

    return (
        cmd.video_codec(settings["video_codec"], preset=settings["preset"], pix_fmt="yuv420p")
        .audio_codec(settings["audio_codec"], sample_rate=SAMPLE_RATE, channels=CHANNELS)
        .bitstream_filter("h264_mp4toannexb")
        .output_format("mpegts")
        .output(output)
    )


def normalize_clip(
    source: str | Path,
    output: str | Path,
    settings: dict,
    ffmpeg: FFmpeg,
) -> Path:
    """Normalize one clip.

    Args:
        source: Source video (any container/codec ffmpeg can read).
        output: Target .ts path inside the run workspace.
        settings: Normalized run settings (width, height, fps, codecs, preset).
        ffmpeg: Runner used for the probe and the transcode.

    Returns:
        Path to the normalized clip.

    Raises:
        TranscodeError: Source missing, unreadable or without a video
            stream, or ffmpeg failed or timed out.
    """
    source = Path(source)
    output = Path(output)
    if not source.is_file():
        raise TranscodeError(f"Source clip not found: {source}")

    try:
        streams = ffmpeg.probe(source)
    except FFmpegError as e:
        raise TranscodeError(f"Cannot probe {source.name}: {e}") from e
    if not streams["video"]:
        raise TranscodeError(f"No readable video stream in {source.name}")

    cmd = build_normalize_command(
        source, output, settings,
        has_audio=streams["audio"], duration=streams["duration"],
    )
    try:
        ffmpeg.run(cmd)
    except FFmpegError as e:
        output.unlink(missing_ok=True)
        raise TranscodeError(f"Normalizing {source.name} failed: {e}") from e
    return output
