"""ffmpeg invocation — typed command builder and subprocess runner.

FFmpegCommand collects inputs, filter graph, stream maps and codec options
as structured fields and renders them into an argument list. Arguments are
always passed to subprocess as a list, never through a shell, so clip
filenames are never re-parsed.

FFmpeg runs a command and turns every failure mode (non-zero exit, timeout,
missing executable) into a single FFmpegError carrying the stderr tail.
"""

import re
import subprocess
from pathlib import Path

import imageio_ffmpeg

from .errors import FFmpegError

# Last N characters of stderr kept on errors. ffmpeg prints the actual
# failure reason at the end.
STDERR_TAIL = 1000

_STREAM_RE = re.compile(r"^\s*Stream #\d+:\d+.*?: (Video|Audio):", re.MULTILINE)
_DURATION_RE = re.compile(r"Duration: (\d+):(\d+):(\d+(?:\.\d+)?)")


class FFmpegCommand:
    """One ffmpeg invocation, built up field by field.

    Example:
        cmd = (FFmpegCommand()
               .concat_input("chunk_000.txt")
               .video_codec("libx264", preset="ultrafast")
               .audio_codec("aac")
               .output("chunk_000.mp4"))
        cmd.build("/usr/bin/ffmpeg")
    """

    def __init__(self):
        self.inputs: list[tuple[list[str], str]] = []
        self.filter_graph: str | None = None
        self.maps: list[str] = []
        self.output_options: list[str] = []
        self.output_path: str | None = None

    # ── Inputs ─────────────────────────────────────────────────────

    def input(self, path: str | Path, *options: str) -> "FFmpegCommand":
        """Add an input file. `options` go before its -i (e.g. -f concat)."""
        self.inputs.append((list(options), str(path)))
        return self

    def concat_input(self, manifest: str | Path) -> "FFmpegCommand":
        """Add a concat-demuxer manifest as input."""
        return self.input(manifest, "-f", "concat", "-safe", "0")

    def lavfi_input(self, source: str, duration: float | None = None) -> "FFmpegCommand":
        """Add a libavfilter virtual source (e.g. anullsrc) as input.

        Sources like anullsrc are infinite; `duration` bounds them.
        """
        options = ["-f", "lavfi"]
        if duration:
            options += ["-t", f"{duration:.3f}"]
        return self.input(source, *options)

    # ── Filters and stream selection ───────────────────────────────

    def filter_complex(self, graph: str) -> "FFmpegCommand":
        self.filter_graph = graph
        return self

    def map(self, stream: str) -> "FFmpegCommand":
        self.maps.append(stream)
        return self

    # ── Output options ─────────────────────────────────────────────

    def video_codec(self, codec: str, preset: str | None = None,
                    pix_fmt: str | None = None) -> "FFmpegCommand":
        self.output_options += ["-c:v", codec]
        if preset:
            self.output_options += ["-preset", preset]
        if pix_fmt:
            self.output_options += ["-pix_fmt", pix_fmt]
        return self

    def audio_codec(self, codec: str, sample_rate: int | None = None,
                    channels: int | None = None) -> "FFmpegCommand":
        self.output_options += ["-c:a", codec]
        if sample_rate:
            self.output_options += ["-ar", str(sample_rate)]
        if channels:
            self.output_options += ["-ac", str(channels)]
        return self

    def stream_copy(self) -> "FFmpegCommand":
        self.output_options += ["-c", "copy"]
        return self

    def bitstream_filter(self, bsf: str) -> "FFmpegCommand":
        self.output_options += ["-bsf:v", bsf]
        return self

    def output_format(self, fmt: str) -> "FFmpegCommand":
        self.output_options += ["-f", fmt]
        return self

    def option(self, *args: str) -> "FFmpegCommand":
        """Append raw output options (e.g. "-shortest")."""
        self.output_options += list(args)
        return self

    def output(self, path: str | Path) -> "FFmpegCommand":
        self.output_path = str(path)
        return self

    # ── Rendering ──────────────────────────────────────────────────

    def build(self, exe: str) -> list[str]:
        """Render the full argument list, executable first.

        Raises:
            ValueError: No input or no output was set.
        """
        if not self.inputs:
            raise ValueError("ffmpeg command has no inputs")
        if self.output_path is None:
            raise ValueError("ffmpeg command has no output")

        cmd = [exe, "-y", "-hide_banner", "-nostdin"]
        for options, path in self.inputs:
            cmd += [*options, "-i", path]
        if self.filter_graph:
            cmd += ["-filter_complex", self.filter_graph]
        for stream in self.maps:
            cmd += ["-map", stream]
        cmd += self.output_options
        cmd.append(self.output_path)
        return cmd


def _stderr_tail(stderr) -> str:
    if not stderr:
        return ""
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    return stderr.strip()[-STDERR_TAIL:]


class FFmpeg:
    """Runs FFmpegCommands against one ffmpeg executable.

    Args:
        exe: Path to ffmpeg. Defaults to the binary bundled with imageio-ffmpeg.
        timeout: Seconds allowed per invocation, None for no limit.
    """

    def __init__(self, exe: str | None = None, timeout: float | None = None):
        self.exe = exe or imageio_ffmpeg.get_ffmpeg_exe()
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: dict) -> "FFmpeg":
        return cls(exe=settings["ffmpeg"], timeout=settings["timeout"])

    def run(self, command: FFmpegCommand, cwd: str | Path | None = None) -> None:
        """Run a command to completion.

        Raises:
            FFmpegError: Non-zero exit, timeout, or ffmpeg could not be started.
        """
        args = command.build(self.exe)
        try:
            subprocess.run(
                args, check=True, capture_output=True,
                cwd=str(cwd) if cwd is not None else None,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            raise FFmpegError(
                f"ffmpeg exited with status {e.returncode}", _stderr_tail(e.stderr),
            ) from e
        except subprocess.TimeoutExpired as e:
            raise FFmpegError(
                f"ffmpeg timed out after {self.timeout}s", _stderr_tail(e.stderr),
            ) from e
        except OSError as e:
            raise FFmpegError(f"could not start ffmpeg: {e}") from e

    def probe(self, path: str | Path) -> dict:
        """Report which stream types a media file has.

        imageio-ffmpeg does not bundle ffprobe, so this runs `ffmpeg -i`
        without an output and reads the stream listing from stderr. That
        invocation always exits non-zero; only the listing matters.

        Returns:
            {"video": bool, "audio": bool, "duration": float | None}. Both
            flags False for unreadable files; duration None when the
            container does not report one.

        Raises:
            FFmpegError: Timeout, or ffmpeg could not be started.
        """
        try:
            result = subprocess.run(
                [self.exe, "-hide_banner", "-nostdin", "-i", str(path)],
                capture_output=True, timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise FFmpegError(
                f"ffmpeg probe timed out after {self.timeout}s", _stderr_tail(e.stderr),
            ) from e
        except OSError as e:
            raise FFmpegError(f"could not start ffmpeg: {e}") from e

        listing = result.stderr.decode("utf-8", errors="replace")
        kinds = set(_STREAM_RE.findall(listing))
        duration = None
        match = _DURATION_RE.search(listing)
        if match:
            h, m, s = match.groups()
            duration = int(h) * 3600 + int(m) * 60 + float(s)
        return {"video": "Video" in kinds, "audio": "Audio" in kinds, "duration": duration}
