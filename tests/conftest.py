"""Shared test fixtures for clipreel tests."""

import subprocess
from pathlib import Path

import pytest
import imageio_ffmpeg

from clipreel.errors import FFmpegError
from clipreel.settings import load_settings

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


@pytest.fixture
def make_clip(tmp_path):
    """Factory for small synthetic clips made with ffmpeg's lavfi sources.

    Each clip is a solid color, so the order of clips in a compilation can
    be read back from sampled frames.
    """
    src_dir = tmp_path / "sources"
    src_dir.mkdir(exist_ok=True)

    def _make(name, color="blue", size=(320, 240), duration=1.0, audio=True,
              vcodec="libx264", rate=10):
        out = src_dir / name
        cmd = [
            _FFMPEG, "-y",
            "-f", "lavfi", "-i", f"color=c={color}:s={size[0]}x{size[1]}:d={duration}:r={rate}",
        ]
        if audio:
            cmd += ["-f", "lavfi", "-i", "anullsrc=r=44100:cl=mono", "-shortest"]
        cmd += ["-c:v", vcodec, "-pix_fmt", "yuv420p"]
        if audio:
            cmd += ["-c:a", "aac", "-b:a", "32k"]
        cmd.append(str(out))
        subprocess.run(cmd, check=True, capture_output=True)
        return out

    return _make


@pytest.fixture
def source_video(make_clip):
    """A 2-second 320x240 clip with audio."""
    return make_clip("source.mp4", duration=2.0)


@pytest.fixture
def small_settings(tmp_path):
    """Settings with a small frame so real ffmpeg runs stay fast."""
    return load_settings(overrides={
        "resolution": "320x180",
        "fps": 10,
        "workspace_root": str(tmp_path / "work"),
        "output": str(tmp_path / "compilation_final.mp4"),
    })


def manifest_names(lines):
    """["file 'a.ts'", ...] -> ["a.ts", ...]"""
    return [line[len("file '"):-1] for line in lines]


class FakeFFmpeg:
    """Stands in for clipreel.ffmpeg.FFmpeg without running ffmpeg.

    Every output file gets the concatenated text of its inputs, so the
    order of clips in the final compilation can be read back as text.
    Concat manifests are captured when the command runs, before the
    pipeline deletes them.

    Args:
        fail_on: Output basenames whose command should fail.
    """

    exe = "ffmpeg"

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.commands = []
        self.manifests = []

    def probe(self, path):
        return {"video": True, "audio": True, "duration": 1.0}

    def run(self, command, cwd=None):
        self.commands.append((command.build(self.exe), cwd))
        base = Path(cwd) if cwd is not None else Path()
        output = base / command.output_path

        parts = []
        for options, path in command.inputs:
            if "concat" in options:
                lines = (base / path).read_text().splitlines()
                self.manifests.append((output.name, lines))
                parts += [(base / name).read_text() for name in manifest_names(lines)]
            else:
                parts.append(Path(path).read_text())

        if output.name in self.fail_on:
            raise FFmpegError("simulated failure", "stderr tail")
        output.write_text("".join(parts))

    @property
    def concat_calls(self):
        return [args for args, _ in self.commands if "concat" in args]


@pytest.fixture
def fake_ffmpeg():
    return FakeFFmpeg()


class RecordingPublisher:
    """Publisher that keeps the text of what it was handed."""

    def __init__(self, name="recorder", error=None):
        self.name = name
        self.error = error
        self.received = []

    def publish(self, path, clip_count):
        self.received.append((Path(path).read_text(), clip_count))
        if self.error is not None:
            raise self.error
