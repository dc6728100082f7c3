#!/usr/bin/env python3
"""Generate synthetic source clips for a local clipreel demo run.

Creates 7 clips in examples/demo-clips/ with mixed frame sizes, containers,
codecs and audio layouts, the way reposted clips arrive in practice. Each
clip is a solid color, so the order in the compilation is easy to check.

Usage:
    python examples/generate_demo_clips.py
    # Then compile:
    clipreel compile --config examples/demo.yaml \
        --clips examples/demo-clips/clip-0*.* --publish-dir examples/demo-out/
"""

import subprocess
from pathlib import Path

import imageio_ffmpeg

OUTPUT_DIR = Path(__file__).resolve().parent / "demo-clips"

# name, color, size, duration, video codec, has audio
CLIPS = [
    ("clip-01.mp4",  "red",    (1280, 720), 2.0, "libx264", True),   # landscape
    ("clip-02.mp4",  "blue",   (720, 1280), 3.0, "libx264", True),   # portrait
    ("clip-03.mov",  "green",  (640, 480),  2.5, "mpeg4",   True),   # 4:3
    ("clip-04.mkv",  "orange", (1080, 1080), 1.5, "libx264", False), # square, silent
    ("clip-05.mp4",  "purple", (854, 480),  3.5, "libx264", True),
    ("clip-06.avi",  "cyan",   (640, 360),  2.0, "mpeg4",   False),  # silent
    ("clip-07.mp4",  "yellow", (1920, 1080), 4.0, "libx264", True),
]


def make_clip(ffmpeg, path, color, size, duration, vcodec, audio):
    cmd = [
        ffmpeg, "-y", "-hide_banner",
        "-f", "lavfi", "-i", f"color=c={color}:s={size[0]}x{size[1]}:d={duration}:r=30",
    ]
    if audio:
        cmd += ["-f", "lavfi", "-i", "sine=frequency=440:sample_rate=48000", "-shortest"]
    cmd += ["-c:v", vcodec, "-pix_fmt", "yuv420p"]
    if audio:
        cmd += ["-c:a", "aac"]
    cmd.append(str(path))
    subprocess.run(cmd, check=True, capture_output=True)


def main():
    ffmpeg = imageio_ffmpeg.get_ffmpeg_exe()
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    for name, color, size, duration, vcodec, audio in CLIPS:
        path = OUTPUT_DIR / name
        make_clip(ffmpeg, path, color, size, duration, vcodec, audio)
        print(f"  {name}: {size[0]}x{size[1]}, {duration}s, {vcodec}"
              f"{'' if audio else ', no audio'}")
    print(f"\n{len(CLIPS)} clips in {OUTPUT_DIR}")


if __name__ == "__main__":
    main()
