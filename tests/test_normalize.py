"""Tests for clip normalization.

Uses the make_clip factory from conftest.py and probes results with moviepy.
"""

import numpy as np
import pytest
from moviepy import VideoFileClip

from clipreel.errors import TranscodeError
from clipreel.ffmpeg import FFmpeg
from clipreel.normalize import build_normalize_command, letterbox_filter, normalize_clip


class TestLetterboxFilter:
    def test_scale_then_pad_to_exact_size(self):
        graph = letterbox_filter(1920, 1080, 30)
        assert graph.startswith("[0:v]scale=1920:1080:force_original_aspect_ratio=decrease")
        assert "pad=1920:1080:(ow-iw)/2:(oh-ih)/2" in graph
        assert graph.endswith("fps=30[v]")


class TestBuildNormalizeCommand:
    def test_encodes_annexb_mpegts(self, small_settings):
        args = build_normalize_command("in.mp4", "out.ts", small_settings).build("ffmpeg")
        assert args[args.index("-c:v") + 1] == "libx264"
        assert args[args.index("-preset") + 1] == "ultrafast"
        assert args[args.index("-bsf:v") + 1] == "h264_mp4toannexb"
        assert args[args.index("-f") + 1] == "mpegts"
        assert args[-1] == "out.ts"

    def test_maps_source_audio(self, small_settings):
        args = build_normalize_command("in.mp4", "out.ts", small_settings).build("ffmpeg")
        assert "0:a:0" in args
        assert "anullsrc" not in " ".join(args)

    def test_silent_source_gets_bounded_silence(self, small_settings):
        cmd = build_normalize_command(
            "in.mp4", "out.ts", small_settings, has_audio=False, duration=4.2,
        )
        args = cmd.build("ffmpeg")
        assert "1:a:0" in args
        assert "-shortest" in args
        lavfi_at = args.index("lavfi")
        assert args[lavfi_at + 1:lavfi_at + 3] == ["-t", "4.200"]
        assert args[lavfi_at + 4].startswith("anullsrc")


class TestNormalizeClip:
    def test_landscape_is_pillarboxed(self, make_clip, small_settings, tmp_path):
        src = make_clip("wide.mp4", color="red", size=(320, 240))
        out = normalize_clip(src, tmp_path / "wide.ts", small_settings, FFmpeg())
        with VideoFileClip(str(out)) as clip:
            assert tuple(clip.size) == (320, 180)
            frame = clip.get_frame(0.5)
        # 4:3 into 16:9: black bars left and right, content in the middle.
        assert frame[90, 5].sum() < 40
        assert np.argmax(frame[90, 160]) == 0

    def test_portrait_is_not_cropped(self, make_clip, small_settings, tmp_path):
        src = make_clip("tall.mp4", color="blue", size=(180, 320))
        out = normalize_clip(src, tmp_path / "tall.ts", small_settings, FFmpeg())
        with VideoFileClip(str(out)) as clip:
            assert tuple(clip.size) == (320, 180)
            frame = clip.get_frame(0.5)
        assert frame[90, 20].sum() < 40
        assert frame[90, 300].sum() < 40
        assert np.argmax(frame[90, 160]) == 2
        # Full height is content: top and bottom rows are blue, not bars.
        assert np.argmax(frame[2, 160]) == 2
        assert np.argmax(frame[177, 160]) == 2

    def test_adds_audio_to_silent_source(self, make_clip, small_settings, tmp_path):
        src = make_clip("silent.mp4", audio=False)
        out = normalize_clip(src, tmp_path / "silent.ts", small_settings, FFmpeg())
        with VideoFileClip(str(out)) as clip:
            assert clip.audio is not None
            assert 0.8 < clip.duration < 1.3

    def test_source_left_untouched(self, source_video, small_settings, tmp_path):
        before = source_video.read_bytes()
        normalize_clip(source_video, tmp_path / "out.ts", small_settings, FFmpeg())
        assert source_video.read_bytes() == before

    def test_missing_source_raises(self, small_settings, tmp_path):
        with pytest.raises(TranscodeError, match="not found"):
            normalize_clip(tmp_path / "nope.mp4", tmp_path / "out.ts", small_settings, FFmpeg())

    def test_corrupt_source_raises(self, small_settings, tmp_path):
        bad = tmp_path / "corrupt.mp4"
        bad.write_bytes(b"\x00\x01 definitely not a video" * 100)
        with pytest.raises(TranscodeError):
            normalize_clip(bad, tmp_path / "out.ts", small_settings, FFmpeg())
        assert not (tmp_path / "out.ts").exists()

    def test_encoder_failure_raises(self, source_video, small_settings, tmp_path):
        settings = {**small_settings, "preset": "no-such-preset"}
        with pytest.raises(TranscodeError, match="failed"):
            normalize_clip(source_video, tmp_path / "out.ts", settings, FFmpeg())
        assert not (tmp_path / "out.ts").exists()
