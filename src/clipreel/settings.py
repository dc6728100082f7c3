"""Run settings loader — YAML configuration for a compilation run.

Follows the same ${var} path resolution as the rest of clipreel. Every key
is optional; missing keys take the defaults below.

Settings schema:
  chunk_size: 3              # clips merged per chunk
  resolution: 1920x1080      # letterboxed output frame size
  fps: 30
  preset: ultrafast          # x264 preset, speed over compression
  video_codec: libx264
  audio_codec: aac
  timeout: null              # seconds per ffmpeg call, null = no limit
  on_failure: skip           # skip (drop the item) or abort (end the run)
  max_clips: 12              # most recent ledger entries to compile
  min_clips: 2
  min_id_length: 20          # shorter remote ids are placeholders
  ledger: "${data}/db.json"
  workspace_root: null       # parent of the run workspace (system temp if null)
  output: compilation_final.mp4
  ffmpeg: null               # ffmpeg executable (bundled one if null)
  paths:
    data: "/srv/repost"
"""

from pathlib import Path

import yaml

from .common import parse_resolution, resolve_path_vars


VALID_FAILURE_POLICIES = {"skip", "abort"}

DEFAULTS = {
    "chunk_size": 3,
    "resolution": "1920x1080",
    "fps": 30,
    "preset": "ultrafast",
    "video_codec": "libx264",
    "audio_codec": "aac",
    "timeout": None,
    "on_failure": "skip",
    "max_clips": 12,
    "min_clips": 2,
    "min_id_length": 20,
    "ledger": "db.json",
    "workspace_root": None,
    "output": "compilation_final.mp4",
    "ffmpeg": None,
}

_PATH_KEYS = ("ledger", "workspace_root", "output", "ffmpeg")


def default_settings() -> dict:
    """Return a normalized settings dict built from the defaults alone."""
    return normalize_settings({})


def load_settings(
    settings_path: str | Path | None = None,
    overrides: dict | None = None,
) -> dict:
    """Load, validate, and normalize a YAML settings file.

    An empty file, or no file at all, yields the defaults.

    Args:
        settings_path: YAML file, or None.
        overrides: Values that replace the file's (e.g. from CLI flags).
            None values are ignored.

    Raises:
        ValueError: Unknown keys or invalid values.
    """
    raw = {}
    if settings_path is not None:
        with open(settings_path) as f:
            raw = yaml.safe_load(f)
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ValueError("Settings: top level must be a mapping")
    for key, value in (overrides or {}).items():
        if value is not None:
            raw[key] = value
    return normalize_settings(raw)


def normalize_settings(raw: dict) -> dict:
    """Apply defaults, resolve path variables and validate every field.

    Processing pipeline:
      1. Reject unknown keys (typos would otherwise be silently ignored).
      2. Apply defaults.
      3. Resolve ${path} variables in path-valued keys.
      4. Validate and coerce each field.

    Returns:
        Settings dict. `resolution` is replaced by `width` and `height`.
    """
    paths = raw.get("paths", {}) or {}
    unknown = set(raw) - set(DEFAULTS) - {"paths"}
    if unknown:
        raise ValueError(f"Settings: unknown key(s) {sorted(unknown)}")

    settings = {**DEFAULTS, **{k: v for k, v in raw.items() if k != "paths"}}

    for key in _PATH_KEYS:
        if settings[key] is not None:
            settings[key] = resolve_path_vars(str(settings[key]), paths)

    for key in ("chunk_size", "fps", "max_clips", "min_clips"):
        value = settings[key]
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(f"Settings: {key} must be an integer >= 1, got {value!r}")

    min_id = settings["min_id_length"]
    if isinstance(min_id, bool) or not isinstance(min_id, int) or min_id < 0:
        raise ValueError(f"Settings: min_id_length must be an integer >= 0, got {min_id!r}")

    if settings["min_clips"] > settings["max_clips"]:
        raise ValueError(
            f"Settings: min_clips ({settings['min_clips']}) must be <= "
            f"max_clips ({settings['max_clips']})"
        )

    timeout = settings["timeout"]
    if timeout is not None:
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ValueError(f"Settings: timeout must be > 0 or null, got {timeout!r}")
        settings["timeout"] = float(timeout)

    if settings["on_failure"] not in VALID_FAILURE_POLICIES:
        raise ValueError(
            f"Settings: invalid on_failure '{settings['on_failure']}'. "
            f"Valid: {sorted(VALID_FAILURE_POLICIES)}"
        )

    for key in ("preset", "video_codec", "audio_codec"):
        if not isinstance(settings[key], str) or not settings[key]:
            raise ValueError(f"Settings: {key} must be a non-empty string")

    settings["width"], settings["height"] = parse_resolution(settings.pop("resolution"))
    return settings
