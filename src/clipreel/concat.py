"""Concat-demuxer manifests.

The concat demuxer reads a text file with one `file '<name>'` line per
member, in playback order. Names are resolved relative to the manifest's
directory, so every member must sit next to the manifest and is listed by
basename only. An absolute or cross-directory entry does not raise; ffmpeg
just reads the wrong file or fails late, so it is rejected here.

Single quotes inside a name are written as '\\'' (close quote, escaped
quote, reopen quote), the quoting the demuxer expects.
"""

from pathlib import Path


def quote_entry(name: str) -> str:
    """Render one manifest line for a basename."""
    return "file '" + name.replace("'", "'\\''") + "'"


def write_concat_manifest(members: list[str | Path], manifest_path: str | Path) -> Path:
    """Write a concat manifest listing `members` by basename, in order.

    Args:
        members: Media files, all in the same directory as the manifest.
        manifest_path: Where to write the manifest.

    Returns:
        Path to the written manifest.

    Raises:
        ValueError: Empty member list, or a member outside the manifest's
            directory.
    """
    if not members:
        raise ValueError("Concat manifest needs at least one member")

    manifest_path = Path(manifest_path)
    directory = manifest_path.parent.resolve()

    lines = []
    for member in members:
        member = Path(member)
        if member.parent.resolve() != directory:
            raise ValueError(
                f"Concat member {member} is not in the manifest directory {directory}"
            )
        lines.append(quote_entry(member.name))

    manifest_path.write_text("\n".join(lines) + "\n")
    return manifest_path
