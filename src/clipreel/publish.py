"""Publishers — collaborators that receive the finished compilation.

The pipeline calls `publish(path, clip_count)` on each publisher in turn and
waits for it to return before cleaning up. Publishers must not keep a
reference to `path`; the file is deleted right after handoff.

Platform uploads live outside clipreel. DirectoryPublisher keeps a copy of
the compilation, which is enough for running the bot locally and for
handing the file to a separate uploader.
"""

import shutil
from pathlib import Path


class Publisher:
    """Interface for compilation consumers."""

    name = "publisher"

    def publish(self, path: Path, clip_count: int) -> None:
        raise NotImplementedError


class DirectoryPublisher(Publisher):
    """Copy the compilation into `directory`.

    Args:
        directory: Destination directory (created if needed).
        filename: Name of the copy. Defaults to the compilation's own name.
    """

    name = "directory"

    def __init__(self, directory: str | Path, filename: str | None = None):
        self.directory = Path(directory)
        self.filename = filename

    def publish(self, path: Path, clip_count: int) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        dest = self.directory / (self.filename or Path(path).name)
        shutil.copyfile(path, dest)
        print(f"  COPY   {dest} ({clip_count} clips)")
