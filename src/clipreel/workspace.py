"""RunWorkspace — scoped temporary directory for one compilation run.

Holds every intermediate artifact (fetched sources, normalized clips, chunk
files, concat manifests). Used as a context manager; the directory is
removed on exit whether the run succeeded or not.
"""

import shutil
import tempfile
from pathlib import Path

from .errors import WorkspaceError


class RunWorkspace:
    """Temporary directory for one run.

    Args:
        root: Parent directory. Created if missing. System temp dir if None.
        prefix: Directory name prefix.
    """

    def __init__(self, root: str | Path | None = None, prefix: str = "clipreel-"):
        self.root = Path(root) if root is not None else None
        self.prefix = prefix
        self.path: Path | None = None

    def create(self) -> Path:
        """Create the directory.

        Raises:
            WorkspaceError: The directory could not be created, or this
                workspace is already active.
        """
        if self.path is not None:
            raise WorkspaceError(f"Workspace already active: {self.path}")
        try:
            if self.root is not None:
                self.root.mkdir(parents=True, exist_ok=True)
            self.path = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.root))
        except OSError as e:
            raise WorkspaceError(f"Cannot create workspace under {self.root}: {e}") from e
        return self.path

    def file(self, name: str) -> Path:
        """Path of a file inside the workspace (not created)."""
        if self.path is None:
            raise WorkspaceError("Workspace is not active")
        return self.path / name

    def cleanup(self) -> None:
        """Remove the directory and everything in it.

        Safe to call any number of times, including before create().

        Raises:
            WorkspaceError: The directory exists but could not be removed.
        """
        if self.path is None:
            return
        try:
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise WorkspaceError(f"Cannot remove workspace {self.path}: {e}") from e
        self.path = None

    def __enter__(self) -> "RunWorkspace":
        self.create()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cleanup()
        return False
