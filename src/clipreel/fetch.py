"""Clip fetchers — materialize remote clips as local files.

A fetcher turns one opaque remote id into a local file. fetch_clips runs a
fetcher over a whole selection, one clip at a time, and keeps going when a
single clip fails.

DriveClipFetcher requires optional dependencies: pip install clipreel[drive]
Import-guarded so the rest of clipreel works without the Google client.
"""

import io
import shutil
from pathlib import Path

from .errors import FetchError
from .models import SourceClip
from .workspace import RunWorkspace

# Import-guarded Google API client.
try:
    from google.auth.exceptions import TransportError
    from google.oauth2.service_account import Credentials
    from googleapiclient.discovery import build
    from googleapiclient.errors import HttpError
    from googleapiclient.http import MediaIoBaseDownload
    from httplib2 import HttpLib2Error
    _DRIVE_AVAILABLE = True
except ImportError:
    TransportError = None
    Credentials = None
    build = None
    HttpError = None
    MediaIoBaseDownload = None
    HttpLib2Error = None
    _DRIVE_AVAILABLE = False

DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]


class ClipFetcher:
    """Interface: copy the asset behind `remote_id` to `dest`.

    Implementations raise FetchError for anything that makes this one clip
    unavailable. Other exceptions abort the run.
    """

    name = "fetcher"

    def fetch(self, remote_id: str, dest: Path) -> Path:
        raise NotImplementedError


class LocalClipFetcher(ClipFetcher):
    """Treats remote ids as file paths, optionally relative to `base_dir`."""

    name = "local"

    def __init__(self, base_dir: str | Path | None = None):
        self.base_dir = Path(base_dir) if base_dir is not None else None

    def fetch(self, remote_id: str, dest: Path) -> Path:
        src = Path(remote_id)
        if self.base_dir is not None and not src.is_absolute():
            src = self.base_dir / src
        if not src.is_file():
            raise FetchError(f"Clip not found: {src}")
        try:
            shutil.copyfile(src, dest)
        except OSError as e:
            raise FetchError(f"Cannot copy {src}: {e}") from e
        return dest


class DriveClipFetcher(ClipFetcher):
    """Downloads Google Drive files by file id.

    Args:
        service: A Drive v3 service object (googleapiclient).
    """

    name = "drive"

    def __init__(self, service):
        self.service = service

    @classmethod
    def from_service_account(cls, sa_json_path: str | Path) -> "DriveClipFetcher":
        """Build a fetcher from a service account JSON key file.

        Raises:
            RuntimeError: If clipreel[drive] is not installed.
            FetchError: The key file is missing or malformed.
        """
        if not _DRIVE_AVAILABLE:
            raise RuntimeError(
                "Drive fetching requires extra dependencies.\n"
                "Run: pip install clipreel[drive]"
            )
        try:
            creds = Credentials.from_service_account_file(
                str(sa_json_path), scopes=DRIVE_SCOPES,
            )
        except (OSError, ValueError) as e:
            raise FetchError(f"Cannot load Drive credentials {sa_json_path}: {e}") from e
        return cls(build("drive", "v3", credentials=creds, cache_discovery=False))

    def fetch(self, remote_id: str, dest: Path) -> Path:
        if not _DRIVE_AVAILABLE:
            raise RuntimeError(
                "Drive fetching requires extra dependencies.\n"
                "Run: pip install clipreel[drive]"
            )
        request = self.service.files().get_media(fileId=remote_id)
        try:
            with io.FileIO(dest, "wb") as fh:
                downloader = MediaIoBaseDownload(fh, request)
                done = False
                while not done:
                    _, done = downloader.next_chunk()
        except (HttpError, HttpLib2Error, TransportError) as e:
            dest.unlink(missing_ok=True)
            raise FetchError(f"Drive download of {remote_id} failed: {e}") from e
        except OSError as e:
            dest.unlink(missing_ok=True)
            raise FetchError(f"Cannot write {dest.name}: {e}") from e
        return dest


def fetch_clips(
    fetcher: ClipFetcher,
    sources: list[SourceClip],
    workspace: RunWorkspace,
    on_failure: str = "skip",
) -> tuple[list[SourceClip], list[tuple[int, str]]]:
    """Fetch every source into the workspace, in selection order.

    Each clip lands at raw_<index>.mp4 and gets its `path` set.

    Args:
        fetcher: Fetcher to use.
        sources: Clips to fetch.
        workspace: Active run workspace.
        on_failure: "skip" drops a failing clip; "abort" re-raises.

    Returns:
        (fetched clips, [(index, reason) for each dropped clip]).

    Raises:
        FetchError: A clip failed and on_failure is "abort".
    """
    fetched = []
    dropped = []
    for clip in sorted(sources, key=lambda c: c.index):
        dest = workspace.file(f"raw_{clip.index:03d}.mp4")
        print(f"  FETCH  [{clip.index}] {clip.remote_id}")
        try:
            clip.path = fetcher.fetch(clip.remote_id, dest)
        except FetchError as e:
            print(f"  FAIL   [{clip.index}] {e}")
            if on_failure == "abort":
                raise
            dropped.append((clip.index, str(e)))
            continue
        fetched.append(clip)
    return fetched, dropped
