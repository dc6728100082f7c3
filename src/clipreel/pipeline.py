"""Compilation pipeline — fetch, normalize, chunk-merge, assemble, publish.

CompilationPipeline drives one run through a linear state machine:

  IDLE -> FETCHING -> NORMALIZING -> CHUNK_MERGING -> FINAL_ASSEMBLING
       -> HANDED_OFF -> CLEANED_UP

ABORTED is reachable from every stage: workspace errors, NoInputError at
final assembly, any per-item error under on_failure="abort", and any
exception a fetcher raises that is not a FetchError. After ABORTED the
workspace and output are still removed and the error is re-raised.

Everything runs one item at a time. Each ffmpeg call is CPU and memory
heavy, and the bot runs on shared CI runners that cannot host several
transcodes at once, so nothing is parallelized.

Per-item failures under on_failure="skip" (the default):
  - a clip that cannot be fetched or normalized is dropped;
  - a chunk whose merge fails is dropped with all of its clips.
The compilation is then shorter, but still published.
"""

from enum import Enum
from pathlib import Path

from .common import partition
from .errors import (
    ClipreelError, InvalidArgument, MergeError, TranscodeError, WorkspaceError,
)
from .fetch import ClipFetcher, fetch_clips
from .ffmpeg import FFmpeg
from .merge import assemble_final, merge_chunk
from .models import Chunk, CompilationResult, NormalizedClip, SourceClip
from .normalize import normalize_clip
from .publish import Publisher
from .settings import default_settings
from .workspace import RunWorkspace


class Stage(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    CHUNK_MERGING = "chunk_merging"
    FINAL_ASSEMBLING = "final_assembling"
    HANDED_OFF = "handed_off"
    CLEANED_UP = "cleaned_up"
    ABORTED = "aborted"


class CompilationPipeline:
    """One compilation run with injected collaborators.

    Args:
        fetcher: Materializes SourceClips into the workspace.
        publishers: Receive the finished compilation, in order.
        settings: Normalized settings (see clipreel.settings). Defaults if None.
        ffmpeg: Runner. Built from settings if None.

    A pipeline instance runs once. `stage` holds the current state and
    `transitions` every state entered, in order.
    """

    def __init__(
        self,
        fetcher: ClipFetcher,
        publishers: list[Publisher] | None = None,
        settings: dict | None = None,
        ffmpeg: FFmpeg | None = None,
    ):
        self.fetcher = fetcher
        self.publishers = list(publishers or [])
        self.settings = settings if settings is not None else default_settings()
        self.ffmpeg = ffmpeg if ffmpeg is not None else FFmpeg.from_settings(self.settings)
        self.workspace = RunWorkspace(self.settings["workspace_root"])
        self.output = Path(self.settings["output"]).resolve()
        self.stage = Stage.IDLE
        self.transitions = [Stage.IDLE]
        self._output_written = False

    def _enter(self, stage: Stage) -> None:
        self.stage = stage
        self.transitions.append(stage)

    def run(self, sources: list[SourceClip]) -> CompilationResult:
        """Run the whole pipeline over `sources` (selection order = index order).

        Returns:
            CompilationResult describing what made it into the compilation.

        Raises:
            NoInputError: Nothing survived to final assembly.
            WorkspaceError: The workspace could not be created or removed.
            FetchError, TranscodeError, MergeError: Per-item failure with
                on_failure="abort".
            InvalidArgument: Two sources share an index.
            RuntimeError: The pipeline has already run.
        """
        if self.stage is not Stage.IDLE:
            raise RuntimeError(f"Pipeline already ran (stage: {self.stage.value})")

        indices = [s.index for s in sources]
        if len(set(indices)) != len(indices):
            duplicates = sorted({i for i in indices if indices.count(i) > 1})
            raise InvalidArgument(f"Duplicate source indices: {duplicates}")

        result = CompilationResult()
        try:
            self.workspace.create()
            print(f"Workspace: {self.workspace.path}")

            self._enter(Stage.FETCHING)
            print(f"Fetching {len(sources)} clips...")
            fetched, dropped = fetch_clips(
                self.fetcher, sources, self.workspace,
                on_failure=self.settings["on_failure"],
            )
            result.dropped += dropped

            self._enter(Stage.NORMALIZING)
            print(f"Normalizing {len(fetched)} clips...")
            normalized = self._normalize_all(fetched, result)

            self._enter(Stage.CHUNK_MERGING)
            print(f"Merging {len(normalized)} clips in chunks of {self.settings['chunk_size']}...")
            chunks = self._merge_chunks(normalized, result)

            self._enter(Stage.FINAL_ASSEMBLING)
            print(f"Assembling {len(chunks)} chunks -> {self.output}")
            assemble_final([c.path for c in chunks], self.output, self.ffmpeg)
            self._output_written = True
            result.chunks = len(chunks)
            result.clip_indices = [i for c in chunks for i in c.clip_indices]

            self._enter(Stage.HANDED_OFF)
            self._hand_off(result)
        except BaseException:
            self._enter(Stage.ABORTED)
            self._cleanup(raise_errors=False)
            raise

        try:
            self._cleanup()
        except WorkspaceError:
            self._enter(Stage.ABORTED)
            raise
        self._enter(Stage.CLEANED_UP)
        return result

    # ── Stages ─────────────────────────────────────────────────────

    def _drop(self, result: CompilationResult, index: int, error: ClipreelError) -> None:
        print(f"  FAIL   [{index}] {error}")
        if self.settings["on_failure"] == "abort":
            raise error
        result.dropped.append((index, str(error)))

    def _normalize_all(self, clips, result):
        normalized = []
        for clip in sorted(clips, key=lambda c: c.index):
            output = self.workspace.file(f"clip_{clip.index:03d}.ts")
            print(f"  NORM   [{clip.index}] {clip.path.name} -> {output.name}")
            try:
                normalize_clip(clip.path, output, self.settings, self.ffmpeg)
            except TranscodeError as e:
                self._drop(result, clip.index, e)
                continue
            finally:
                # The raw download is not needed once it has been rewritten.
                clip.path.unlink(missing_ok=True)
            normalized.append(NormalizedClip(index=clip.index, path=output))
        return normalized

    def _merge_chunks(self, clips, result):
        chunks = []
        groups = partition(sorted(clips, key=lambda c: c.index), self.settings["chunk_size"])
        for n, group in enumerate(groups):
            output = self.workspace.file(f"chunk_{n:03d}.mp4")
            indices = [c.index for c in group]
            print(f"  MERGE  chunk {n} <- clips {indices}")
            try:
                merge_chunk([c.path for c in group], output, self.settings, self.ffmpeg)
            except InvalidArgument:
                raise
            except MergeError as e:
                print(f"  FAIL   chunk {n}: {e}")
                if self.settings["on_failure"] == "abort":
                    raise
                result.dropped += [(i, str(e)) for i in indices]
                continue
            finally:
                for clip in group:
                    clip.path.unlink(missing_ok=True)
            chunks.append(Chunk(index=n, members=group, path=output))
        return chunks

    def _hand_off(self, result: CompilationResult) -> None:
        count = len(result.clip_indices)
        for publisher in self.publishers:
            print(f"  PUBLISH {publisher.name}")
            try:
                publisher.publish(self.output, count)
            except Exception as e:
                # A failed publisher does not undo the compilation or stop
                # the others; the failure is reported in the result.
                print(f"  FAIL   publisher {publisher.name}: {e}")
                result.published[publisher.name] = str(e)
            else:
                result.published[publisher.name] = None

    def _cleanup(self, raise_errors: bool = True) -> None:
        """Remove the final output and the workspace. Safe to repeat.

        The output is only removed if this run wrote it.
        """
        print("Cleaning up...")
        if self._output_written:
            self.output.unlink(missing_ok=True)
        try:
            self.workspace.cleanup()
        except WorkspaceError as e:
            print(f"  FAIL   cleanup: {e}")
            if raise_errors:
                raise
