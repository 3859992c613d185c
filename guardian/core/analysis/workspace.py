"""
Request-scoped scratch workspace for the video pipeline.

FFmpeg works best with file paths, so the uploaded bytes are written to
a temporary file and frames are written into a scratch directory. Both
are named with a random UUID, so concurrent requests never share a path.

Use it as a context manager: the directory and temp file are removed on
every exit path, including when creation itself failed halfway.
"""

import logging
import re
import shutil
import tempfile
from pathlib import Path
from typing import Optional
from uuid import uuid4

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(filename: str, default: str = "upload") -> str:
    """Reduce a client-supplied filename to a safe basename."""
    name = Path(filename or "").name
    name = _UNSAFE_FILENAME_CHARS.sub("_", name).strip("._")
    return name[:128] or default


class ScratchWorkspace:
    """
    A scratch directory plus the temp video file that feeds it.

    Attributes are None until `create()` has made the corresponding path,
    so cleanup knows exactly what exists.
    """

    def __init__(self, root: Optional[Path] = None) -> None:
        self._root = Path(root) if root else Path(tempfile.gettempdir())
        self._token = uuid4().hex
        self.frame_dir: Optional[Path] = None
        self.video_path: Optional[Path] = None

    @property
    def token(self) -> str:
        return self._token

    def create(self, data: bytes, filename: str) -> Path:
        """
        Make the frame directory and persist the upload bytes.

        Returns the temp video path. OSError (unwritable root, disk full)
        propagates to the caller.
        """
        frame_dir = self._root / f"frames_{self._token}"
        frame_dir.mkdir(parents=True, exist_ok=False)
        self.frame_dir = frame_dir

        video_path = self._root / f"upload_{self._token}_{sanitize_filename(filename, 'video')}"
        self.video_path = video_path
        video_path.write_bytes(data)

        logger.debug(
            "Created scratch workspace",
            extra={"frame_dir": str(frame_dir), "video_path": str(video_path)}
        )

        return video_path

    def cleanup(self) -> None:
        """
        Remove the temp video and the frame directory.

        Missing paths count as success. Other OS errors are logged, never
        raised, so cleanup cannot mask the error that triggered it.
        """
        if self.video_path is not None:
            try:
                self.video_path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(
                    "Failed to remove temp video",
                    extra={"path": str(self.video_path), "error": str(e)}
                )

        if self.frame_dir is not None:
            try:
                shutil.rmtree(self.frame_dir)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(
                    "Failed to remove frame directory",
                    extra={"path": str(self.frame_dir), "error": str(e)}
                )

        logger.debug("Temporary files cleaned up", extra={"workspace": self._token})

    def __enter__(self) -> "ScratchWorkspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()
