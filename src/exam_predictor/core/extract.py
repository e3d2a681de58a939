"""Text extraction from uploaded study documents."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

from exam_predictor.errors import FileReadError, UnsupportedFileTypeError

ACCEPTED_SUFFIXES = (".pdf", ".docx", ".txt")
FULL_SUPPORT_SUFFIXES = (".txt",)


def check_file_type(name: str) -> bool:
    """Validate an upload's extension; return True if extraction is only partial."""
    suffix = Path(name).suffix.lower()
    if suffix not in ACCEPTED_SUFFIXES:
        raise UnsupportedFileTypeError(
            f"Unsupported file type {suffix or '(none)'!r}; expected one of {', '.join(ACCEPTED_SUFFIXES)}."
        )
    return suffix not in FULL_SUPPORT_SUFFIXES


class UploadedFile:
    """A user-supplied document whose content can be read exactly once.

    Content is decoded as UTF-8 with replacement characters, so binary
    formats come through as noisy text instead of failing.
    """

    def __init__(self, name: str, stream: BinaryIO) -> None:
        self.name = name
        self._stream = stream
        self._consumed = False

    @classmethod
    def from_path(cls, path: Path) -> UploadedFile:
        try:
            stream = path.open("rb")
        except OSError as exc:
            raise FileReadError(f"Could not open {path}: {exc}") from exc
        return cls(name=path.name, stream=stream)

    def close(self) -> None:
        self._stream.close()

    @property
    def consumed(self) -> bool:
        return self._consumed

    def read_text(self) -> str:
        if self._consumed:
            raise FileReadError(f"{self.name} has already been read.")
        self._consumed = True
        try:
            data = self._stream.read()
        except OSError as exc:
            raise FileReadError(f"Failed to read {self.name}: {exc}") from exc
        finally:
            self._stream.close()
        if isinstance(data, str):
            return data
        return data.decode("utf-8", errors="replace")
