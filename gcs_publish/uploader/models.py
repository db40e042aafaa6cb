"""
Data model for the publish transform.

A ``FileItem`` is one unit of pipeline work. Its contents are one of two
variants, ``BufferContents`` or ``StreamContents``; an item with no contents
is a null marker and passes through the transform untouched.
"""

from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Any, BinaryIO, Dict, Optional, Sequence, Union


@dataclass(frozen=True)
class BufferContents:
    """File contents held fully in memory."""

    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class StreamContents:
    """
    File contents available as a readable binary stream.

    Attributes:
        stream: Readable binary file object, positioned at the first byte
        size: Total number of bytes, when known up front
    """

    stream: BinaryIO = field(repr=False)
    size: Optional[int] = None


Contents = Union[BufferContents, StreamContents]
ContentEncoding = Union[str, Sequence[str], None]


@dataclass
class FileItem:
    """
    A single file flowing through the publish pipeline.

    Attributes:
        path: Filesystem-style path of the file (may end in ``.gz``)
        contents: Buffer or stream contents, None for a null marker
        base: Base directory that ``relative_path`` is computed against
        content_encoding: Encoding hint(s) set by upstream steps, e.g. ["gzip"]
    """

    path: str
    contents: Optional[Contents] = None
    base: Optional[str] = None
    content_encoding: ContentEncoding = None

    def __post_init__(self) -> None:
        if self.base:
            try:
                PurePath(self.path).relative_to(self.base)
            except ValueError:
                raise ValueError(
                    f"File path {self.path!r} is not inside base {self.base!r}"
                ) from None

    @property
    def relative_path(self) -> str:
        """Path relative to ``base``, always with ``/`` separators."""
        if not self.base:
            return PurePath(self.path).as_posix()
        return PurePath(self.path).relative_to(self.base).as_posix()

    def is_null(self) -> bool:
        return self.contents is None

    @classmethod
    def from_bytes(
        cls,
        path: str,
        data: bytes,
        base: Optional[str] = None,
        content_encoding: ContentEncoding = None,
    ) -> "FileItem":
        return cls(
            path=path,
            contents=BufferContents(bytes(data)),
            base=base,
            content_encoding=content_encoding,
        )

    @classmethod
    def from_stream(
        cls,
        path: str,
        stream: BinaryIO,
        base: Optional[str] = None,
        content_encoding: ContentEncoding = None,
        size: Optional[int] = None,
    ) -> "FileItem":
        return cls(
            path=path,
            contents=StreamContents(stream, size),
            base=base,
            content_encoding=content_encoding,
        )

    @classmethod
    def from_path(
        cls,
        path: Union[str, Path],
        base: Union[str, Path, None] = None,
        stream: bool = False,
        content_encoding: ContentEncoding = None,
    ) -> "FileItem":
        """
        Build an item from a file on local disk.

        With ``stream=True`` the file is opened and the caller owns the
        returned handle; otherwise the bytes are read into memory.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the path is not a regular file or not under base
        """
        file_path = Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        if not file_path.is_file():
            raise ValueError(f"Path is not a file: {file_path}")

        base_str = str(base) if base is not None else None
        if stream:
            size = file_path.stat().st_size
            return cls.from_stream(
                str(file_path),
                open(file_path, "rb"),
                base=base_str,
                content_encoding=content_encoding,
                size=size,
            )
        return cls.from_bytes(
            str(file_path),
            file_path.read_bytes(),
            base=base_str,
            content_encoding=content_encoding,
        )


@dataclass(frozen=True)
class DestinationDescriptor:
    """Where and how one file is written to the bucket."""

    object_key: str
    metadata: Dict[str, Any]
    predefined_acl: Optional[str] = None


@dataclass
class UploadOutcome:
    """
    Terminal result of uploading one file item.

    Attributes:
        item: The item as emitted downstream (path already rewritten)
        object_key: Destination key, None for null items or when resolving failed
        error: The failure, None on success
    """

    item: Optional[FileItem]
    object_key: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.error is None
