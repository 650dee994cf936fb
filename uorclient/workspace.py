"""A directory on disk used to read and write objects by relative path."""

from __future__ import annotations

import json
import os
import shutil
from typing import Any, BinaryIO, Iterator, Union


class LocalWorkspace:
    """A workspace rooted at a local directory; paths are relative to it."""

    def __init__(self, directory: Union[str, os.PathLike]) -> None:
        self._dir = os.path.abspath(os.fspath(directory))
        os.makedirs(self._dir, mode=0o750, exist_ok=True)

    @property
    def directory(self) -> str:
        return self._dir

    def _resolve(self, path: Union[str, os.PathLike]) -> str:
        relative = os.fspath(path).lstrip("/" + os.sep)
        resolved = os.path.normpath(os.path.join(self._dir, relative))
        if resolved != self._dir and not resolved.startswith(self._dir + os.sep):
            raise FileNotFoundError(f"{os.fspath(path)}: outside of workspace")
        return resolved

    def read_object(self, path: Union[str, os.PathLike]) -> Any:
        """Return the JSON document stored at ``path``."""
        return json.loads(self.read_bytes(path))

    def read_bytes(self, path: Union[str, os.PathLike]) -> bytes:
        """Return the raw content stored at ``path``."""
        with open(self._resolve(path), "rb") as stored:
            return stored.read()

    def write_object(self, path: Union[str, os.PathLike], obj: Any) -> None:
        """Write bytes, text, a readable object's content, or JSON for anything else."""
        if isinstance(obj, (bytes, bytearray, memoryview)):
            data = bytes(obj)
        elif isinstance(obj, str):
            data = obj.encode("utf-8")
        elif hasattr(obj, "read"):
            content = obj.read()
            data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        else:
            data = json.dumps(obj, separators=(",", ":")).encode("utf-8")
        with self.get_writer(path) as writer:
            writer.write(data)

    def get_writer(self, path: Union[str, os.PathLike]) -> BinaryIO:
        """Open ``path`` for writing, creating parent directories as needed.

        The file is not truncated, matching a plain create-or-open for writing.
        """
        target = self._resolve(path)
        try:
            os.makedirs(os.path.dirname(target), mode=0o750, exist_ok=True)
        except OSError as err:
            raise OSError(f"error creating object child path: {err}") from err
        try:
            fd = os.open(target, os.O_WRONLY | os.O_CREAT, 0o640)
        except OSError as err:
            raise OSError(f"error opening object file: {err}") from err
        return os.fdopen(fd, "wb")

    def walk(self) -> Iterator[str]:
        """Yield every path in the workspace, starting with ".", in lexical order."""
        yield "."
        yield from self._walk_dir(self._dir, "")

    def _walk_dir(self, directory: str, prefix: str) -> Iterator[str]:
        with os.scandir(directory) as entries:
            ordered = sorted(entries, key=lambda entry: entry.name)
        for entry in ordered:
            relative = f"{prefix}{entry.name}"
            yield relative
            if entry.is_dir(follow_symlinks=False):
                yield from self._walk_dir(entry.path, relative + "/")

    def path(self, *elements: str) -> str:
        """Return the absolute path of ``elements`` inside the workspace."""
        return os.path.join(self._dir, *elements)

    def new_directory(self, path: Union[str, os.PathLike]) -> "LocalWorkspace":
        """Create a nested workspace at ``path``."""
        return LocalWorkspace(self._resolve(path))

    def delete_directory(self, path: Union[str, os.PathLike]) -> None:
        """Remove ``path`` and everything under it; a missing path is ignored."""
        target = self._resolve(path)
        if os.path.isdir(target) and not os.path.islink(target):
            shutil.rmtree(target)
        elif os.path.lexists(target):
            os.remove(target)

    def __repr__(self) -> str:
        return f"LocalWorkspace({self._dir!r})"