"""Read and write state files on the local filesystem."""

from __future__ import annotations

import hashlib
import os
import re
import stat

from khstate.objects import StateObject, StateReader, StateWriter

_CHUNK = 64 * 1024
_STATE_SUFFIX = ".tfstate"


class LocalReader(StateReader):
    """Reads a single state file, or every ``*.tfstate`` file under a directory."""

    def __init__(self, path, workspace_pattern=None):
        self.path = path
        if isinstance(workspace_pattern, str):
            workspace_pattern = re.compile(workspace_pattern)
        self.workspace_pattern = workspace_pattern

    def list(self):
        mode = os.stat(self.path).st_mode
        if stat.S_ISREG(mode):
            return [self._inspect(self.path)]
        if stat.S_ISDIR(mode):
            return [self._inspect(p) for p in self._walk(self.path)]
        if os.path.basename(self.path).endswith(_STATE_SUFFIX):
            return [self._inspect(self.path)]
        return []

    def get(self, key):
        with open(key, "rb") as handle:
            data = handle.read()
        return data, self._inspect(key)

    def _walk(self, root):
        with os.scandir(root) as entries:
            ordered = sorted(entries, key=lambda entry: entry.name)
        for entry in ordered:
            if entry.is_dir(follow_symlinks=False):
                yield from self._walk(entry.path)
            elif entry.name.endswith(_STATE_SUFFIX):
                yield entry.path

    def _inspect(self, path):
        digest = hashlib.sha256()
        size = 0
        with open(path, "rb") as handle:
            for chunk in iter(lambda: handle.read(_CHUNK), b""):
                digest.update(chunk)
                size += len(chunk)
        workspace = "default"
        if self.workspace_pattern is not None:
            match = self.workspace_pattern.search(os.path.basename(path))
            if match and match.group(0):
                workspace = match.group(0)
        return StateObject(
            key=path,
            size=size,
            checksum=digest.hexdigest(),
            workspace=workspace,
            url="file://" + path,
        )


class LocalWriter(StateWriter):
    """Writes state to an exact file path, creating parent directories."""

    def put(self, key, data, overwrite):
        if not overwrite and os.path.exists(key):
            raise FileExistsError(f"file already exists: {key}")
        parent = os.path.dirname(key)
        if parent:
            os.makedirs(parent, mode=0o755, exist_ok=True)
        fd = os.open(key, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        _, obj = LocalReader(key).get(key)
        return obj