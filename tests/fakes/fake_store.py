# SPDX-License-Identifier: LGPL-3.0-or-later
import fnmatch
import posixpath


class MemoryFileStore:
    """
    In-memory ConfigFileStore.

    files: {path: (content_bytes, mode)}. fail_write / fail_rename / fail_read
    hold paths whose operation raises PermissionError.
    """

    def __init__(self, directory="/etc/netplan", files=None, dir_mode=0o755):
        self.directory = directory
        self.dir_mode = dir_mode
        self.files = {}
        for path, val in (files or {}).items():
            if isinstance(val, tuple):
                content, mode = val
            else:
                content, mode = val, 0o644
            if isinstance(content, str):
                content = content.encode("utf-8")
            self.files[path] = (content, mode)
        self.fail_write = set()
        self.fail_rename = set()
        self.fail_read = set()
        self.ops = []

    # helpers for assertions
    def text(self, path):
        return self.files[path][0].decode("utf-8")

    def state(self):
        return dict(self.files), self.dir_mode

    # ConfigFileStore
    def path(self, name):
        return posixpath.join(self.directory, name)

    def list(self, patterns=("*.yaml", "*.yml")):
        out = []
        for p in self.files:
            if posixpath.dirname(p) != self.directory:
                continue
            if any(fnmatch.fnmatch(posixpath.basename(p), pat) for pat in patterns):
                out.append(p)
        return sorted(out)

    def exists(self, path):
        return path in self.files

    def read(self, path):
        if path in self.fail_read:
            raise PermissionError(f"read denied: {path}")
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path][0]

    def mode(self, path):
        if path == self.directory:
            return self.dir_mode
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path][1]

    def write(self, path, data, mode):
        self.ops.append(("write", path))
        if path in self.fail_write:
            raise PermissionError(f"write denied: {path}")
        self.files[path] = (bytes(data), mode & 0o7777)

    def copy(self, src, dst):
        content, mode = self.files[src]
        self.write(dst, content, mode)

    def chmod(self, path, mode):
        self.ops.append(("chmod", path))
        if path == self.directory:
            self.dir_mode = mode & 0o7777
            return
        if path not in self.files:
            raise FileNotFoundError(path)
        content, _ = self.files[path]
        self.files[path] = (content, mode & 0o7777)

    def rename(self, src, dst):
        self.ops.append(("rename", src))
        if src in self.fail_rename:
            raise PermissionError(f"rename denied: {src}")
        self.files[dst] = self.files.pop(src)

    def remove(self, path):
        self.ops.append(("remove", path))
        if path in self.fail_write:
            raise PermissionError(f"remove denied: {path}")
        self.files.pop(path, None)
