from __future__ import annotations

import hashlib
import os
import re
from typing import Optional

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_file_stem(job_id: str) -> str:
    """Reduce a caller-supplied job id to a single safe path component.

    Ids that had to be rewritten get a short digest of the original appended,
    so two ids never share a file just because they sanitise alike.
    """
    raw = str(job_id)
    stem = _UNSAFE_CHARS.sub("_", raw).strip("._") or "video"
    if stem != raw:
        stem += "_" + hashlib.sha1(raw.encode("utf-8")).hexdigest()[:8]
    return stem


class LocalArtifactStore:
    """Rendered files live flat in one directory as <job id>.<extension>."""

    def __init__(self, base_dir: str = "out", *, extension: str = "mp4") -> None:
        self.base_dir = os.path.abspath(base_dir)
        self.extension = extension.lstrip(".")

    def path_for(self, job_id: str) -> str:
        return os.path.join(self.base_dir, f"{safe_file_stem(job_id)}.{self.extension}")

    def output_path(self, job_id: str) -> str:
        os.makedirs(self.base_dir, exist_ok=True)
        return self.path_for(job_id)

    def locate(self, job_id: str) -> Optional[str]:
        path = self.path_for(job_id)
        if os.path.isfile(path) and os.path.getsize(path) > 0:
            return path
        return None
