from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import shutil
import tempfile
import uuid
from collections import deque
from contextlib import contextmanager
from typing import Any, AsyncIterator, Iterator, List, Mapping, Optional

from app.application.interfaces.renderer import IRenderEngine, ProgressCallback
from app.core.config import settings
from app.core.exceptions import BundleError, CompositionError, RenderError
from app.core.pyd_schemas import CompositionMetadata
from utils.subprocess_utils import SubprocessError, kill_process, safe_subprocess_run

logger = logging.getLogger(__name__)

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")
_PROGRESS_LINE = re.compile(r"Render(?:ed|ing)\D*?(\d+)\s*/\s*(\d+)")


def strip_ansi(text: str) -> str:
    return _ANSI_ESCAPE.sub("", text or "")


def parse_composition_table(output: str, composition_id: str) -> CompositionMetadata:
    """Pick one row out of `remotion compositions` output.

    Rows look like ``VideoShort   60   1080x1920   3600 (60.00 sec)``.
    """
    row = re.compile(
        rf"^\s*{re.escape(composition_id)}\s+"
        r"(?P<fps>\d+(?:\.\d+)?)\s+"
        r"(?P<width>\d+)\s*x\s*(?P<height>\d+)\s+"
        r"(?P<frames>\d+)\b"
    )
    for line in strip_ansi(output).splitlines():
        match = row.match(line)
        if match:
            fps = float(match.group("fps"))
            return CompositionMetadata(
                id=composition_id,
                width=int(match.group("width")),
                height=int(match.group("height")),
                fps=int(fps) if fps.is_integer() else fps,
                duration_in_frames=int(match.group("frames")),
            )
    raise CompositionError(
        f"Could not find composition with ID {composition_id}",
        composition_id=composition_id,
    )


def parse_progress(line: str) -> Optional[float]:
    """Fractional progress from a CLI line like ``Rendered 120/3600``."""
    match = _PROGRESS_LINE.search(strip_ansi(line))
    if not match:
        return None
    done, total = int(match.group(1)), int(match.group(2))
    if total <= 0:
        return None
    return min(1.0, done / total)


async def _iter_output_lines(stream: asyncio.StreamReader) -> AsyncIterator[str]:
    # The CLI redraws progress with carriage returns, so split on both
    buffer = ""
    while True:
        chunk = await stream.read(4096)
        if not chunk:
            break
        buffer += chunk.decode("utf-8", errors="replace")
        *lines, buffer = re.split(r"[\r\n]", buffer)
        for line in lines:
            if line.strip():
                yield line
    if buffer.strip():
        yield buffer


class RemotionCliEngine(IRenderEngine):
    """
    Remotion engine driven through its CLI (`npx remotion ...`).

    Public entry points:
        - bundle(entry_point): webpack bundle into a fresh temp directory.
        - select_composition(...): resolve metadata via `remotion compositions`.
        - render_media(...): encode via `remotion render`, streaming progress.

    Examples:
        engine = RemotionCliEngine(project_dir="/srv/video")
        serve_url = await engine.bundle("src/index.js")
    """

    def __init__(
        self,
        *,
        command: Optional[List[str]] = None,
        project_dir: Optional[str] = None,
        temp_dir: Optional[str] = None,
        bundle_prefix: Optional[str] = None,
        image_format: Optional[str] = None,
        jpeg_quality: Optional[int] = None,
        concurrency: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        disable_web_security: Optional[bool] = None,
        cli_timeout: Optional[float] = None,
    ) -> None:
        self._command = list(command or settings.remotion_command_args)
        self._project_dir = project_dir or settings.remotion_project_dir
        self._temp_dir = os.path.abspath(temp_dir or settings.temp_base_dir)
        self._bundle_prefix = bundle_prefix or settings.bundle_dir_prefix
        self.image_format = image_format or settings.remotion_image_format
        self.jpeg_quality = jpeg_quality or settings.remotion_jpeg_quality
        self.concurrency = concurrency or settings.remotion_concurrency
        self.timeout_seconds = timeout_seconds or settings.render_timeout_seconds
        self.disable_web_security = (
            settings.remotion_disable_web_security
            if disable_web_security is None
            else disable_web_security
        )
        self.cli_timeout = cli_timeout or settings.remotion_bundle_timeout

    @contextmanager
    def _props_file(self, input_props: Mapping[str, Any]) -> Iterator[str]:
        """Props go through a file; inline JSON breaks on large base64 audio."""
        os.makedirs(self._temp_dir, exist_ok=True)
        fd, path = tempfile.mkstemp(prefix="props_", suffix=".json", dir=self._temp_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(dict(input_props), f, ensure_ascii=False)
            yield path
        finally:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass

    async def bundle(self, entry_point: str) -> str:
        os.makedirs(self._temp_dir, exist_ok=True)
        out_dir = os.path.join(self._temp_dir, f"{self._bundle_prefix}{uuid.uuid4().hex}")
        cmd = [*self._command, "bundle", entry_point, "--out-dir", out_dir]
        try:
            await safe_subprocess_run(
                cmd,
                "Remotion bundle",
                cwd=self._project_dir,
                timeout=self.cli_timeout,
            )
        except SubprocessError as e:
            shutil.rmtree(out_dir, ignore_errors=True)
            raise BundleError(str(e), entry_point=entry_point) from e
        except asyncio.CancelledError:
            # the bundler child has already been killed and reaped
            shutil.rmtree(out_dir, ignore_errors=True)
            raise

        if not os.path.isdir(out_dir):
            raise BundleError(
                f"Bundler finished but produced no output at {out_dir}",
                entry_point=entry_point,
            )
        return out_dir

    async def select_composition(
        self,
        serve_url: str,
        composition_id: str,
        input_props: Mapping[str, Any],
    ) -> CompositionMetadata:
        with self._props_file(input_props) as props_path:
            cmd = [*self._command, "compositions", serve_url, "--props", props_path]
            try:
                result = await safe_subprocess_run(
                    cmd,
                    "Remotion compositions",
                    cwd=self._project_dir,
                    timeout=self.cli_timeout,
                )
            except SubprocessError as e:
                raise CompositionError(str(e), composition_id=composition_id) from e
        return parse_composition_table(result.stdout or "", composition_id)

    def _render_command(
        self,
        composition: CompositionMetadata,
        serve_url: str,
        codec: str,
        output_location: str,
        props_path: str,
    ) -> List[str]:
        cmd = [
            *self._command,
            "render",
            serve_url,
            composition.id,
            output_location,
            "--codec",
            codec,
            "--props",
            props_path,
            "--concurrency",
            str(self.concurrency),
            "--image-format",
            self.image_format,
            "--timeout",
            str(int(self.timeout_seconds * 1000)),
            "--overwrite",
        ]
        if self.image_format == "jpeg":
            cmd += ["--jpeg-quality", str(self.jpeg_quality)]
        if self.disable_web_security:
            cmd.append("--disable-web-security")
        return cmd

    async def render_media(
        self,
        composition: CompositionMetadata,
        serve_url: str,
        *,
        codec: str,
        output_location: str,
        input_props: Mapping[str, Any],
        on_progress: ProgressCallback | None = None,
    ) -> None:
        with self._props_file(input_props) as props_path:
            cmd = self._render_command(
                composition, serve_url, codec, output_location, props_path
            )
            logger.debug("Running Remotion render: %s", " ".join(cmd))
            try:
                proc = await asyncio.create_subprocess_exec(
                    *cmd,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.STDOUT,
                    cwd=self._project_dir,
                )
            except OSError as e:
                raise RenderError(f"Remotion render could not start: {e}") from e

            tail: deque[str] = deque(maxlen=40)
            try:
                async for line in _iter_output_lines(proc.stdout):
                    clean = strip_ansi(line).strip()
                    tail.append(clean)
                    progress = parse_progress(clean)
                    if progress is not None and on_progress is not None:
                        self._notify(on_progress, progress)
                returncode = await proc.wait()
            except asyncio.CancelledError:
                logger.warning("Render cancelled; killing Remotion process %s", proc.pid)
                await kill_process(proc)
                raise

        if returncode != 0:
            errors = [line for line in tail if "error" in line.lower()]
            reason = errors[-1] if errors else (tail[-1] if tail else "no output")
            raise RenderError(
                f"Remotion render exited with code {returncode}: {reason}",
                details="\n".join(tail),
            )
        if on_progress is not None:
            self._notify(on_progress, 1.0)

    @staticmethod
    def _notify(on_progress: ProgressCallback, progress: float) -> None:
        try:
            on_progress(progress)
        except Exception as e:  # noqa: BLE001
            # Progress is advisory; a broken listener must not abort the render
            logger.warning("Progress callback failed: %s", e)
