"""
Shared test configuration and fixtures for the render service.
"""

import asyncio
import logging
import math
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from app.core.pyd_schemas import CompositionMetadata
from app.infrastructure.adapters.artifact_store_local import LocalArtifactStore


def setup_logging():
    """Log test runs to the console and to test/test_output/logs/test_run.log."""
    log_dir = Path("test/test_output/logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "test_run.log"

    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)-8s [%(name)s:%(lineno)d] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = logging.FileHandler(filename=log_file, mode="a", encoding="utf-8")
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return log_file


def pytest_configure(config):  # pylint: disable=unused-argument
    log_file = setup_logging()
    logger = logging.getLogger("pytest")
    logger.info("=" * 80)
    logger.info("Log file: %s", log_file)
    logger.info("-" * 80)


@pytest.fixture(autouse=True)
def log_test_name(request):
    """Log test name when test starts and finishes."""
    logger = logging.getLogger(request.node.nodeid)
    logger.info("🚀 Starting test: %s", request.node.name)
    start_time = datetime.now()

    def log_test_end():
        duration = (datetime.now() - start_time).total_seconds()
        if hasattr(request.node, "rep_call") and request.node.rep_call.failed:
            logger.error("❌ Test failed after %.2fs", duration)
        else:
            logger.info("✅ Test finished after %.2fs", duration)

    request.addfinalizer(log_test_end)


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    outcome = yield
    rep = outcome.get_result()
    setattr(item, f"rep_{rep.when}", rep)


# -------------------- Render flow fakes --------------------
class RecordingJobLogger:
    """IJobLogger that keeps every call for assertions."""

    def __init__(self):
        self.records = []

    def info(self, message, data=None):
        self.records.append(("info", message, data))

    def warn(self, message, data=None):
        self.records.append(("warn", message, data))

    def error(self, message, error=None):
        self.records.append(("error", message, error))

    def success(self, message, data=None):
        self.records.append(("success", message, data))

    def render(self, stage, message, data=None):
        self.records.append(("render", f"{stage}: {message}", data))

    def messages(self, level):
        return [m for lvl, m, _ in self.records if lvl == level]

    def progress_lines(self):
        return [m for m in self.messages("render") if m.startswith("rendering: ")]


class FakeRenderEngine:
    """In-process stand-in for the Remotion engine.

    - bundle creates a real directory under tmp so cleanup can be asserted
    - select_composition derives frames as fps * scene seconds + branding tail
    - render_media replays `progress` ticks and writes a small output file
    """

    def __init__(
        self,
        base_dir: Path,
        *,
        fps: int = 30,
        width: int = 1080,
        height: int = 1920,
        branding_seconds: int = 3,
        progress=(0.05, 0.12, 0.21, 0.33, 0.41),
        fail_at: str | None = None,
        error: Exception | None = None,
        render_delay: float = 0.0,
    ):
        self.base_dir = Path(base_dir)
        self.fps = fps
        self.width = width
        self.height = height
        self.branding_seconds = branding_seconds
        self.progress = tuple(progress)
        self.fail_at = fail_at
        self.error = error
        self.render_delay = render_delay
        self.bundles = []
        self.composition_calls = []
        self.render_calls = []
        self.active = 0
        self.max_active = 0

    def _maybe_fail(self, stage: str, default_message: str):
        if self.fail_at == stage:
            raise self.error or RuntimeError(default_message)

    async def bundle(self, entry_point):
        self._maybe_fail("bundle", f"Cannot find entry point {entry_point}")
        bundle_dir = self.base_dir / f"bundle_{len(self.bundles)}"
        bundle_dir.mkdir(parents=True, exist_ok=True)
        (bundle_dir / "index.html").write_text("<html></html>", encoding="utf-8")
        self.bundles.append(str(bundle_dir))
        return str(bundle_dir)

    def leftover_bundles(self):
        if not self.base_dir.exists():
            return []
        return [p for p in self.base_dir.iterdir() if p.name.startswith("bundle_")]

    async def select_composition(self, serve_url, composition_id, input_props):
        self.composition_calls.append((serve_url, composition_id, input_props))
        self._maybe_fail("composition", f"Could not find composition with ID {composition_id}")
        assets = input_props["videoData"].get("videoAssets", [])
        frames = sum(math.floor(a["duration"] * self.fps) for a in assets)
        frames += self.branding_seconds * self.fps
        return CompositionMetadata(
            id=composition_id,
            width=self.width,
            height=self.height,
            fps=self.fps,
            duration_in_frames=frames,
        )

    async def render_media(
        self,
        composition,
        serve_url,
        *,
        codec,
        output_location,
        input_props,
        on_progress=None,
    ):
        self.render_calls.append(
            {
                "composition": composition,
                "serve_url": serve_url,
                "codec": codec,
                "output_location": output_location,
                "input_props": input_props,
            }
        )
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            for p in self.progress:
                if on_progress is not None:
                    on_progress(p)
                await asyncio.sleep(0)
            if self.render_delay:
                await asyncio.sleep(self.render_delay)
            self._maybe_fail("render", "Encoding failed: ffmpeg exited with code 1")
            Path(output_location).write_bytes(b"\x00\x00\x00\x18ftypmp42fake")
        finally:
            self.active -= 1


class SequenceIdGenerator:
    def __init__(self, prefix="video_"):
        self.prefix = prefix
        self.count = 0

    def new_id(self):
        self.count += 1
        return f"{self.prefix}{1700000000000 + self.count}"


@pytest.fixture
def job_logger():
    return RecordingJobLogger()


@pytest.fixture
def fake_engine(tmp_path):
    return FakeRenderEngine(tmp_path / "bundles")


@pytest.fixture
def artifact_store(tmp_path):
    return LocalArtifactStore(str(tmp_path / "out"))


@pytest.fixture
def fake_adapters(fake_engine, artifact_store, job_logger):
    return SimpleNamespace(
        engine=fake_engine,
        store=artifact_store,
        id_generator=SequenceIdGenerator(),
        job_logger=job_logger,
    )


@pytest.fixture
def sample_payload():
    return {
        "videoData": {
            "videoId": "v1",
            "videoAssets": [{"url": "a.mp4", "duration": 2, "text": "Hi"}],
            "channelName": "Ch",
        }
    }


@pytest.fixture
def make_engine(tmp_path):
    """Factory for engines with custom failure/progress behaviour."""

    def _make(**kwargs):
        return FakeRenderEngine(tmp_path / "bundles", **kwargs)

    return _make
