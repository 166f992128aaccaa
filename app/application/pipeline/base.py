from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Protocol,
    runtime_checkable,
    Mapping,
    ClassVar,
    TypedDict,
)
import logging
from abc import ABC, abstractmethod
from time import perf_counter
from enum import Enum


@dataclass(slots=True)
class PipelineContext:
    """Common pipeline context shared across all steps.

    - input: immutable-like request input (job id, job request, props)
    - artifacts: cross-step working data and outputs
    """

    RUN_ID_KEY: ClassVar[str] = "_run_id"

    input: Mapping[str, Any]
    artifacts: Dict[str, Any] = field(default_factory=dict)

    def set(self, key: str, value: Any) -> None:
        self.artifacts[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.artifacts.get(key, default)

    def has(self, key: str) -> bool:
        return key in self.artifacts

    def get_run_id(self) -> Optional[str]:
        return self.get(self.RUN_ID_KEY, None)

    def set_run_id(self, run_id: str) -> None:
        self.set(self.RUN_ID_KEY, run_id)


class StepStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@runtime_checkable
class Step(Protocol):
    async def __call__(
        self, context: PipelineContext
    ) -> None:  # pragma: no cover - protocol
        ...


logger = logging.getLogger(__name__)


class BaseStep(ABC):
    """Base class for pipeline steps with lifecycle hooks and status.

    Steps run exactly once; a failure is recorded and re-raised.
    """

    name: str = "base_step"

    required_keys: List[str] = []

    # runtime fields
    status: StepStatus = StepStatus.PENDING
    last_error: Optional[Exception] = None
    duration: float = 0.0

    async def __call__(self, context: PipelineContext) -> None:
        self.last_error = None

        if not self.validate_inputs(context):
            missing = [k for k in self.required_keys if not context.has(k)]
            raise KeyError(
                f"Missing required inputs for step '{self.name}': {', '.join(missing)}"
            )

        self.status = StepStatus.RUNNING
        self.on_start(context)
        start = perf_counter()
        try:
            await self.run(context)
            self.status = StepStatus.COMPLETED
        except BaseException as e:
            self.last_error = e if isinstance(e, Exception) else None
            self.status = StepStatus.FAILED
            raise
        finally:
            self.duration = perf_counter() - start
            self.on_finish(context, self.duration)

    @abstractmethod
    async def run(
        self, context: PipelineContext
    ) -> None:  # pragma: no cover - abstract
        ...

    # Hooks
    def on_start(self, context: PipelineContext) -> None:
        logger.debug("Step %s start", getattr(self, "name", self.__class__.__name__))

    def on_finish(self, context: PipelineContext, duration: float) -> None:
        logger.info(
            "Step %s finished in %.3fs with status=%s run_id=%s",
            getattr(self, "name", self.__class__.__name__),
            duration,
            self.status.value,
            context.get_run_id(),
        )

    def validate_inputs(self, context: PipelineContext) -> bool:
        if not self.required_keys:
            return True
        return all(context.has(k) for k in self.required_keys)


class StepResult(TypedDict):  # pragma: no cover - typing helper
    name: str
    status: str
    duration: float
    error: Optional[str]


class PipelineResult(TypedDict):  # pragma: no cover - typing helper
    success: bool
    duration: float
    steps: List[StepResult]
    error: Optional[str]
    context: PipelineContext


class Pipeline:
    """Runs steps in order; the first failure aborts the rest and propagates."""

    def __init__(self, steps: List[Step]):
        self._steps = steps

    @property
    def step_names(self) -> List[str]:
        return [getattr(s, "name", s.__class__.__name__) for s in self._steps]

    async def execute(self, context: PipelineContext) -> PipelineResult:
        pipeline_start = perf_counter()
        results: Dict[str, Any] = {
            "success": False,
            "duration": 0.0,
            "steps": [],
            "error": None,
        }

        for step in self._steps:
            step_info: Dict[str, Any] = {
                "name": getattr(step, "name", step.__class__.__name__),
                "status": StepStatus.PENDING.value,
                "duration": 0.0,
                "error": None,
            }
            results["steps"].append(step_info)

            step_start = perf_counter()
            try:
                await step(context)
                step_info["status"] = getattr(
                    step, "status", StepStatus.COMPLETED
                ).value
            except Exception as e:  # noqa: BLE001
                step_info["status"] = StepStatus.FAILED.value
                step_info["error"] = str(e)
                raise
            finally:
                step_info["duration"] = perf_counter() - step_start

        results["duration"] = perf_counter() - pipeline_start
        results["success"] = all(
            s.get("status") == StepStatus.COMPLETED.value for s in results["steps"]
        )
        results["context"] = context
        return results


class Middleware(Protocol):  # pragma: no cover - optional extension point
    def __call__(self, step: Step) -> Step: ...


def make_logging_middleware(
    logger_obj: logging.Logger | None = None,
    level_before: int = logging.DEBUG,
    level_after: int = logging.INFO,
) -> Middleware:
    """Return a middleware that logs before and after each step execution.

    Logs include: step name, run_id, status, duration.
    """
    _log = logger_obj or logger

    def _middleware(step: Step) -> Step:
        class _Wrapped:
            def __init__(self, inner: Step):
                self._inner = inner

            def __getattr__(self, item):  # delegate attributes like 'name'
                return getattr(self._inner, item)

            async def __call__(self, context: PipelineContext) -> None:
                step_name = getattr(self._inner, "name", self._inner.__class__.__name__)
                rid = context.get_run_id()
                _log.log(level_before, "[run_id=%s] Step %s BEGIN", rid, step_name)
                _start = perf_counter()
                try:
                    await self._inner(context)
                finally:
                    duration = perf_counter() - _start
                    status = getattr(self._inner, "status", StepStatus.PENDING)
                    _log.log(
                        level_after,
                        "[run_id=%s] Step %s END status=%s duration=%.3fs",
                        rid,
                        step_name,
                        getattr(status, "value", str(status)),
                        duration,
                    )

        return _Wrapped(step)

    return _middleware
