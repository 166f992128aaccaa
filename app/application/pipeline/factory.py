from __future__ import annotations

from typing import List

from app.application.pipeline.base import Pipeline, Step, Middleware


class PipelineFactory:
    """Fluent builder for Pipelines, with optional middlewares per step.

    Example:
        factory = PipelineFactory()
        pipeline = factory.add(step1).add(step2).build()
    """

    def __init__(self, *, middlewares: List[Middleware] | None = None):
        self._steps: List[Step] = []
        self._middlewares = list(middlewares or [])

    def add(self, step: Step) -> "PipelineFactory":
        wrapped = step
        for mw in self._middlewares:
            wrapped = mw(wrapped)
        self._steps.append(wrapped)
        return self

    def build(self) -> Pipeline:
        return Pipeline(self._steps)
