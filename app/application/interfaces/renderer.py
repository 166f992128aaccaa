from __future__ import annotations
from typing import Any, Callable, Mapping, Protocol

from app.core.pyd_schemas import CompositionMetadata

ProgressCallback = Callable[[float], None]


class IRenderEngine(Protocol):
    """External video engine: bundles a project, resolves compositions, renders media."""

    async def bundle(self, entry_point: str) -> str:
        """Package the project rooted at `entry_point`; return the bundle location."""
        ...

    async def select_composition(
        self,
        serve_url: str,
        composition_id: str,
        input_props: Mapping[str, Any],
    ) -> CompositionMetadata:
        """Resolve dimensions, fps and frame count of a named composition."""
        ...

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
        """Encode the composition into `output_location`.

        on_progress receives fractional progress in [0, 1]; it is advisory only.
        """
        ...
