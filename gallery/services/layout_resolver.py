"""Layout resolution for gallery items.

Every item gets a ``layout`` of ``"horizontal"`` or ``"vertical"``.  Two
strategies implement :class:`LayoutResolver`:

- :class:`RuleLayoutResolver` -- images are vertical, folders horizontal.
- :class:`DelegatedLayoutResolver` -- asks a :class:`LayoutClassifier`
  for the whole batch and falls back to the rule for every item when the
  call fails, or only for the ids the answer left out.

The output always has the same length and order as the input.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Literal, Protocol

from pydantic import TypeAdapter, ValidationError

from gallery.models.gallery import (
    FolderItem,
    GalleryItem,
    Layout,
    LayoutDecision,
    LayoutRequestItem,
    LayoutStatus,
)

logger = logging.getLogger(__name__)

DecisionSource = Literal["rule", "classifier", "fallback"]

_decisions_adapter = TypeAdapter(list[LayoutDecision])


def default_layout(item: GalleryItem | LayoutRequestItem) -> Layout:
    """Folders scroll horizontally; single images stack vertically."""
    return "horizontal" if item.type == "folder" else "vertical"


def to_request_item(item: GalleryItem) -> LayoutRequestItem:
    return LayoutRequestItem(
        id=item.id,
        type=item.type,
        name=item.name,
        path=item.path,
        image_count=len(item.images) if isinstance(item, FolderItem) else None,
    )


@dataclass
class LayoutResolution:
    """Items with layouts attached, plus where each layout came from.

    ``sources`` is keyed by item id; image ids are blob shas, so
    byte-identical images share one entry.
    """

    items: list[GalleryItem]
    status: LayoutStatus
    sources: dict[str, DecisionSource] = field(default_factory=dict)
    reason: str = ""


class LayoutClassifier(Protocol):
    """External service deciding layouts for a batch of items.

    Must return a decision for every submitted id; any exception is
    treated as a failure of the whole batch.
    """

    async def classify(
        self, items: Sequence[LayoutRequestItem]
    ) -> list[LayoutDecision]: ...


class LayoutResolver(ABC):
    """Resolve layouts for a batch of classified gallery items."""

    async def resolve(self, items: Sequence[GalleryItem]) -> LayoutResolution:
        if not items:
            return LayoutResolution(items=[], status="skipped")
        return await self._resolve(list(items))

    @abstractmethod
    async def _resolve(self, items: list[GalleryItem]) -> LayoutResolution: ...


def _attach(item: GalleryItem, layout: Layout) -> GalleryItem:
    return item.model_copy(update={"layout": layout})


class RuleLayoutResolver(LayoutResolver):
    """Deterministic rule; never fails and never calls out."""

    async def _resolve(self, items: list[GalleryItem]) -> LayoutResolution:
        return LayoutResolution(
            items=[_attach(item, default_layout(item)) for item in items],
            status="ok",
            sources={item.id: "rule" for item in items},
        )


class DelegatedLayoutResolver(LayoutResolver):
    """Delegate to a :class:`LayoutClassifier` with per-item rule fallback."""

    def __init__(self, classifier: LayoutClassifier) -> None:
        self.classifier = classifier

    async def _resolve(self, items: list[GalleryItem]) -> LayoutResolution:
        request = [to_request_item(item) for item in items]
        try:
            raw = await self.classifier.classify(request)
            decisions = _decisions_adapter.validate_python(raw)
        except ValidationError as exc:
            logger.warning(
                "Layout classifier returned malformed output, using defaults: %s", exc
            )
            return self._fallback_all(items, "malformed classifier output")
        except Exception as exc:
            logger.warning(
                "Layout classifier failed for %d items, using defaults: %s",
                len(items),
                exc,
            )
            return self._fallback_all(items, f"classifier error: {exc}")

        layouts: dict[str, Layout] = {}
        wanted = {item.id for item in items}
        for decision in decisions:
            if decision.id in wanted:
                layouts.setdefault(decision.id, decision.layout)

        resolved: list[GalleryItem] = []
        sources: dict[str, DecisionSource] = {}
        for item in items:
            layout = layouts.get(item.id)
            if layout is None:
                sources[item.id] = "fallback"
                layout = default_layout(item)
            else:
                sources[item.id] = "classifier"
            resolved.append(_attach(item, layout))

        missing = sorted(i for i, source in sources.items() if source == "fallback")
        if missing:
            logger.warning(
                "Layout classifier omitted %d of %d items; using defaults for %s",
                sum(1 for item in items if item.id not in layouts),
                len(items),
                ", ".join(missing),
            )
        status: LayoutStatus = "partial" if missing else "ok"
        return LayoutResolution(items=resolved, status=status, sources=sources)

    @staticmethod
    def _fallback_all(items: list[GalleryItem], reason: str) -> LayoutResolution:
        return LayoutResolution(
            items=[_attach(item, default_layout(item)) for item in items],
            status="failed",
            sources={item.id: "fallback" for item in items},
            reason=reason,
        )


def build_layout_resolver(strategy: str, agent_model: str | None = None) -> LayoutResolver:
    """Create the resolver named by the ``layout_strategy`` setting."""
    if strategy == "rule":
        return RuleLayoutResolver()

    from gallery.services.layout_agent import (
        BatchAgentLayoutClassifier,
        PerItemAgentLayoutClassifier,
    )

    if strategy == "agent":
        return DelegatedLayoutResolver(BatchAgentLayoutClassifier(agent_model))
    if strategy == "agent_per_item":
        return DelegatedLayoutResolver(PerItemAgentLayoutClassifier(agent_model))
    raise ValueError(f"Unknown layout strategy: {strategy!r}")
