"""Pydantic AI layout classifiers.

Asks an LLM whether each gallery item should be laid out horizontally or
vertically.  Two shapes are provided:

1. :class:`BatchAgentLayoutClassifier` -- one prompt listing every item,
   answered with a :class:`LayoutDecisionBatch`.
2. :class:`PerItemAgentLayoutClassifier` -- one prompt per item, all sent
   concurrently, each answered with a :class:`SingleLayoutDecision`.

Both satisfy :class:`gallery.services.layout_resolver.LayoutClassifier`;
callers wrap them in a ``DelegatedLayoutResolver`` for fallback handling.
"""

from __future__ import annotations

import asyncio
import logging
import posixpath
from collections.abc import Sequence

from pydantic_ai import Agent
from pydantic_ai.models import Model

from gallery.models.gallery import (
    LayoutDecision,
    LayoutDecisionBatch,
    LayoutRequestItem,
    SingleLayoutDecision,
)

logger = logging.getLogger(__name__)

BATCH_INSTRUCTIONS = (
    "You are an expert in UI design, specializing in photo galleries. "
    "Based on the provided list of items (images and folders), determine the "
    "optimal layout for each.\n\n"
    "Rules:\n"
    "- A single image should always have a 'vertical' layout.\n"
    "- A folder containing images should generally have a 'horizontal' layout "
    "to encourage browsing.\n\n"
    "Return exactly one decision for every item ID you are given."
)

PER_ITEM_INSTRUCTIONS = (
    "You are an expert in UI design, tasked with determining the best layout "
    "strategy for an image gallery. Given information about an image or a "
    "folder of images, suggest whether a 'horizontal' or 'vertical' layout "
    "would be more appropriate.\n\n"
    "Consider the following:\n"
    "- Folders should generally use horizontal layouts to allow browsing "
    "through the contents.\n"
    "- Single images should generally use vertical layouts.\n\n"
    "Provide a brief reason for your suggestion."
)


def format_batch_prompt(items: Sequence[LayoutRequestItem]) -> str:
    """List every item on its own line for the batch prompt."""
    lines = ["Here are the items:"]
    for item in items:
        lines.append(
            f"- ID: {item.id}, Type: {item.type}, Name: {item.name}, Path: {item.path}"
        )
    lines.append("")
    lines.append("Please provide the layout for each item.")
    return "\n".join(lines)


def format_item_prompt(item: LayoutRequestItem) -> str:
    _, ext = posixpath.splitext(item.name)
    lines = [
        f"Location: {item.path}",
        f"Extension: {ext.lstrip('.') or 'none'}",
        f"Is Folder: {'yes' if item.type == 'folder' else 'no'}",
    ]
    if item.type == "folder" and item.image_count is not None:
        lines.append(f"Image Count: {item.image_count}")
    return "\n".join(lines)


class BatchAgentLayoutClassifier:
    """Classify a whole batch with a single agent run.

    The agent is created on first use so that a missing API key only
    surfaces when a classification is actually requested.
    """

    def __init__(self, model: str | Model | None) -> None:
        self.model = model
        self._agent: Agent[None, LayoutDecisionBatch] | None = None

    def _get_agent(self) -> Agent[None, LayoutDecisionBatch]:
        if self._agent is None:
            self._agent = Agent(
                self.model,
                output_type=LayoutDecisionBatch,
                instructions=BATCH_INSTRUCTIONS,
            )
        return self._agent

    async def classify(
        self, items: Sequence[LayoutRequestItem]
    ) -> list[LayoutDecision]:
        agent = self._get_agent()
        result = await agent.run(format_batch_prompt(items))
        decisions = result.output.items_with_layout
        logger.info(
            "Layout agent returned %d decisions for %d items",
            len(decisions),
            len(items),
        )
        return decisions


class PerItemAgentLayoutClassifier:
    """Classify each item with its own agent run, all in flight at once.

    Items whose run fails are left out of the answer so the resolver falls
    back for them alone.  If every run fails, the first error is raised.
    """

    def __init__(self, model: str | Model | None) -> None:
        self.model = model
        self._agent: Agent[None, SingleLayoutDecision] | None = None

    def _get_agent(self) -> Agent[None, SingleLayoutDecision]:
        if self._agent is None:
            self._agent = Agent(
                self.model,
                output_type=SingleLayoutDecision,
                instructions=PER_ITEM_INSTRUCTIONS,
            )
        return self._agent

    async def _classify_one(self, item: LayoutRequestItem) -> LayoutDecision:
        result = await self._get_agent().run(format_item_prompt(item))
        logger.debug(
            "Layout for %s: %s (%s)", item.path, result.output.layout, result.output.reason
        )
        return LayoutDecision(id=item.id, layout=result.output.layout)

    async def classify(
        self, items: Sequence[LayoutRequestItem]
    ) -> list[LayoutDecision]:
        results = await asyncio.gather(
            *(self._classify_one(item) for item in items),
            return_exceptions=True,
        )

        decisions: list[LayoutDecision] = []
        errors: list[Exception] = []
        for item, result in zip(items, results):
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                # Cancellation and interpreter exits are not item failures
                raise result
            if isinstance(result, Exception):
                logger.warning("Layout agent failed for %s: %s", item.path, result)
                errors.append(result)
            else:
                decisions.append(result)

        if items and not decisions:
            raise errors[0]
        return decisions
