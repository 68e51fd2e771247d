"""Interactive taxonomy view.

Owns the expand/collapse state of one page load and the preview lookups of
the examples currently on display. A view is a two-level disclosure list:
topics expand to show subtypes, subtypes expand to show examples. Examples
are displayed only while both their topic and their subtype are expanded.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from titletypes.core.emphasis import Segment, format_emphasis
from titletypes.core.preview import PreviewResolver, PreviewResult, PreviewSlot
from titletypes.core.taxonomy import Taxonomy, Topic
from titletypes.core.types import ExpansionPolicy

logger = logging.getLogger(__name__)


def subtype_key(topic_index: int, subtype_index: int) -> str:
    """Composite key of a subtype disclosure node."""
    return f"{topic_index}-{subtype_index}"


@dataclass
class ExampleNode:
    """Render node for one example link."""

    url: str
    preview: PreviewResult


@dataclass
class SubtypeNode:
    """Render node for a subtype disclosure."""

    index: int
    key: str
    label: list[Segment]
    expanded: bool
    examples: list[ExampleNode] = field(default_factory=list)


@dataclass
class TopicNode:
    """Render node for a topic disclosure."""

    index: int
    label: list[Segment]
    expanded: bool
    subtypes: list[SubtypeNode] = field(default_factory=list)


class TaxonomyView:
    """Disclosure state and preview lookups for one page load.

    Instances never share state. With a resolver, every displayed example has
    exactly one preview slot; examples leaving the display have their slots
    discarded, and re-displaying them starts fresh lookups.
    """

    def __init__(
        self,
        taxonomy: Taxonomy,
        *,
        policy: ExpansionPolicy = ExpansionPolicy.COLLAPSED,
        resolver: PreviewResolver | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        """Initialize the view.

        Args:
            taxonomy: Taxonomy to display
            policy: Initial expansion state
            resolver: Preview resolver (default: no lookups)
            on_change: Called after every toggle and every applied preview
        """
        self._topics: tuple[Topic, ...] = taxonomy.topics
        self._resolver = resolver
        self._on_change = on_change
        self._expanded_topics: dict[int, bool] = {}
        self._expanded_subtypes: dict[str, bool] = {}
        self._slots: dict[str, list[PreviewSlot]] = {}
        self._mounted = False
        self._closed = False
        self._apply_policy(policy)

    @property
    def topics(self) -> tuple[Topic, ...]:
        return self._topics

    @property
    def closed(self) -> bool:
        return self._closed

    def is_topic_expanded(self, topic_index: int) -> bool:
        return self._expanded_topics.get(topic_index, False)

    def is_subtype_expanded(self, topic_index: int, subtype_index: int) -> bool:
        return self._expanded_subtypes.get(subtype_key(topic_index, subtype_index), False)

    def is_displayed(self, topic_index: int, subtype_index: int) -> bool:
        """Whether the examples of a subtype are currently on display."""
        return self.is_topic_expanded(topic_index) and self.is_subtype_expanded(
            topic_index,
            subtype_index,
        )

    def toggle_topic(self, topic_index: int) -> bool:
        """Flip a topic's expanded flag.

        Subtype flags are left untouched.

        Args:
            topic_index: Display index of the topic

        Returns:
            New expanded state

        Raises:
            IndexError: If the topic does not exist
            RuntimeError: If the view is closed
        """
        self._check_open()
        self._check_topic(topic_index)
        expanded = not self.is_topic_expanded(topic_index)
        self._expanded_topics[topic_index] = expanded
        self._sync_previews()
        self._notify()
        return expanded

    def toggle_subtype(self, topic_index: int, subtype_index: int) -> bool:
        """Flip a subtype's expanded flag.

        Args:
            topic_index: Display index of the topic
            subtype_index: Index of the subtype within the topic

        Returns:
            New expanded state

        Raises:
            IndexError: If the topic or subtype does not exist
            RuntimeError: If the view is closed
        """
        self._check_open()
        self._check_topic(topic_index)
        if not 0 <= subtype_index < len(self._topics[topic_index].subtypes):
            raise IndexError(f"No subtype {subtype_index} in topic {topic_index}")
        key = subtype_key(topic_index, subtype_index)
        expanded = not self._expanded_subtypes.get(key, False)
        self._expanded_subtypes[key] = expanded
        self._sync_previews()
        self._notify()
        return expanded

    def mount(self) -> None:
        """Start preview lookups for the examples on display.

        Must be called from a running event loop when a resolver is set.
        """
        self._check_open()
        self._mounted = True
        self._sync_previews()

    def close(self) -> None:
        """Discard every preview slot and stop accepting toggles."""
        if self._closed:
            return
        self._closed = True
        for slots in self._slots.values():
            for slot in slots:
                slot.discard()
        self._slots.clear()

    def preview_slots(self, topic_index: int, subtype_index: int) -> list[PreviewSlot]:
        """Preview slots currently attached to a subtype's examples."""
        return list(self._slots.get(subtype_key(topic_index, subtype_index), []))

    def preview(self, topic_index: int, subtype_index: int, example_index: int) -> PreviewResult:
        """Current preview result for an example.

        Returns a pending result when no lookup is attached.
        """
        slots = self._slots.get(subtype_key(topic_index, subtype_index))
        if not slots or example_index >= len(slots):
            return PreviewResult.pending()
        return slots[example_index].result

    def nodes(self) -> list[TopicNode]:
        """Build the render tree for the current state."""
        result: list[TopicNode] = []
        for t, topic in enumerate(self._topics):
            topic_node = TopicNode(
                index=t,
                label=format_emphasis(topic.label),
                expanded=self.is_topic_expanded(t),
            )
            if topic_node.expanded:
                for s, subtype in enumerate(topic.subtypes):
                    subtype_node = SubtypeNode(
                        index=s,
                        key=subtype_key(t, s),
                        label=format_emphasis(subtype.label),
                        expanded=self.is_subtype_expanded(t, s),
                    )
                    if subtype_node.expanded:
                        subtype_node.examples = [
                            ExampleNode(url=url, preview=self.preview(t, s, i))
                            for i, url in enumerate(subtype.examples)
                        ]
                    topic_node.subtypes.append(subtype_node)
            result.append(topic_node)
        return result

    def _apply_policy(self, policy: ExpansionPolicy) -> None:
        if policy is ExpansionPolicy.EXPANDED:
            for t, topic in enumerate(self._topics):
                self._expanded_topics[t] = True
                for s in range(len(topic.subtypes)):
                    self._expanded_subtypes[subtype_key(t, s)] = True
        elif policy is ExpansionPolicy.FIRST_TOPIC and self._topics:
            self._expanded_topics[0] = True

    def _sync_previews(self) -> None:
        """Attach slots to displayed examples and discard the rest."""
        if self._resolver is None or not self._mounted:
            return

        displayed: set[str] = set()
        for t, topic in enumerate(self._topics):
            for s, subtype in enumerate(topic.subtypes):
                if not self.is_displayed(t, s):
                    continue
                key = subtype_key(t, s)
                displayed.add(key)
                if key in self._slots:
                    continue
                slots = [PreviewSlot(url) for url in subtype.examples]
                self._slots[key] = slots
                for slot in slots:
                    slot.start(self._resolver, self._on_preview)
                if slots:
                    logger.debug(f"Started {len(slots)} preview lookups for {key}")

        for key in list(self._slots):
            if key in displayed:
                continue
            for slot in self._slots.pop(key):
                slot.discard()

    def _on_preview(self, slot: PreviewSlot) -> None:
        self._notify()

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def _check_topic(self, topic_index: int) -> None:
        if not 0 <= topic_index < len(self._topics):
            raise IndexError(f"No topic {topic_index}")

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("View is closed")
