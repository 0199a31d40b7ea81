"""Variant axis selection (e.g. which test runtime a descriptor uses)."""
from __future__ import annotations

import fnmatch
import logging
from typing import Dict, List, Mapping, Sequence, Union

from bomalign.errors import AmbiguousProfileError
from bomalign.versioning.models import (
    ModuleIdentifier,
    ProfileSelection,
    ResolvedGraph,
    ResolvedModule,
)

logger = logging.getLogger(__name__)

PriorityEntry = Union[str, ModuleIdentifier]


def entry_matches(entry: PriorityEntry, module: ModuleIdentifier) -> bool:
    """Entries are identifiers or ``group:name`` strings, optionally globbed."""
    if isinstance(entry, ModuleIdentifier):
        return entry == module
    return fnmatch.fnmatchcase(str(module), entry.strip())


class ProfileSelector:
    """Picks at most one module per variant axis by priority order."""

    def select(
        self,
        graph: ResolvedGraph,
        axis_priority: Mapping[str, Sequence[PriorityEntry]],
    ) -> ProfileSelection:
        """Choose the winner for each axis.

        Args:
            graph: Resolved modules; only those tagged with an axis compete on it.
            axis_priority: Axis -> entries, highest priority first.

        Returns:
            Axis -> selected module. Axes without a present candidate are omitted.

        Raises:
            AmbiguousProfileError: two tagged modules match the same entry.
        """
        selections: Dict[str, ModuleIdentifier] = {}
        for axis, priorities in axis_priority.items():
            tagged = graph.tagged(axis)
            if not tagged:
                logger.debug("No modules declared for axis %s", axis)
                continue

            winner = self._select_axis(axis, tagged, priorities)
            if winner is None:
                logger.warning(
                    "Axis %s has candidates %s but none is in its priority list",
                    axis,
                    ", ".join(str(m.id) for m in tagged),
                )
                continue
            selections[axis] = winner
            logger.info("Selected %s for axis %s", winner, axis)

        untracked = sorted(
            {a for m in graph.values() for a in m.axes} - set(axis_priority)
        )
        if untracked:
            logger.warning("No priority declared for axes: %s", ", ".join(untracked))
        return selections

    @staticmethod
    def _select_axis(
        axis: str,
        tagged: List[ResolvedModule],
        priorities: Sequence[PriorityEntry],
    ) -> Union[ModuleIdentifier, None]:
        for entry in priorities:
            matches = [m.id for m in tagged if entry_matches(entry, m.id)]
            if len(matches) > 1:
                raise AmbiguousProfileError(axis, str(entry), matches)
            if matches:
                return matches[0]
        return None


def select(
    graph: ResolvedGraph,
    axis_priority: Mapping[str, Sequence[PriorityEntry]],
) -> ProfileSelection:
    """Module-level shortcut for ``ProfileSelector().select``."""
    return ProfileSelector().select(graph, axis_priority)
