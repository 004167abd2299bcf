"""
Entity registry: resolves opaque handles (gids) to live entities.

Events never hold references to their sender or receiver. They carry integer
handles that are looked up here at delivery time, so an event can be cloned
and redirected to many receivers without any lifetime bookkeeping.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterator

from htneuron.core.errors import ProtocolViolationError

if TYPE_CHECKING:
    from htneuron.core.node import Node


class EntityRegistry:
    """Maps gids to entities.

    Gids start at 1; 0 is never assigned so that a zero handle can never be
    mistaken for a resolved entity.
    """

    def __init__(self) -> None:
        self._entities: Dict[int, "Node"] = {}
        self._next_gid = 1

    def register(self, node: "Node") -> int:
        """Assign a fresh gid to ``node`` and store it."""
        if node.gid is not None:
            raise ValueError(f"{node.name} is already registered with gid {node.gid}")
        gid = self._next_gid
        self._next_gid += 1
        self._entities[gid] = node
        node.gid = gid
        return gid

    def resolve(self, gid: int) -> "Node":
        """Return the entity registered under ``gid``.

        Raises:
            ProtocolViolationError: If no entity carries this gid
        """
        try:
            return self._entities[gid]
        except KeyError:
            raise ProtocolViolationError(f"No entity registered with gid {gid}") from None

    def __contains__(self, gid: object) -> bool:
        return gid in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator["Node"]:
        return iter(self._entities.values())
