"""Fans room and game updates out to the connections registered in a room.

Recipients are read from the RoomRegistry at send time, after the mutation
has been applied, so a room never sees a roster older than the change that
triggered the broadcast.
"""

from typing import Any, Callable, Dict, Iterable, Optional

from guesswho.errors import GameError
from .protocol import Outbound
from .rooms import RoomRegistry

NAMESPACE = '/ws'


class BroadcastDispatcher:
    def __init__(self, registry: RoomRegistry, emit: Callable[..., Any], namespace: str = NAMESPACE):
        self.registry = registry
        self._emit = emit
        self.namespace = namespace

    def to_connection(self, connection_id: str, event: str, payload: Dict[str, Any]) -> None:
        self._emit(event, payload, to=connection_id, namespace=self.namespace)

    def to_connections(self, connection_ids: Iterable[str], event: str, payload: Dict[str, Any]) -> None:
        for sid in connection_ids:
            self.to_connection(sid, event, payload)

    def to_room(self, code: str, event: str, payload: Dict[str, Any]) -> None:
        self.to_connections(self.registry.connections(code), event, payload)

    def to_all(self, event: str, payload: Dict[str, Any]) -> None:
        self._emit(event, payload, namespace=self.namespace)

    def roster(self, code: str, event: str, player: Optional[Dict[str, Any]] = None, **extra) -> None:
        payload = self.registry.snapshot(code).to_dict()
        if player is not None:
            payload['player'] = player
        payload.update(extra)
        self.to_room(code, event, payload)

    def game_events(self, code: str, outbound: Iterable[Outbound]) -> None:
        for item in outbound:
            payload = dict(item.event.to_dict(), code=code)
            if item.recipient is None:
                self.to_room(code, 'game-event', payload)
                continue
            sid = self.registry.connection_of(code, item.recipient)
            if sid is not None:
                self.to_connection(sid, 'game-event', payload)

    def error(self, connection_id: str, exc: GameError) -> None:
        self.to_connection(connection_id, exc.event, exc.to_dict())
