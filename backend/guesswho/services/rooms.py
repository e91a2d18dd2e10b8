"""In-memory room registry.

Owns every Room in the process, keyed by a short code, and the index from
connection id to the player that connection speaks for. Nothing here is
thread safe on its own; the GameServer serializes all calls.
"""

import random
import string
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from guesswho.errors import AlreadyInRoom, RoomFull, RoomNotFound
from .session import GameSession, SessionStatus

MAX_PLAYERS = 2
CODE_ALPHABET = string.ascii_uppercase + string.digits


@dataclass
class Player:
    connection_id: str
    display_name: str
    avatar_ref: Optional[str] = None
    # Logical id used for turns and roster membership; never the channel id.
    player_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self):
        return {
            'id': self.player_id,
            'displayName': self.display_name,
            'avatarRef': self.avatar_ref,
        }


@dataclass
class Room:
    code: str
    players: List[Player]
    created_at: float
    last_activity: float
    session: Optional[GameSession] = None

    @property
    def status(self) -> SessionStatus:
        return self.session.status if self.session else SessionStatus.LOBBY

    @property
    def is_full(self) -> bool:
        return len(self.players) >= MAX_PLAYERS

    def find(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None


@dataclass(frozen=True)
class RoomSnapshot:
    code: str
    players: Tuple[dict, ...]
    status: str

    def to_dict(self):
        return {'code': self.code, 'players': list(self.players), 'status': self.status}


@dataclass(frozen=True)
class RoomClosed:
    code: str


@dataclass(frozen=True)
class Departure:
    """Result of removing a connection from its room."""
    player: Player
    outcome: object  # RoomSnapshot, or RoomClosed when the roster emptied


def normalize_code(code) -> str:
    return str(code or '').strip().upper()


def generate_room_code(length: int = 6, rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return ''.join(rng.choices(CODE_ALPHABET, k=length))


class RoomRegistry:
    def __init__(self, code_length: int = 6, rng: Optional[random.Random] = None,
                 clock: Callable[[], float] = time.time):
        self.code_length = code_length
        self._rng = rng or random.Random()
        self._clock = clock
        self._rooms: Dict[str, Room] = {}
        self._connections: Dict[str, Tuple[str, str]] = {}  # sid -> (code, player_id)

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, code) -> bool:
        return normalize_code(code) in self._rooms

    def codes(self) -> List[str]:
        return list(self._rooms)

    # ---- roster mutations ----

    def create_room(self, player: Player) -> str:
        """Register a new room holding only ``player`` and return its code."""
        self._ensure_unassigned(player.connection_id)
        code = self._fresh_code()
        now = self._clock()
        self._rooms[code] = Room(code=code, players=[player], created_at=now, last_activity=now)
        self._connections[player.connection_id] = (code, player.player_id)
        return code

    def join_room(self, code, player: Player) -> RoomSnapshot:
        self._ensure_unassigned(player.connection_id)
        code = normalize_code(code)
        room = self._rooms.get(code)
        if room is None:
            raise RoomNotFound(code)
        if room.is_full:
            raise RoomFull(code)
        room.players.append(player)
        room.last_activity = self._clock()
        self._connections[player.connection_id] = (code, player.player_id)
        return self.snapshot(code)

    def leave_room(self, connection_id: str) -> Optional[Departure]:
        """Remove the connection's player; destroy the room once empty.

        Returns None when the connection is not in any room. Any session on
        the room is discarded because its roster no longer matches.
        """
        located = self._connections.pop(connection_id, None)
        if located is None:
            return None
        code, player_id = located
        room = self._rooms[code]
        player = room.find(player_id)
        room.players = [p for p in room.players if p.player_id != player_id]
        room.session = None
        if not room.players:
            del self._rooms[code]
            return Departure(player=player, outcome=RoomClosed(code))
        room.last_activity = self._clock()
        return Departure(player=player, outcome=self.snapshot(code))

    def close_room(self, code) -> List[str]:
        """Drop a room outright; returns the connection ids it held."""
        room = self._rooms.pop(normalize_code(code), None)
        if room is None:
            return []
        sids = [p.connection_id for p in room.players]
        for sid in sids:
            self._connections.pop(sid, None)
        return sids

    def idle_rooms(self, max_idle: float, now: Optional[float] = None) -> List[str]:
        now = self._clock() if now is None else now
        return [code for code, room in self._rooms.items() if now - room.last_activity > max_idle]

    def touch(self, code) -> None:
        room = self._rooms.get(normalize_code(code))
        if room is not None:
            room.last_activity = self._clock()

    # ---- lookups ----

    def get(self, code) -> Room:
        room = self._rooms.get(normalize_code(code))
        if room is None:
            raise RoomNotFound(normalize_code(code))
        return room

    def locate(self, connection_id: str) -> Optional[Tuple[Room, Player]]:
        located = self._connections.get(connection_id)
        if located is None:
            return None
        code, player_id = located
        room = self._rooms[code]
        return room, room.find(player_id)

    def snapshot(self, code) -> RoomSnapshot:
        room = self.get(code)
        return RoomSnapshot(
            code=room.code,
            players=tuple(p.to_dict() for p in room.players),
            status=room.status.value,
        )

    def connections(self, code) -> List[str]:
        room = self._rooms.get(normalize_code(code))
        return [p.connection_id for p in room.players] if room else []

    def connection_of(self, code, player_id: str) -> Optional[str]:
        room = self._rooms.get(normalize_code(code))
        player = room.find(player_id) if room else None
        return player.connection_id if player else None

    # ---- helpers ----

    def _ensure_unassigned(self, connection_id: str) -> None:
        located = self._connections.get(connection_id)
        if located is not None:
            raise AlreadyInRoom(located[0])

    def _fresh_code(self) -> str:
        while True:
            code = generate_room_code(self.code_length, self._rng)
            if code not in self._rooms:
                return code
