"""GameServer: the single coordinating object behind the Socket.IO handlers.

Every entry point takes the process lock, so one request is validated,
applied and broadcast before the next one starts. State lives in memory in
this one process; running several server processes would need an external
shared state and broadcast layer, which this service does not provide.
"""

import logging
import threading
import time
from functools import wraps
from typing import Any, Callable, Dict, Optional

from guesswho.errors import GameError, InvalidMove
from .broadcast import BroadcastDispatcher
from .protocol import ChatMessage, ClientMove, JoinRequest, PlayerProfile
from .rooms import Player, RoomClosed, RoomRegistry
from .session import CharacterCatalog
from .turns import DISCONNECT_POLICIES, TurnProtocolHandler


def _serialized(method):
    """Run under the server lock and report GameErrors to the caller's connection."""
    @wraps(method)
    def wrapper(self, connection_id, *args, **kwargs):
        with self._lock:
            try:
                return method(self, connection_id, *args, **kwargs)
            except GameError as exc:
                self.reject(connection_id, exc)
                return None
    return wrapper


class GameServer:
    def __init__(self, emit: Callable[..., Any], catalog_loader: Callable[[], CharacterCatalog],
                 registry: Optional[RoomRegistry] = None, handler: Optional[TurnProtocolHandler] = None,
                 logger: Optional[logging.Logger] = None, disconnect_policy: str = 'forfeit',
                 idle_timeout: float = 0, sweep_interval: float = 30,
                 start_background_task: Optional[Callable[..., Any]] = None,
                 sleep: Callable[[float], Any] = time.sleep):
        if disconnect_policy not in DISCONNECT_POLICIES:
            raise ValueError(f'unknown disconnect policy: {disconnect_policy}')
        self.registry = registry or RoomRegistry()
        self.handler = handler or TurnProtocolHandler(self.registry, catalog_loader)
        self.dispatcher = BroadcastDispatcher(self.registry, emit)
        self.logger = logger or logging.getLogger(__name__)
        self.disconnect_policy = disconnect_policy
        self.idle_timeout = idle_timeout
        self.sweep_interval = sweep_interval
        self._start_background_task = start_background_task
        self._sleep = sleep
        self._lock = threading.Lock()
        self.running = False

    # ---- lifecycle ----

    def start(self) -> None:
        if self.running:
            return
        self.running = True
        self.logger.info(f"[server-start] policy={self.disconnect_policy} idle_timeout={self.idle_timeout}s")
        if self.idle_timeout and self.idle_timeout > 0 and self._start_background_task:
            self._start_background_task(self._sweep_loop)

    def stop(self) -> None:
        self.running = False
        self.logger.info("[server-stop]")

    def _sweep_loop(self) -> None:
        while self.running:
            self._sleep(self.sweep_interval)
            if not self.running:
                break
            self.sweep()

    def sweep(self, now: Optional[float] = None) -> int:
        """Close rooms that have been idle longer than the configured timeout."""
        if not self.idle_timeout or self.idle_timeout <= 0:
            return 0
        with self._lock:
            expired = self.registry.idle_rooms(self.idle_timeout, now)
            for code in expired:
                sids = self.registry.close_room(code)
                self.dispatcher.to_connections(sids, 'room-closed', {'code': code, 'reason': 'expired'})
                self.logger.info(f"[room-expire] code={code} members={len(sids)}")
            return len(expired)

    def reject(self, connection_id: str, exc: GameError) -> None:
        self.logger.info(f"[reject] sid={connection_id} kind={exc.kind} reason={exc.message}")
        self.dispatcher.error(connection_id, exc)

    # ---- connection lifecycle ----

    def connect(self, connection_id: str) -> None:
        self.logger.debug(f"[connect] sid={connection_id}")
        self.dispatcher.to_connection(connection_id, 'connected', {'message': 'Connected to /ws'})

    @_serialized
    def disconnect(self, connection_id: str) -> None:
        self.logger.info(f"[disconnect] sid={connection_id}")
        self._depart(connection_id)

    @_serialized
    def leave_room(self, connection_id: str) -> None:
        if not self._depart(connection_id):
            raise InvalidMove('Connection is not in a room')

    def _depart(self, connection_id: str) -> bool:
        located = self.registry.locate(connection_id)
        if located is None:
            return False
        room, _player = located
        code = room.code
        ended = self.handler.handle_departure(connection_id, self.disconnect_policy)
        departure = self.registry.leave_room(connection_id)
        self.dispatcher.to_connection(connection_id, 'left', {'code': code})
        if isinstance(departure.outcome, RoomClosed):
            self.logger.info(f"[room-close] code={code}")
            return True
        if ended:
            self.dispatcher.game_events(code, ended)
            self.logger.info(
                f"[game-end] code={code} reason={self.disconnect_policy} winner={ended[0].event.winner}"
            )
        self.dispatcher.to_room(code, 'player-left', dict(departure.outcome.to_dict(),
                                                          playerId=departure.player.player_id))
        self.logger.info(f"[room-leave] code={code} player={departure.player.player_id}")
        return True

    # ---- rooms ----

    @_serialized
    def create_room(self, connection_id: str, profile: PlayerProfile) -> Optional[str]:
        player = Player(connection_id, profile.display_name, profile.avatar_ref)
        code = self.registry.create_room(player)
        self.dispatcher.roster(code, 'room-created', player=player.to_dict())
        self.logger.info(f"[room-create] code={code} player={player.player_id} rooms={len(self.registry)}")
        return code

    @_serialized
    def join_room(self, connection_id: str, request: JoinRequest) -> Optional[Dict[str, Any]]:
        player = Player(connection_id, request.profile.display_name, request.profile.avatar_ref)
        snapshot = self.registry.join_room(request.code, player)
        self.dispatcher.roster(snapshot.code, 'player-joined', player=player.to_dict())
        self.logger.info(f"[room-join] code={snapshot.code} player={player.player_id}")
        return snapshot.to_dict()

    @_serialized
    def start_game(self, connection_id: str, code: str) -> None:
        room, private_inits = self.handler.start_game(connection_id, code)
        self.registry.touch(room.code)
        session = room.session
        self.dispatcher.roster(room.code, 'game-started', turnHolder=session.turn_holder)
        self.dispatcher.game_events(room.code, private_inits)
        self.logger.info(f"[game-start] code={room.code} first_turn={session.turn_holder}")
        self.logger.debug(f"[game-start] code={room.code} secrets={session.secret_assignment}")

    @_serialized
    def game_event(self, connection_id: str, move: ClientMove) -> None:
        room, events = self.handler.handle(connection_id, move)
        self.registry.touch(room.code)
        self.dispatcher.game_events(room.code, events)
        session = room.session
        self.logger.info(
            f"[game-event] code={room.code} type={move.type} status={session.status.value} "
            f"turn={session.turn_holder}"
        )

    @_serialized
    def request_rematch(self, connection_id: str) -> None:
        room, votes, ready = self.handler.request_rematch(connection_id)
        self.dispatcher.to_room(room.code, 'rematch-vote', {'code': room.code, 'votes': votes})
        if ready:
            self.registry.touch(room.code)
            self.dispatcher.roster(room.code, 'room-reset')
            self.logger.info(f"[rematch] code={room.code}")

    @_serialized
    def chat(self, connection_id: str, message: ChatMessage) -> None:
        if message.code is None:
            self.dispatcher.to_all('chat', message.to_dict())
            return
        room, player = self.handler.member(connection_id)
        if room.code != message.code:
            raise InvalidMove('You are not a player in this room')
        self.registry.touch(room.code)
        relayed = ChatMessage(text=message.text, sender=player.display_name,
                              timestamp=message.timestamp, code=room.code)
        self.dispatcher.to_room(room.code, 'chat', relayed.to_dict())

    # ---- read-only views ----

    def room_view(self, code: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            if code not in self.registry:
                return None
            room = self.registry.get(code)
            view = self.registry.snapshot(code).to_dict()
            if room.session is not None:
                view['session'] = room.session.to_dict()
            return view
