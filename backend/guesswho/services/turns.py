"""Validates client game moves and applies them to the room's session.

Each method resolves the sender from its connection id, checks the move's
preconditions and returns the events the room should see. A rejected move
raises InvalidMove and leaves the session untouched.
"""

import random
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from guesswho.errors import InvalidMove
from .protocol import (Answer, ClientMove, Flip, GameEnded, GameInit, Guess,
                       GuessResult, Outbound, Question)
from .rooms import Player, Room, RoomRegistry, normalize_code
from .session import CharacterCatalog, GameSession, SessionStatus

DISCONNECT_POLICIES = ('forfeit', 'abort')


class TurnProtocolHandler:
    def __init__(self, registry: RoomRegistry, catalog_loader: Callable[[], CharacterCatalog],
                 rng: Optional[random.Random] = None):
        self.registry = registry
        self.catalog_loader = catalog_loader
        self._rng = rng or random.Random()

    def member(self, connection_id: str) -> Tuple[Room, Player]:
        located = self.registry.locate(connection_id)
        if located is None:
            # Also covers messages that arrive after the connection left.
            raise InvalidMove('Connection is not in a room')
        return located

    # ---- Lobby -> Active ----

    def start_game(self, connection_id: str, code: str) -> Tuple[Room, List[Outbound]]:
        room, player = self.member(connection_id)
        if room.code != normalize_code(code):
            raise InvalidMove('You are not a player in this room')
        if len(room.players) != 2:
            raise InvalidMove('Two players are required to start')
        if room.status != SessionStatus.LOBBY:
            raise InvalidMove('Game has already started or is finished')
        session = GameSession(room.code, tuple(p.player_id for p in room.players),
                              self.catalog_loader(), rng=self._rng)
        session.start()
        room.session = session
        return room, [
            Outbound(GameInit(code=room.code, player=pid, character_id=session.secret_for(pid),
                              first_turn=session.turn_holder), recipient=pid)
            for pid in session.players
        ]

    # ---- moves ----

    def handle(self, connection_id: str, move: ClientMove) -> Tuple[Room, List[Outbound]]:
        room, player = self.member(connection_id)
        session = room.session
        if session is None or not session.is_active:
            raise InvalidMove('No game in progress')
        sender = player.player_id
        move = replace(move, sender=sender)
        if isinstance(move, Question):
            events = self._question(session, sender, move)
        elif isinstance(move, Answer):
            events = self._answer(session, sender, move)
        elif isinstance(move, Flip):
            events = self._flip(session, sender, move)
        elif isinstance(move, Guess):
            events = self._guess(session, sender, move)
        else:
            raise InvalidMove(f'Unsupported move: {type(move).__name__}')
        return room, [Outbound(e) for e in events]

    def _question(self, session: GameSession, sender: str, move: Question):
        if sender != session.turn_holder:
            raise InvalidMove('It is not your turn')
        if move.feature not in session.catalog.feature_names:
            raise InvalidMove(f'Unknown feature: {move.feature}')
        session.open_question(sender, {'feature': move.feature, 'value': move.value})
        return [move]

    def _answer(self, session: GameSession, sender: str, move: Answer):
        if sender == session.turn_holder:
            raise InvalidMove('Only the opponent can answer')
        session.resolve_answer(sender)
        return [replace(move, turn_holder=session.turn_holder)]

    def _flip(self, session: GameSession, sender: str, move: Flip):
        if move.character_id not in session.catalog:
            raise InvalidMove(f'Unknown character: {move.character_id}')
        session.eliminate(sender, move.character_id)
        return [move]

    def _guess(self, session: GameSession, sender: str, move: Guess):
        if sender != session.turn_holder:
            raise InvalidMove('It is not your turn')
        if move.character_id not in session.catalog:
            raise InvalidMove(f'Unknown character: {move.character_id}')
        move = replace(move, character_name=session.catalog.get(move.character_id).get('name'))
        # Evaluated against the opponent's secret only, even when the guesser
        # names their own character.
        correct = session.resolve_guess(sender, move.character_id)
        result = GuessResult(
            correct=correct,
            guesser=sender,
            character_id=move.character_id,
            winner=session.winner,
            turn_holder=None if correct else session.turn_holder,
            character_name=move.character_name,
        )
        return [move, result]

    # ---- departures and rematches ----

    def handle_departure(self, connection_id: str, policy: str) -> List[Outbound]:
        """End an active session when one of its players leaves."""
        if policy not in DISCONNECT_POLICIES:
            raise ValueError(f'unknown disconnect policy: {policy}')
        located = self.registry.locate(connection_id)
        if located is None:
            return []
        room, player = located
        if room.session is None or not room.session.is_active:
            return []
        winner = room.session.end_on_departure(player.player_id, policy)
        return [Outbound(GameEnded(reason=policy, winner=winner))]

    def request_rematch(self, connection_id: str) -> Tuple[Room, List[str], bool]:
        """Record a rematch vote; on the last vote the room returns to Lobby."""
        room, player = self.member(connection_id)
        session = room.session
        if session is None:
            raise InvalidMove('Rematch is only available after the game finished')
        ready = session.vote_rematch(player.player_id)
        if ready:
            room.session = None
        return room, sorted(session.rematch_votes), ready
