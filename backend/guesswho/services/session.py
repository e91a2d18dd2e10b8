"""Per-room game session: Lobby -> Active -> Finished.

The session holds each player's secret character and the turn holder. It
knows nothing about connections or the transport; callers identify players
by their logical player id.
"""

import random
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from guesswho.errors import InvalidMove


class SessionStatus(str, Enum):
    LOBBY = 'lobby'
    ACTIVE = 'active'
    FINISHED = 'finished'


class CharacterCatalog:
    """Read-only, ordered view of the playable characters."""

    def __init__(self, characters: Iterable[Dict[str, Any]]):
        self._characters: List[Dict[str, Any]] = list(characters)
        self._by_id = {c['id']: c for c in self._characters}

    def __len__(self) -> int:
        return len(self._characters)

    def __contains__(self, character_id) -> bool:
        return character_id in self._by_id

    @property
    def ids(self) -> List[int]:
        return [c['id'] for c in self._characters]

    @property
    def feature_names(self) -> Set[str]:
        names: Set[str] = set()
        for c in self._characters:
            names.update((c.get('features') or {}).keys())
        return names

    def get(self, character_id) -> Optional[Dict[str, Any]]:
        return self._by_id.get(character_id)

    def draw(self, rng: random.Random) -> int:
        return rng.choice(self.ids)


class GameSession:
    def __init__(self, room_code: str, player_ids: Tuple[str, str], catalog: CharacterCatalog,
                 rng: Optional[random.Random] = None):
        if len(player_ids) != 2 or player_ids[0] == player_ids[1]:
            raise ValueError('a session needs exactly two distinct players')
        self.room_code = room_code
        self.players: Tuple[str, str] = tuple(player_ids)
        self.catalog = catalog
        self._rng = rng or random.Random()
        self.status = SessionStatus.LOBBY
        self.secret_assignment: Dict[str, int] = {}
        self.turn_holder: Optional[str] = None
        self.eliminated_by_player: Dict[str, Set[int]] = {pid: set() for pid in self.players}
        self.pending_question: Optional[Dict[str, Any]] = None
        self.winner: Optional[str] = None
        self.end_reason: Optional[str] = None
        self.rematch_votes: Set[str] = set()

    # ---- transitions ----

    def start(self) -> None:
        """Draw both secrets independently and pick the first turn holder."""
        if self.status != SessionStatus.LOBBY:
            raise InvalidMove('Game has already started or is finished')
        if not len(self.catalog):
            raise InvalidMove('Character catalog is empty')
        for pid in self.players:
            self.secret_assignment[pid] = self.catalog.draw(self._rng)
        self.turn_holder = self._rng.choice(self.players)
        self.status = SessionStatus.ACTIVE

    def open_question(self, asker: str, question: Dict[str, Any]) -> None:
        self._require_active()
        self.pending_question = dict(question, asker=asker)

    def resolve_answer(self, answerer: str) -> None:
        """The answerer becomes the next turn holder."""
        self._require_active()
        self.pending_question = None
        self.turn_holder = answerer

    def eliminate(self, player_id: str, character_id: int) -> bool:
        self._require_active()
        flipped = self.eliminated_by_player[player_id]
        if character_id in flipped:
            return False
        flipped.add(character_id)
        return True

    def resolve_guess(self, guesser: str, character_id: int) -> bool:
        """Compare against the opponent's secret; finish or pass the turn."""
        self._require_active()
        opponent = self.opponent_of(guesser)
        self.pending_question = None
        if self.secret_assignment[opponent] == character_id:
            self.status = SessionStatus.FINISHED
            self.winner = guesser
            self.end_reason = 'guessed'
            return True
        self.turn_holder = opponent
        return False

    def end_on_departure(self, leaving: str, policy: str) -> Optional[str]:
        """Terminate an active session whose player left; returns the winner."""
        self._require_active()
        self.status = SessionStatus.FINISHED
        self.pending_question = None
        if policy == 'forfeit':
            self.winner = self.opponent_of(leaving)
        self.end_reason = policy
        return self.winner

    def vote_rematch(self, player_id: str) -> bool:
        """Returns True once every player has voted."""
        if self.status != SessionStatus.FINISHED:
            raise InvalidMove('Rematch is only available after the game finished')
        self.rematch_votes.add(player_id)
        return self.rematch_votes.issuperset(self.players)

    # ---- queries ----

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def opponent_of(self, player_id: str) -> str:
        if player_id not in self.players:
            raise InvalidMove('Player is not part of this game')
        return self.players[1] if self.players[0] == player_id else self.players[0]

    def secret_for(self, player_id: str) -> Optional[int]:
        return self.secret_assignment.get(player_id)

    def to_dict(self):
        """Public view, without secrets."""
        return {
            'code': self.room_code,
            'status': self.status.value,
            'turnHolder': self.turn_holder,
            'winner': self.winner,
            'endReason': self.end_reason,
            'awaitingAnswer': self.pending_question is not None,
            'flipped': {pid: sorted(ids) for pid, ids in self.eliminated_by_player.items()},
        }

    def _require_active(self) -> None:
        if self.status != SessionStatus.ACTIVE:
            raise InvalidMove('No game in progress')
