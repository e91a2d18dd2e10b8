"""Wire protocol: typed game events and the decoders for inbound payloads.

Payloads are decoded exactly once, in the Socket.IO handlers. Everything
past that point works on the dataclasses below. Game events travel on the
``game-event`` channel as ``{"type": <tag>, ...}`` dictionaries.
"""

import time
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional, Union

from guesswho.errors import MalformedMessage
from .rooms import normalize_code

FEATURE_VALUE_TYPES = (str, bool, int, float)


@dataclass(frozen=True)
class GameInit:
    type: ClassVar[str] = 'gameInit'
    code: str
    player: str
    character_id: int
    first_turn: str

    def to_dict(self):
        return {
            'type': self.type,
            'code': self.code,
            'player': self.player,
            'myCharacterId': self.character_id,
            'firstTurn': self.first_turn,
        }


@dataclass(frozen=True)
class Question:
    type: ClassVar[str] = 'question'
    feature: str
    value: Any
    text: Optional[str] = None
    sender: Optional[str] = None

    def to_dict(self):
        return {'type': self.type, 'sender': self.sender, 'feature': self.feature,
                'value': self.value, 'text': self.text}


@dataclass(frozen=True)
class Answer:
    type: ClassVar[str] = 'answer'
    answer: bool
    sender: Optional[str] = None
    turn_holder: Optional[str] = None

    def to_dict(self):
        return {'type': self.type, 'sender': self.sender, 'answer': self.answer,
                'turnHolder': self.turn_holder}


@dataclass(frozen=True)
class Flip:
    type: ClassVar[str] = 'flipCharacter'
    character_id: int
    sender: Optional[str] = None

    def to_dict(self):
        return {'type': self.type, 'sender': self.sender, 'characterId': self.character_id}


@dataclass(frozen=True)
class Guess:
    type: ClassVar[str] = 'guess'
    character_id: int
    sender: Optional[str] = None
    character_name: Optional[str] = None

    def to_dict(self):
        return {'type': self.type, 'sender': self.sender, 'characterId': self.character_id,
                'characterName': self.character_name}


@dataclass(frozen=True)
class GuessResult:
    type: ClassVar[str] = 'guessResult'
    correct: bool
    guesser: str
    character_id: int
    winner: Optional[str] = None
    turn_holder: Optional[str] = None
    character_name: Optional[str] = None

    def to_dict(self):
        data = {'type': self.type, 'correct': self.correct, 'guesser': self.guesser,
                'characterId': self.character_id, 'characterName': self.character_name}
        if self.correct:
            data['winner'] = self.winner
        else:
            data['turnHolder'] = self.turn_holder
        return data


@dataclass(frozen=True)
class GameEnded:
    type: ClassVar[str] = 'gameEnded'
    reason: str
    winner: Optional[str] = None

    def to_dict(self):
        return {'type': self.type, 'reason': self.reason, 'winner': self.winner}


GameEvent = Union[GameInit, Question, Answer, Flip, Guess, GuessResult, GameEnded]
ClientMove = Union[Question, Answer, Flip, Guess]


@dataclass(frozen=True)
class Outbound:
    """A game event plus, for private events, the one player allowed to see it."""
    event: GameEvent
    recipient: Optional[str] = None


@dataclass(frozen=True)
class PlayerProfile:
    display_name: str
    avatar_ref: Optional[str] = None


@dataclass(frozen=True)
class JoinRequest:
    code: str
    profile: PlayerProfile


@dataclass(frozen=True)
class ChatMessage:
    text: str
    sender: str
    timestamp: int
    code: Optional[str] = None

    def to_dict(self):
        data = {'text': self.text, 'sender': self.sender, 'timestamp': self.timestamp}
        if self.code:
            data['code'] = self.code
        return data


# ---- decoders ----

def _require_mapping(data) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise MalformedMessage('Payload must be an object')
    return data


def _require_text(data: Dict[str, Any], key: str, label: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise MalformedMessage(f'{label} is required')
    return value.strip()


def _require_character_id(data: Dict[str, Any]) -> int:
    value = data.get('characterId')
    # bool is an int subclass and is never a valid id
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedMessage('characterId must be an integer')
    return value


def decode_profile(data) -> PlayerProfile:
    data = _require_mapping(data)
    avatar = data.get('avatarRef')
    if avatar is not None and not isinstance(avatar, str):
        raise MalformedMessage('avatarRef must be a string')
    return PlayerProfile(display_name=_require_text(data, 'displayName', 'displayName'), avatar_ref=avatar)


def decode_join(data) -> JoinRequest:
    data = _require_mapping(data)
    code = normalize_code(_require_text(data, 'code', 'code'))
    return JoinRequest(code=code, profile=decode_profile(data))


def decode_code(data) -> str:
    data = _require_mapping(data)
    return normalize_code(_require_text(data, 'code', 'code'))


def decode_chat(data) -> ChatMessage:
    data = _require_mapping(data)
    text = data.get('text')
    if not isinstance(text, str) or not text:
        raise MalformedMessage('text is required')
    sender = data.get('sender')
    timestamp = data.get('timestamp')
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        timestamp = int(time.time() * 1000)
    code = data.get('code')
    return ChatMessage(
        text=text,
        sender=sender if isinstance(sender, str) else 'anonymous',
        timestamp=int(timestamp),
        code=normalize_code(code) if code else None,
    )


def decode_game_event(data) -> ClientMove:
    """Decode a client game move. Server-originated kinds are refused."""
    data = _require_mapping(data)
    kind = data.get('type')
    if kind == Question.type:
        feature = _require_text(data, 'feature', 'feature')
        value = data.get('value')
        if not isinstance(value, FEATURE_VALUE_TYPES):
            raise MalformedMessage('value must be a string, number or boolean')
        text = data.get('text')
        return Question(feature=feature, value=value, text=text if isinstance(text, str) else None)
    if kind == Answer.type:
        answer = data.get('answer')
        if not isinstance(answer, bool):
            raise MalformedMessage('answer must be a boolean')
        return Answer(answer=answer)
    if kind == Flip.type:
        return Flip(character_id=_require_character_id(data))
    if kind == Guess.type:
        return Guess(character_id=_require_character_id(data))
    if kind in (GameInit.type, GuessResult.type, GameEnded.type):
        raise MalformedMessage(f'{kind} is sent by the server only')
    raise MalformedMessage(f'Unknown game event type: {kind!r}')
