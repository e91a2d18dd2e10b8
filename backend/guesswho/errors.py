"""Error kinds reported back to the connection that caused them.

None of these are fatal: a rejected request leaves every room untouched.
"""


class GameError(Exception):
    event = 'game-error'
    kind = 'GameError'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'kind': self.kind, 'message': self.message}


class RoomError(GameError):
    event = 'room-error'
    kind = 'RoomError'


class RoomNotFound(RoomError):
    kind = 'RoomNotFound'

    def __init__(self, code: str):
        super().__init__('Room does not exist')
        self.code = code


class RoomFull(RoomError):
    kind = 'RoomFull'

    def __init__(self, code: str):
        super().__init__('Room is full')
        self.code = code


class AlreadyInRoom(RoomError):
    kind = 'AlreadyInRoom'

    def __init__(self, code: str):
        super().__init__(f'Already in room {code}')
        self.code = code


class InvalidMove(GameError):
    kind = 'InvalidMove'


class MalformedMessage(InvalidMove):
    """Raised by the payload decoders at the transport boundary."""
