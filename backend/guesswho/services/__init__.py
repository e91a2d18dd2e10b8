"""Room coordination and game protocol services.

Nothing in this package touches Flask or Socket.IO directly: the handlers in
``guesswho.socketio_events`` decode payloads and pass typed values in, and the
GameServer is handed an ``emit`` callable for delivery.
"""
