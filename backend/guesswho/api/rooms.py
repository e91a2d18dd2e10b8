from flask import Blueprint, current_app, jsonify

rooms = Blueprint('rooms', __name__)


@rooms.route('/<string:code>', methods=['GET'])
def get_room(code):
    """
    Returns the current roster and public game state of a room.
    Secret characters are never part of this view.
    """
    view = current_app.extensions['guesswho'].room_view(code)
    if view is None:
        return jsonify({'error': 'Room not found'}), 404
    return jsonify(view)
