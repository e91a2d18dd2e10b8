from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Guess Who game server!'})


@main.route('/health')
def health():
    server = current_app.extensions['guesswho']
    return jsonify({'status': 'ok' if server.running else 'stopped', 'rooms': len(server.registry)})
