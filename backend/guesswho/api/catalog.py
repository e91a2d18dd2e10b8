from flask import Blueprint, jsonify

from guesswho.models import Character, QUESTIONS

catalog = Blueprint('catalog', __name__)


@catalog.route('/characters', methods=['GET'])
def list_characters():
    """
    Returns the playable characters in catalog order.
    """
    characters = Character.query.order_by(Character.id).all()
    return jsonify([c.to_dict() for c in characters])


@catalog.route('/questions', methods=['GET'])
def list_questions():
    return jsonify(QUESTIONS)
