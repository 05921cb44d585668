from flask import Blueprint, jsonify, request, current_app
from timestables.services.leaderboard.stores import DEFAULT_LIMIT, LeaderboardError
from timestables.services.quiz.levels import Difficulty


leaderboard = Blueprint('leaderboard', __name__)


def _store():
    return current_app.extensions['leaderboard_store']


@leaderboard.route('/<string:difficulty>', methods=['GET'])
def get_leaderboard(difficulty):
    try:
        level = Difficulty.parse(difficulty)
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    try:
        limit = int(request.args.get('limit', DEFAULT_LIMIT))
    except ValueError:
        return jsonify({'error': 'limit must be an integer'}), 400
    if limit < 1:
        return jsonify({'error': 'limit must be positive'}), 400

    try:
        entries = _store().fetch_top(level, limit)
    except LeaderboardError as exc:
        current_app.logger.warning(f"[leaderboard-api] fetch failed difficulty={level.value}: {exc}")
        return jsonify({'error': 'Leaderboard unavailable'}), 503
    return jsonify({
        'difficulty': level.value,
        'entries': [dict(e.to_dict(), rank=i) for i, e in enumerate(entries, start=1)],
    })


@leaderboard.route('', methods=['POST'])
def save_score():
    data = request.get_json(silent=True) or {}
    name = data.get('name')
    score = data.get('score')
    difficulty = data.get('difficulty')
    if not all([name, difficulty]) or score is None:
        return jsonify({'error': 'Name, score and difficulty are required'}), 400

    try:
        entry = _store().save_score(name, score, difficulty)
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    except LeaderboardError as exc:
        current_app.logger.warning(f"[leaderboard-api] save failed: {exc}")
        return jsonify({'error': 'Leaderboard unavailable'}), 503
    return jsonify(entry.to_dict()), 201
