from flask import Blueprint, jsonify, current_app
from timestables.services.quiz.generator import multiplication_tables
from timestables.services.quiz.levels import Difficulty, level_settings


quiz = Blueprint('quiz', __name__)


@quiz.route('/levels', methods=['GET'])
def get_levels():
    cfg = current_app.config
    return jsonify({
        'total_questions': int(cfg.get('TOTAL_QUESTIONS', 10)),
        'preview_seconds': int(cfg.get('PREVIEW_DURATION_SEC', 10)),
        'levels': [level_settings(level, cfg).to_dict() for level in Difficulty],
    })


@quiz.route('/tables/<string:difficulty>', methods=['GET'])
def get_tables(difficulty):
    try:
        level = level_settings(difficulty, current_app.config)
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    return jsonify({
        'difficulty': level.difficulty.value,
        'tables': multiplication_tables(level.max_factor),
    })
