"""Render commands sent from the quiz state machine to the browser.

The browser owns all markup, styling and animation; it only receives
named commands with JSON payloads.
"""

from typing import Any, Dict, Iterable, Optional, Tuple


class Presenter:
    """Builds render payloads; subclasses decide where they go."""

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError

    def show_screen(self, screen, **extra) -> None:
        payload = {'screen': getattr(screen, 'value', screen)}
        payload.update(extra)
        self.emit('show_screen', payload)

    def validation_error(self, field: str, message: str) -> None:
        self.emit('validation_error', {'field': field, 'message': message})

    def level_selected(self, level) -> None:
        payload = level.to_dict()
        payload['ready_enabled'] = True
        self.emit('level_selected', payload)

    def show_tables(self, tables) -> None:
        self.emit('show_tables', {'tables': tables})

    def update_preview_timer(self, remaining: int) -> None:
        self.emit('preview_timer', {'remaining': remaining})

    def show_question(self, question, index: int, total: int, score: int) -> None:
        self.emit('show_question', {
            'question': question.to_dict(),
            'number': index + 1,
            'total': total,
            'progress': round((index + 1) / total * 100, 2) if total else 0,
            'score': score,
        })

    def update_timer(self, remaining: int) -> None:
        self.emit('question_timer', {'remaining': remaining})

    def answer_feedback(self, correct: bool, selected, correct_answer: int,
                        points: int, score: int, timed_out: bool = False) -> None:
        self.emit('answer_feedback', {
            'correct': correct,
            'selected': selected,
            'correct_answer': correct_answer,
            'timed_out': timed_out,
            'points': points,
            'score': score,
        })

    def show_effect(self, name: str) -> None:
        self.emit('effect', {'name': name})

    def show_results(self, summary) -> None:
        self.emit('show_results', summary.to_dict())

    def render_leaderboard(self, difficulty, entries: Iterable,
                           highlight: Optional[Tuple[str, int]] = None) -> None:
        rows = []
        for rank, entry in enumerate(entries, start=1):
            row = entry.to_dict()
            row['rank'] = rank
            row['is_current_player'] = highlight is not None and (entry.name, entry.score) == highlight
            rows.append(row)
        self.emit('leaderboard', {'difficulty': getattr(difficulty, 'value', difficulty), 'entries': rows})


class SocketPresenter(Presenter):
    """Sends render commands to a single Socket.IO client."""

    def __init__(self, socketio, sid: str, namespace: str = '/ws'):
        self.socketio = socketio
        self.sid = sid
        self.namespace = namespace

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        self.socketio.emit(event, payload, to=self.sid, namespace=self.namespace)
