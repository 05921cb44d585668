"""Turn-based state machine for one player's quiz.

Screens advance start -> level_select -> preview -> playing -> results,
then back to level_select (play again) or end. Inputs arrive as discrete
events from the socket layer; countdowns and delayed transitions are
timers from the injected scheduler. Every event and timer callback runs
under one lock, so a single handler mutates the session at a time.
"""

import logging
import random
import threading
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from timestables.models import NAME_MAX_LENGTH
from timestables.services.leaderboard.stores import LeaderboardError
from .generator import generate_questions, multiplication_tables
from .levels import Difficulty, level_settings
from .scoring import points_for_answer, summarize_results
from .session import GameSession, Screen
from .timers import TimerSlots

PREVIEW_TIMER = 'preview'
QUESTION_TIMER = 'question'
TRANSITION_TIMER = 'transition'
MUSIC_TIMER = 'music'

TICK_INTERVAL_SEC = 1


@dataclass(frozen=True)
class QuizSettings:
    total_questions: int = 10
    preview_seconds: int = 10
    correct_delay: float = 1.5
    wrong_delay: float = 2.0
    music_delay: float = 1.0
    tick_warning: int = 3
    decoy_max_attempts: int = 50
    leaderboard_size: int = 10
    levels: Optional[Mapping[str, Any]] = None

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> 'QuizSettings':
        return cls(
            total_questions=int(config.get('TOTAL_QUESTIONS', 10)),
            preview_seconds=int(config.get('PREVIEW_DURATION_SEC', 10)),
            correct_delay=float(config.get('CORRECT_ADVANCE_DELAY_SEC', 1.5)),
            wrong_delay=float(config.get('WRONG_ADVANCE_DELAY_SEC', 2.0)),
            music_delay=float(config.get('MUSIC_START_DELAY_SEC', 1.0)),
            tick_warning=int(config.get('TICK_WARNING_SEC', 3)),
            decoy_max_attempts=int(config.get('DECOY_MAX_ATTEMPTS', 50)),
            leaderboard_size=int(config.get('LEADERBOARD_SIZE', 10)),
            levels={k: v for k, v in config.items() if k.startswith(('EASY_', 'HARD_'))},
        )


@dataclass(frozen=True)
class AnswerOutcome:
    correct: bool
    points: int
    correct_answer: int


class QuizController:
    def __init__(self, presenter, audio, store, scheduler, settings: Optional[QuizSettings] = None,
                 logger: Optional[logging.Logger] = None, rng: Optional[random.Random] = None):
        self.presenter = presenter
        self.audio = audio
        self.store = store
        self.settings = settings or QuizSettings()
        self.logger = logger or logging.getLogger(__name__)
        self.rng = rng or random.Random()
        self.timers = TimerSlots(scheduler)
        self.session = GameSession(total_questions=self.settings.total_questions)
        self.screen = Screen.START
        self.leaderboard_tab: Optional[Difficulty] = None
        self.last_results = None
        self.lock = threading.RLock()

    # ---- helpers ----

    def _show(self, screen: Screen, **extra) -> None:
        self.screen = screen
        self.presenter.show_screen(screen, **extra)

    def _reject(self, event: str) -> bool:
        self.logger.info(f"[ignored] event={event} screen={self.screen.value}")
        return False

    def _start_timer(self, kind: str, delay: float, callback) -> None:
        def _guarded(handle):
            with self.lock:
                if not self.timers.is_current(handle):
                    return
                self.timers.finish(handle)
                callback()

        self.timers.start(kind, delay, _guarded)

    # ---- start / level select ----

    def begin(self) -> None:
        with self.lock:
            self._show(Screen.START)

    def submit_name(self, name) -> bool:
        with self.lock:
            if self.screen != Screen.START:
                return self._reject('submit_name')
            name = str(name or '').strip()
            if not name:
                self.audio.cue('wrong')
                self.presenter.validation_error('name', 'Please enter your name')
                return False
            if len(name) > NAME_MAX_LENGTH:
                self.audio.cue('wrong')
                self.presenter.validation_error(
                    'name', f'Please use at most {NAME_MAX_LENGTH} characters')
                return False
            self.session.player_name = name
            self.audio.cue('click')
            self._show(Screen.LEVEL_SELECT, player_name=name)
            return True

    def select_level(self, difficulty) -> bool:
        with self.lock:
            if self.screen != Screen.LEVEL_SELECT:
                return self._reject('select_level')
            try:
                level = level_settings(difficulty, self.settings.levels)
            except ValueError:
                self.audio.cue('wrong')
                self.presenter.validation_error('difficulty', 'Please choose easy or hard')
                return False
            self.audio.cue('click')
            self.session.apply_level(level)
            self.presenter.level_selected(level)
            return True

    def ready(self) -> bool:
        with self.lock:
            if self.screen != Screen.LEVEL_SELECT:
                return self._reject('ready')
            if self.session.difficulty is None:
                self.audio.cue('wrong')
                self.presenter.validation_error('difficulty', 'Please choose a level first')
                return False
            self.audio.cue('click')
            self._show(Screen.PREVIEW)
            self.presenter.show_tables(multiplication_tables(self.session.max_factor))
            self.session.preview_remaining = self.settings.preview_seconds
            self.presenter.update_preview_timer(self.session.preview_remaining)
            self._start_timer(PREVIEW_TIMER, TICK_INTERVAL_SEC, self._preview_tick)
            return True

    # ---- preview ----

    def _preview_tick(self) -> None:
        self.session.preview_remaining -= 1
        self.presenter.update_preview_timer(self.session.preview_remaining)
        self.audio.cue('tick')
        if self.session.preview_remaining <= 0:
            self._start_game()
            return
        self._start_timer(PREVIEW_TIMER, TICK_INTERVAL_SEC, self._preview_tick)

    def skip_preview(self) -> bool:
        with self.lock:
            if self.screen != Screen.PREVIEW:
                return self._reject('skip_preview')
            self.audio.cue('click')
            self.timers.cancel(PREVIEW_TIMER)
            self._start_game()
            return True

    # ---- playing ----

    def _start_game(self) -> None:
        self.timers.cancel(PREVIEW_TIMER)
        self.audio.cue('start')
        self._start_timer(MUSIC_TIMER, self.settings.music_delay, self.audio.start_music)
        session = self.session
        session.question_index = 0
        session.score = 0
        session.questions = generate_questions(
            session.total_questions, session.max_factor, self.rng, self.settings.decoy_max_attempts
        )
        self.logger.info(
            f"[game-start] player={session.player_name} difficulty={session.difficulty.value} "
            f"questions={session.total_questions} time_limit={session.time_limit_seconds}s"
        )
        self._show(Screen.PLAYING)
        self._present_question()

    def _present_question(self) -> None:
        session = self.session
        self.presenter.show_question(
            session.current_question, session.question_index, session.total_questions, session.score
        )
        session.remaining_seconds = session.time_limit_seconds
        session.awaiting_answer = True
        self.presenter.update_timer(session.remaining_seconds)
        self._start_timer(QUESTION_TIMER, TICK_INTERVAL_SEC, self._question_tick)

    def _question_tick(self) -> None:
        session = self.session
        session.remaining_seconds -= 1
        self.presenter.update_timer(session.remaining_seconds)
        if 0 < session.remaining_seconds <= self.settings.tick_warning:
            self.audio.cue('tick')
        if session.remaining_seconds <= 0:
            self.logger.info(f"[timeout] player={session.player_name} question={session.question_index}")
            session.awaiting_answer = False
            self._handle_wrong(None, timed_out=True)
            return
        self._start_timer(QUESTION_TIMER, TICK_INTERVAL_SEC, self._question_tick)

    def answer(self, value) -> Optional[AnswerOutcome]:
        """Check a selected option; returns None when no answer is expected."""
        with self.lock:
            session = self.session
            if self.screen != Screen.PLAYING or not session.awaiting_answer:
                self._reject('answer')
                return None
            question = session.current_question
            self.timers.cancel(QUESTION_TIMER)
            session.awaiting_answer = False
            self.audio.cue('click')
            try:
                selected = int(value)
            except (TypeError, ValueError):
                selected = None
            if selected is not None and question.is_correct(selected):
                points = self._handle_correct(selected)
                return AnswerOutcome(True, points, question.correct_answer)
            self._handle_wrong(selected)
            return AnswerOutcome(False, 0, question.correct_answer)

    def _handle_correct(self, selected: int) -> int:
        session = self.session
        points = points_for_answer(True, session.remaining_seconds)
        session.award(points)
        self.logger.info(
            f"[answer] player={session.player_name} question={session.question_index} "
            f"correct points={points} score={session.score}"
        )
        self.audio.cue('correct')
        self.presenter.answer_feedback(True, selected, session.current_question.correct_answer,
                                       points, session.score)
        self.presenter.show_effect('confetti')
        self._start_timer(TRANSITION_TIMER, self.settings.correct_delay, self._next_question)
        return points

    def _handle_wrong(self, selected, timed_out: bool = False) -> None:
        session = self.session
        self.logger.info(
            f"[answer] player={session.player_name} question={session.question_index} "
            f"wrong selected={selected} timed_out={timed_out}"
        )
        self.audio.cue('wrong')
        self.presenter.answer_feedback(False, selected, session.current_question.correct_answer,
                                       0, session.score, timed_out=timed_out)
        self._start_timer(TRANSITION_TIMER, self.settings.wrong_delay, self._next_question)

    def _next_question(self) -> None:
        self.session.question_index += 1
        if self.session.question_index < self.session.total_questions:
            self._present_question()
        else:
            self._show_results()

    # ---- results ----

    def _show_results(self) -> None:
        session = self.session
        self.timers.cancel(MUSIC_TIMER)
        self.audio.stop_music()
        self.audio.cue('celebration')
        summary = summarize_results(session.score, session.time_limit_seconds, session.total_questions)
        self.last_results = summary
        self._show(Screen.RESULTS)
        self.presenter.show_results(summary)
        self.presenter.show_effect('stars')
        self.logger.info(
            f"[results] player={session.player_name} difficulty={session.difficulty.value} "
            f"score={summary.score}/{summary.max_score} stars={summary.stars}"
        )
        try:
            self.store.save_score(session.player_name, session.score, session.difficulty)
        except LeaderboardError as exc:
            self.logger.warning(f"[results] score not saved: {exc}")
        self._render_leaderboard(session.difficulty, highlight=(session.player_name, session.score))

    def _render_leaderboard(self, difficulty: Difficulty, highlight=None) -> None:
        try:
            entries = self.store.fetch_top(difficulty, self.settings.leaderboard_size)
        except LeaderboardError as exc:
            self.logger.warning(f"[leaderboard] fetch failed for {difficulty.value}: {exc}")
            entries = []
        self.presenter.render_leaderboard(difficulty, entries, highlight=highlight)

    def play_again(self) -> bool:
        with self.lock:
            if self.screen not in (Screen.RESULTS, Screen.PLAYING, Screen.PREVIEW):
                return self._reject('play_again')
            self.audio.cue('click')
            self.timers.cancel_all()
            self.audio.stop_music()
            self.session.reset_progress()
            self._show(Screen.LEVEL_SELECT, player_name=self.session.player_name,
                       difficulty=self.session.difficulty.value if self.session.difficulty else None)
            return True

    # ---- main menu leaderboard ----

    def open_leaderboard(self, difficulty=Difficulty.EASY) -> bool:
        with self.lock:
            if self.screen not in (Screen.START, Screen.LEVEL_SELECT, Screen.RESULTS, Screen.LEADERBOARD):
                return self._reject('open_leaderboard')
            self._show(Screen.LEADERBOARD)
            return self._switch_tab(difficulty)

    def switch_leaderboard_tab(self, difficulty) -> bool:
        with self.lock:
            if self.screen != Screen.LEADERBOARD:
                return self._reject('switch_leaderboard_tab')
            return self._switch_tab(difficulty)

    def _switch_tab(self, difficulty) -> bool:
        try:
            level = Difficulty.parse(difficulty)
        except ValueError:
            self.presenter.validation_error('difficulty', 'Please choose easy or hard')
            return False
        self.audio.cue('click')
        self.leaderboard_tab = level
        self._render_leaderboard(level)
        return True

    def back_to_start(self) -> bool:
        with self.lock:
            if self.screen not in (Screen.LEADERBOARD, Screen.LEVEL_SELECT, Screen.RESULTS):
                return self._reject('back_to_start')
            self.audio.cue('click')
            self.timers.cancel_all()
            self.audio.stop_music()
            self.session.reset_progress()
            self._show(Screen.START, player_name=self.session.player_name)
            return True

    def close(self) -> None:
        """Player left: stop every timer and discard the session."""
        with self.lock:
            self.timers.cancel_all()
            self.audio.stop_music()
            self.session.reset_progress()
            self.screen = Screen.END
