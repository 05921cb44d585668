import pytest

from timestables.services.audio import AudioCues
from timestables.services.quiz import controller as controller_module
from timestables.services.quiz.controller import QuizSettings
from timestables.services.quiz.generator import Question
from timestables.services.quiz.levels import Difficulty
from timestables.services.quiz.session import Screen


FOUR_TIMES_THREE = Question(operand_a=4, operand_b=3, correct_answer=12, options=(9, 12, 16, 15))


@pytest.fixture()
def fixed_questions(monkeypatch):
    """Every generated question becomes 4 x 3."""
    def _generate(count, max_factor, rng=None, max_attempts=50):
        return [FOUR_TIMES_THREE] * count
    monkeypatch.setattr(controller_module, 'generate_questions', _generate)


def _to_playing(ctl, difficulty='easy'):
    assert ctl.submit_name('Ploy')
    assert ctl.select_level(difficulty)
    assert ctl.ready()
    assert ctl.skip_preview()
    assert ctl.screen == Screen.PLAYING


def test_empty_name_is_rejected_without_state_change(make_controller, presenter, audio):
    ctl = make_controller()
    ctl.begin()
    assert not ctl.submit_name('   ')
    assert ctl.screen == Screen.START
    assert presenter.last('validation_error')['field'] == 'name'
    assert audio.cues == ['wrong']


def test_name_then_level_selection(make_controller, presenter):
    ctl = make_controller()
    assert ctl.submit_name('  Ploy ')
    assert ctl.session.player_name == 'Ploy'
    assert presenter.last('show_screen') == {'screen': 'level_select', 'player_name': 'Ploy'}

    assert ctl.select_level('hard')
    assert ctl.session.difficulty is Difficulty.HARD
    assert ctl.session.time_limit_seconds == 10
    assert ctl.session.max_factor == 12
    assert presenter.last('level_selected')['ready_enabled'] is True


def test_unknown_level_and_ready_without_level_are_rejected(make_controller, presenter):
    ctl = make_controller()
    ctl.submit_name('Ploy')
    assert not ctl.select_level('medium')
    assert not ctl.ready()
    assert ctl.screen == Screen.LEVEL_SELECT
    assert [e['field'] for e in presenter.named('validation_error')] == ['difficulty', 'difficulty']


def test_preview_counts_down_then_starts_the_game(make_controller, presenter, audio, manual_scheduler):
    ctl = make_controller()
    ctl.submit_name('Ploy')
    ctl.select_level('easy')
    ctl.ready()
    assert ctl.screen == Screen.PREVIEW
    assert len(presenter.last('show_tables')['tables']) == 6

    manual_scheduler.advance(9)
    assert ctl.screen == Screen.PREVIEW
    manual_scheduler.advance(1)
    assert ctl.screen == Screen.PLAYING
    assert [p['remaining'] for p in presenter.named('preview_timer')] == list(range(10, -1, -1))
    assert audio.cues.count('tick') == 10
    assert manual_scheduler.pending('preview') == 0


def test_skip_preview_cancels_the_preview_timer(make_controller, presenter, manual_scheduler):
    ctl = make_controller()
    _to_playing(ctl)
    assert manual_scheduler.pending('preview') == 0
    assert manual_scheduler.pending('question') == 1
    manual_scheduler.advance(3)
    # Only the question countdown is moving
    assert len(presenter.named('preview_timer')) == 1
    assert ctl.session.remaining_seconds == 12


def test_correct_answer_with_ten_seconds_left_scores_eleven(make_controller, presenter, manual_scheduler, fixed_questions):
    ctl = make_controller()
    _to_playing(ctl)
    manual_scheduler.advance(5)
    assert ctl.session.remaining_seconds == 10

    outcome = ctl.answer(12)
    assert outcome.correct
    assert outcome.points == 11
    assert ctl.session.score == 11
    feedback = presenter.last('answer_feedback')
    assert feedback['correct'] is True and feedback['points'] == 11
    assert presenter.last('effect') == {'name': 'confetti'}
    assert manual_scheduler.pending('question') == 0

    # Advances after the correct-answer delay
    manual_scheduler.advance(1)
    assert ctl.session.question_index == 0
    manual_scheduler.advance(0.5)
    assert ctl.session.question_index == 1


def test_timeout_awards_nothing_and_advances_one_question(make_controller, presenter, audio, manual_scheduler):
    ctl = make_controller()
    _to_playing(ctl)
    manual_scheduler.advance(15)
    feedback = presenter.last('answer_feedback')
    assert feedback['timed_out'] is True
    assert feedback['correct'] is False
    assert feedback['correct_answer'] == ctl.session.current_question.correct_answer
    assert ctl.session.score == 0
    assert audio.cues.count('tick') == 3
    assert 'wrong' in audio.cues

    # Answers after the timeout are ignored
    assert ctl.answer(ctl.session.current_question.correct_answer) is None

    manual_scheduler.advance(2)
    assert ctl.session.question_index == 1
    assert ctl.session.score == 0
    assert presenter.last('question_timer') == {'remaining': 15}


def test_wrong_answer_reveals_correct_option(make_controller, presenter, manual_scheduler, fixed_questions):
    ctl = make_controller()
    _to_playing(ctl)
    outcome = ctl.answer(15)
    assert not outcome.correct
    assert outcome.correct_answer == 12
    feedback = presenter.last('answer_feedback')
    assert feedback == {
        'correct': False, 'selected': 15, 'correct_answer': 12,
        'timed_out': False, 'points': 0, 'score': 0,
    }
    manual_scheduler.advance(1.5)
    assert ctl.session.question_index == 0
    manual_scheduler.advance(0.5)
    assert ctl.session.question_index == 1


def test_second_answer_to_the_same_question_is_ignored(make_controller, manual_scheduler, fixed_questions):
    ctl = make_controller()
    _to_playing(ctl)
    assert ctl.answer(12).points == 16
    assert ctl.answer(12) is None
    assert ctl.session.score == 16


def test_full_game_saves_score_and_shows_results(make_controller, presenter, audio, memory_store, manual_scheduler):
    ctl = make_controller()
    _to_playing(ctl)
    last_score = 0
    for _ in range(ctl.session.total_questions):
        question = ctl.session.current_question
        ctl.answer(question.correct_answer)
        assert ctl.session.score >= last_score
        last_score = ctl.session.score
        manual_scheduler.advance(1.5)

    assert ctl.screen == Screen.RESULTS
    assert ctl.session.score == 160
    assert ctl.session.score <= ctl.session.max_score
    results = presenter.last('show_results')
    assert results['stars'] == 3
    assert results['percentage'] == 100
    assert memory_store.saved == [('Ploy', 160, Difficulty.EASY)]
    assert presenter.last('leaderboard')['difficulty'] == 'easy'
    assert 'celebration' in audio.cues
    assert not audio.music_playing
    assert manual_scheduler.pending() == 0


def test_mixed_game_score_stays_within_maximum(make_controller, manual_scheduler):
    ctl = make_controller(settings=QuizSettings(total_questions=4))
    _to_playing(ctl, 'hard')
    q = ctl.session.current_question
    manual_scheduler.advance(4)
    ctl.answer(q.correct_answer)
    manual_scheduler.advance(1.5)
    manual_scheduler.advance(10)  # timeout
    manual_scheduler.advance(2)
    q = ctl.session.current_question
    ctl.answer([o for o in q.options if o != q.correct_answer][0])
    manual_scheduler.advance(2)
    ctl.answer(ctl.session.current_question.correct_answer)
    manual_scheduler.advance(1.5)
    assert ctl.screen == Screen.RESULTS
    assert ctl.session.score == 7 + 11
    assert ctl.session.score <= ctl.session.max_score == 44


def test_leaderboard_failures_do_not_block_results(make_controller, presenter, memory_store, manual_scheduler):
    memory_store.fail_save = True
    memory_store.fail_fetch = True
    ctl = make_controller(settings=QuizSettings(total_questions=1))
    _to_playing(ctl)
    manual_scheduler.advance(15)
    manual_scheduler.advance(2)
    assert ctl.screen == Screen.RESULTS
    assert presenter.last('show_results')['score'] == 0
    assert presenter.last('leaderboard')['entries'] == []


def test_broken_audio_is_silently_ignored(make_controller, manual_scheduler):
    class BrokenAudio(AudioCues):
        def send(self, cue):
            raise RuntimeError('audio context unavailable')

    ctl = make_controller(audio=BrokenAudio(), settings=QuizSettings(total_questions=2))
    _to_playing(ctl)
    ctl.answer(ctl.session.current_question.correct_answer)
    manual_scheduler.advance(1.5)
    manual_scheduler.advance(10)
    manual_scheduler.advance(20)
    assert ctl.screen == Screen.RESULTS


def test_music_starts_after_delay(make_controller, audio, manual_scheduler):
    ctl = make_controller()
    _to_playing(ctl)
    assert not audio.music_playing
    manual_scheduler.advance(1)
    assert audio.music_playing
    assert audio.cues.count('music_start') == 1


def test_play_again_resets_progress_and_keeps_player(make_controller, presenter, manual_scheduler):
    ctl = make_controller(settings=QuizSettings(total_questions=1))
    _to_playing(ctl)
    ctl.answer(ctl.session.current_question.correct_answer)
    manual_scheduler.advance(1.5)
    assert ctl.screen == Screen.RESULTS

    assert ctl.play_again()
    assert ctl.screen == Screen.LEVEL_SELECT
    assert ctl.session.score == 0
    assert ctl.session.question_index == 0
    assert ctl.session.player_name == 'Ploy'
    assert ctl.session.difficulty is Difficulty.EASY
    assert manual_scheduler.pending() == 0
    # Difficulty is retained so the player can go straight to the preview
    assert ctl.ready()


def test_play_again_mid_game_cancels_running_timers(make_controller, manual_scheduler):
    ctl = make_controller()
    _to_playing(ctl)
    assert ctl.play_again()
    manual_scheduler.advance(30)
    assert ctl.screen == Screen.LEVEL_SELECT
    assert ctl.session.question_index == 0


def test_main_menu_leaderboard_tabs(make_controller, presenter):
    ctl = make_controller()
    ctl.begin()
    assert ctl.open_leaderboard()
    assert ctl.screen == Screen.LEADERBOARD
    assert presenter.last('leaderboard')['difficulty'] == 'easy'
    assert ctl.switch_leaderboard_tab('hard')
    assert presenter.last('leaderboard')['difficulty'] == 'hard'
    assert not ctl.switch_leaderboard_tab('medium')
    assert ctl.back_to_start()
    assert ctl.screen == Screen.START


def test_events_out_of_order_are_ignored(make_controller):
    ctl = make_controller()
    ctl.begin()
    assert not ctl.select_level('easy')
    assert not ctl.skip_preview()
    assert ctl.answer(3) is None
    assert not ctl.play_again()
    assert ctl.screen == Screen.START


def test_close_stops_everything(make_controller, manual_scheduler):
    ctl = make_controller()
    _to_playing(ctl)
    ctl.close()
    assert ctl.screen == Screen.END
    assert manual_scheduler.pending() == 0


def test_overlong_name_is_rejected(make_controller, presenter):
    ctl = make_controller()
    assert not ctl.submit_name('P' * 65)
    assert ctl.screen == Screen.START
    assert presenter.last('validation_error')['field'] == 'name'
    assert ctl.submit_name('P' * 64)


def test_unmuting_resumes_music_mid_game(make_controller, audio, manual_scheduler):
    ctl = make_controller()
    _to_playing(ctl)
    manual_scheduler.advance(1)
    assert audio.music_playing

    assert audio.toggle_mute()
    assert not audio.music_playing
    assert not audio.toggle_mute()
    assert audio.music_playing
    assert audio.cues.count('music_start') == 2


def test_music_due_while_muted_starts_on_unmute(make_controller, audio, manual_scheduler):
    ctl = make_controller()
    audio.toggle_mute()
    _to_playing(ctl)
    manual_scheduler.advance(1)
    assert not audio.music_playing
    audio.toggle_mute()
    assert audio.music_playing


def test_unmuting_after_the_game_ended_stays_quiet(make_controller, audio, manual_scheduler):
    ctl = make_controller(settings=QuizSettings(total_questions=1))
    _to_playing(ctl)
    manual_scheduler.advance(1)
    audio.toggle_mute()
    manual_scheduler.advance(14)
    manual_scheduler.advance(2)
    assert ctl.screen == Screen.RESULTS
    audio.toggle_mute()
    assert not audio.music_playing
