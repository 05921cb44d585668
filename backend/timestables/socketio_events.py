from flask import current_app, request
from flask_socketio import emit
from timestables import socketio
from timestables.services.audio import SocketAudio
from timestables.services.presentation import SocketPresenter
from timestables.services.quiz.controller import QuizController, QuizSettings
from typing import Dict, Optional

NAMESPACE = '/ws'

# One controller per connected browser tab, keyed by Socket.IO sid
_controllers: Dict[str, QuizController] = {}


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _build_controller(sid: str) -> QuizController:
    app = current_app._get_current_object()
    return QuizController(
        presenter=SocketPresenter(socketio, sid, namespace=NAMESPACE),
        audio=SocketAudio(socketio, sid, namespace=NAMESPACE),
        store=app.extensions['leaderboard_store'],
        scheduler=app.extensions['quiz_scheduler'],
        settings=QuizSettings.from_config(app.config),
        logger=app.logger,
    )


def get_controller(sid: str) -> Optional[QuizController]:
    return _controllers.get(sid)


def _controller_or_error() -> Optional[QuizController]:
    controller = _controllers.get(_get_sid())
    if controller is None:
        emit('error', {'message': 'No active quiz for this connection'})
    return controller


def _dispatch(event: str, handled: bool) -> None:
    if not handled:
        emit('error', {'message': f'{event} is not available right now'})


def handle_connect(auth=None):
    sid = _get_sid()
    controller = _build_controller(sid)
    _controllers[sid] = controller
    emit('connected', {'message': 'Connected to /ws'})
    controller.begin()


def handle_disconnect(*args):
    controller = _controllers.pop(_get_sid(), None)
    if controller:
        controller.close()


def handle_submit_name(data):
    controller = _controller_or_error()
    if controller:
        # An empty name is reported through validation_error, not error
        controller.submit_name((data or {}).get('name'))


def handle_select_level(data):
    controller = _controller_or_error()
    if controller:
        controller.select_level((data or {}).get('difficulty'))


def handle_ready(data=None):
    controller = _controller_or_error()
    if controller:
        controller.ready()


def handle_skip_preview(data=None):
    controller = _controller_or_error()
    if controller:
        _dispatch('skip_preview', controller.skip_preview())


def handle_answer(data):
    controller = _controller_or_error()
    if controller:
        _dispatch('answer', controller.answer((data or {}).get('answer')) is not None)


def handle_play_again(data=None):
    controller = _controller_or_error()
    if controller:
        _dispatch('play_again', controller.play_again())


def handle_open_leaderboard(data=None):
    controller = _controller_or_error()
    if controller:
        _dispatch('open_leaderboard', controller.open_leaderboard((data or {}).get('difficulty') or 'easy'))


def handle_switch_leaderboard_tab(data):
    controller = _controller_or_error()
    if controller:
        _dispatch('switch_leaderboard_tab', controller.switch_leaderboard_tab((data or {}).get('difficulty')))


def handle_back_to_start(data=None):
    controller = _controller_or_error()
    if controller:
        _dispatch('back_to_start', controller.back_to_start())


def handle_audio_status(data):
    controller = _controller_or_error()
    if controller:
        supported = bool((data or {}).get('supported', True))
        controller.audio.set_enabled(supported)
        if not supported:
            current_app.logger.info(f"[audio] sid={_get_sid()} client has no audio, running silent")


def handle_toggle_mute(data=None):
    controller = _controller_or_error()
    if controller:
        emit('mute_state', {'muted': controller.audio.toggle_mute()})


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('submit_name', handle_submit_name, namespace=NAMESPACE)
    socketio.on_event('select_level', handle_select_level, namespace=NAMESPACE)
    socketio.on_event('ready', handle_ready, namespace=NAMESPACE)
    socketio.on_event('skip_preview', handle_skip_preview, namespace=NAMESPACE)
    socketio.on_event('answer', handle_answer, namespace=NAMESPACE)
    socketio.on_event('play_again', handle_play_again, namespace=NAMESPACE)
    socketio.on_event('open_leaderboard', handle_open_leaderboard, namespace=NAMESPACE)
    socketio.on_event('switch_leaderboard_tab', handle_switch_leaderboard_tab, namespace=NAMESPACE)
    socketio.on_event('back_to_start', handle_back_to_start, namespace=NAMESPACE)
    socketio.on_event('audio_status', handle_audio_status, namespace=NAMESPACE)
    socketio.on_event('toggle_mute', handle_toggle_mute, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
