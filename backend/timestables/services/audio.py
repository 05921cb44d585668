"""Fire-and-forget sound cues.

The browser synthesises the sounds; the server only names the cue.
Nothing here may interrupt a game: every failure is logged and dropped.
"""

import logging

logger = logging.getLogger(__name__)

CUES = ('click', 'correct', 'wrong', 'tick', 'start', 'celebration', 'music_start', 'music_stop')


class AudioCues:
    def __init__(self):
        # False once the client reports it cannot play audio
        self.enabled = True
        self.muted = False
        self.music_playing = False
        # Music that should come back once the player unmutes
        self._resume_music = False

    def send(self, cue: str) -> None:
        raise NotImplementedError

    @property
    def silent(self) -> bool:
        return self.muted or not self.enabled

    def cue(self, name: str) -> None:
        if name not in CUES:
            logger.debug("[audio] unknown cue %s", name)
            return
        if self.silent:
            return
        try:
            self.send(name)
        except Exception as exc:
            logger.debug("[audio] cue %s dropped: %s", name, exc)

    def start_music(self) -> None:
        if self.music_playing or not self.enabled:
            return
        if self.muted:
            self._resume_music = True
            return
        self.music_playing = True
        self.cue('music_start')

    def stop_music(self) -> None:
        self._resume_music = False
        if not self.music_playing:
            return
        self.music_playing = False
        try:
            self.send('music_stop')
        except Exception as exc:
            logger.debug("[audio] cue music_stop dropped: %s", exc)

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = bool(enabled)
        if not self.enabled:
            self.stop_music()

    def toggle_mute(self) -> bool:
        self.muted = not self.muted
        if self.muted:
            resume = self.music_playing or self._resume_music
            self.stop_music()
            self._resume_music = resume
        elif self._resume_music:
            self._resume_music = False
            self.start_music()
        return self.muted


class SocketAudio(AudioCues):
    def __init__(self, socketio, sid: str, namespace: str = '/ws'):
        super().__init__()
        self.socketio = socketio
        self.sid = sid
        self.namespace = namespace

    def send(self, cue: str) -> None:
        self.socketio.emit('sound', {'cue': cue}, to=self.sid, namespace=self.namespace)
