"""Quiz domain services: question generation, scoring, timers and the
per-player state machine.

Nothing in this package touches Flask request state; the socket layer
builds a QuizController with its collaborators and forwards events.
"""
