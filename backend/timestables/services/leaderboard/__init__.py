from .stores import (  # noqa: F401
    LeaderboardEntry,
    LeaderboardError,
    LeaderboardStore,
    LocalLeaderboardStore,
    RemoteLeaderboardStore,
    build_leaderboard_store,
)
