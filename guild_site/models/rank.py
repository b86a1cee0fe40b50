"""
Guild rank lookup table
"""

from typing import List, NamedTuple

UNKNOWN_RANK = "Unknown"


class GuildRank(NamedTuple):
    id: int
    name: str


# Shared by every guild; ranks are not stored per guild
GUILD_RANKS: List[GuildRank] = [
    GuildRank(0, "Guild Master"),
    GuildRank(1, "Officer"),
    GuildRank(2, "Raider"),
    GuildRank(3, "Trial"),
    GuildRank(4, "Social"),
    GuildRank(5, "Alt"),
]

_RANK_NAMES = {rank.id: rank.name for rank in GUILD_RANKS}


def get_rank_name(rank_id) -> str:
    """Display name for a rank index, "Unknown" for anything outside the table"""
    return _RANK_NAMES.get(rank_id, UNKNOWN_RANK)
