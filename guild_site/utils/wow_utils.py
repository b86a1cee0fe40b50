"""
WoW data helpers for handling Raider.IO payload differences
"""
import re
from typing import Dict, Any, Optional, Union


def realm_slug(realm: str) -> str:
    """
    Convert a realm display name into the slug used by external APIs.

    "Tarren Mill" -> "tarren-mill", "Mal'Ganis" -> "malganis"
    """
    return re.sub(r"\s+", "-", realm.strip()).replace("'", "").lower()


def parse_class_info(class_data: Union[Dict[str, Any], str, None]) -> str:
    """
    Parse character class information from API response.

    Args:
        class_data: Class data from API, either a plain name or {"name": ...}

    Returns:
        Class name string
    """
    if not class_data:
        return "Unknown"

    if isinstance(class_data, str):
        return class_data

    if isinstance(class_data, dict):
        name = class_data.get("name")
        if isinstance(name, str) and name:
            return name

    return "Unknown"


def extract_mythic_plus_score(profile: Dict[str, Any]) -> Optional[float]:
    """
    Extract the current season Mythic+ score from a Raider.IO character payload.

    Raider.IO has returned three shapes over time:
      - mythic_plus_scores_by_season: [{"scores": {"all": 3120.5}}]
      - mythic_plus_scores_by_season: {"current": {"scores": {"all": 3120.5}}}
      - mythic_plus_score: 3120.5

    Returns:
        Score as float, or None when the payload carries no score
    """
    by_season = profile.get("mythic_plus_scores_by_season")
    if by_season:
        if isinstance(by_season, list):
            scores = (by_season[0] or {}).get("scores") or {}
            return _as_float(scores.get("all"))
        if isinstance(by_season, dict) and by_season.get("current"):
            scores = by_season["current"].get("scores") or {}
            return _as_float(scores.get("all"))
        return None

    if profile.get("mythic_plus_score") is not None:
        return _as_float(profile["mythic_plus_score"])

    return None


def _as_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def armory_link(region: str, realm: str, character_name: str) -> str:
    """Public armory URL for a character"""
    return (
        f"https://worldofwarcraft.blizzard.com/en-gb/character/"
        f"{region.lower()}/{realm_slug(realm)}/{character_name.lower()}"
    )
