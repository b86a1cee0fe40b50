"""
WoW class display colors and icons
"""

import re
from typing import Dict, NamedTuple

from ..core.constants import CLASS_ICON_URL


class ClassColor(NamedTuple):
    name: str
    color: str
    hex_color: str
    text_color: str
    bg_color: str


def _entry(name: str, hex_color: str) -> ClassColor:
    color = name.lower().replace(" ", "-")
    return ClassColor(name, color, hex_color, f"text-{color}", f"bg-{color}")


CLASS_COLORS: Dict[str, ClassColor] = {
    entry.name: entry
    for entry in (
        _entry("Warrior", "#C79C6E"),
        _entry("Paladin", "#F58CBA"),
        _entry("Hunter", "#ABD473"),
        _entry("Rogue", "#FFF569"),
        _entry("Priest", "#FFFFFF"),
        _entry("Death Knight", "#C41F3B"),
        _entry("Shaman", "#0070DE"),
        _entry("Mage", "#69CCF0"),
        _entry("Warlock", "#9482C9"),
        _entry("Monk", "#00FF96"),
        _entry("Druid", "#FF7D0A"),
        _entry("Demon Hunter", "#A330C9"),
        _entry("Evoker", "#33937F"),
    )
}

UNKNOWN_CLASS = ClassColor("Unknown", "gray", "#808080", "text-gray-400", "bg-gray-400")


def get_class_color(class_name: str) -> ClassColor:
    """Color descriptor for a class name; unrecognized names get the gray fallback"""
    return CLASS_COLORS.get(class_name, UNKNOWN_CLASS)


def get_class_icon_url(class_name: str) -> str:
    """Icon URL from the lowercased, space-stripped class name; existence is not checked"""
    return CLASS_ICON_URL.format(name=re.sub(r"\s+", "", class_name.lower()))
