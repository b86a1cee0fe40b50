"""
Guttakrutt Guild Site

World of Warcraft guild website: roster, raid progress and boss kill data
sourced from Raider.IO and WarcraftLogs, with Battle.net login.
"""

__version__ = "1.0.0"
