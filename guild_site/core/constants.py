"""
Constants and seed data for the guild site
"""

# ============================================================================
# DEFAULT GUILD
# ============================================================================

DEFAULT_GUILD_NAME = "Guttakrutt"
DEFAULT_REALM = "Tarren Mill"
DEFAULT_REGION = "eu"
DEFAULT_DIFFICULTY = "mythic"
DEFAULT_RAID = "Nerub-ar Palace"

DEFAULT_FACTION = "Horde"
DEFAULT_GUILD_DESCRIPTION = "United by excellence, forged in the flames of the North."
DEFAULT_GUILD_EMBLEM = "https://wow.zamimg.com/images/wow/icons/large/inv_misc_head_orc_01.jpg"
DEFAULT_FOOTER_EMBLEM = "https://wow.zamimg.com/images/wow/icons/large/inv_misc_questionmark.jpg"
DEFAULT_CHARACTER_LEVEL = 80

# ============================================================================
# EXTERNAL API ENDPOINTS
# ============================================================================

RAIDERIO_BASE_URL = "https://raider.io/api/v1"
WARCRAFTLOGS_TOKEN_URL = "https://www.warcraftlogs.com/oauth/token"
WARCRAFTLOGS_API_URL = "https://www.warcraftlogs.com/api/v2/client"
CLASS_ICON_URL = "https://wow.zamimg.com/images/wow/icons/large/classicon_{name}.jpg"

GUILD_PROFILE_FIELDS = "raid_progression,raid_rankings,faction"
GUILD_MEMBERS_FIELDS = "members"
GUILD_REFRESH_FIELDS = "raid_progression,raid_rankings,faction,members,mythic_plus_scores_by_season:current"
CHARACTER_PROFILE_FIELDS = "gear,mythic_plus_scores_by_season:current"

# ============================================================================
# API STATUS / ENVELOPES
# ============================================================================

API_STATUS_CONNECTED = "Connected"
API_STATUS_DISCONNECTED = "Disconnected"

# ============================================================================
# REFRESH SETTINGS
# ============================================================================

SCORE_UPDATE_BATCH_SIZE = 5
SCORE_UPDATE_BATCH_PAUSE = 5.0  # seconds between batches
SCORE_UPDATE_MIN_AGE_HOURS = 24
API_MAX_RETRIES = 3

# Cron expressions for scheduled refreshes
DAILY_UPDATE_CRON = "0 0 * * *"        # midnight
WEEKLY_RAID_REFRESH_CRON = "0 3 * * 0"  # Sunday 03:00

CURRENT_RAID = "Liberation of Undermine"
PREVIOUS_RAID = "Nerub-ar Palace"

# ============================================================================
# SOCIAL LINKS
# ============================================================================

SOCIAL_LINKS = [
    {"key": "discord", "icon": "fab fa-discord", "url": "https://discord.gg/X3Wjdh4HvC"},
    {"key": "twitter", "icon": "fab fa-twitter", "url": "https://twitter.com/guild"},
    {"key": "twitch", "icon": "fab fa-twitch", "url": "https://twitch.tv/guild"},
    {"key": "youtube", "icon": "fab fa-youtube", "url": "https://youtube.com/guild"},
]

# ============================================================================
# SEED DATA
# ============================================================================

# Raid tiers with the number of encounters in each
KNOWN_RAID_BOSS_COUNTS = {
    "Nerub-ar Palace": 8,
    "Liberation of Undermine": 8,
}

DEFAULT_RAID_PROGRESS = [
    {"name": "Nerub-ar Palace", "bosses": 8, "bosses_defeated": 7, "difficulty": "mythic",
     "world_rank": 54, "region_rank": 44, "realm_rank": 1},
    {"name": "Liberation of Undermine", "bosses": 8, "bosses_defeated": 4, "difficulty": "mythic",
     "world_rank": 68, "region_rank": 58, "realm_rank": 1},
]

# Mythic kill history per raid; heroic and normal seeds mark every boss defeated
DEFAULT_BOSSES = {
    "Nerub-ar Palace": [
        {"name": "Ulgrax the Devourer", "icon_url": "https://static.wikia.nocookie.net/wowwiki/images/5/51/Inv_misc_monsterscales_15.png",
         "last_kill_date": "2024-04-05", "best_time": "4:12", "best_parse": "98.2%", "pull_count": 7, "defeated": True},
        {"name": "The Bloodbound Horror", "icon_url": "https://static.wikia.nocookie.net/wowwiki/images/f/f5/Spell_deathknight_bloodpresence.png",
         "last_kill_date": "2024-04-07", "best_time": "3:58", "best_parse": "96.5%", "pull_count": 14, "defeated": True},
        {"name": "Sikran", "icon_url": "https://static.wikia.nocookie.net/wowwiki/images/d/df/Inv_misc_head_nerubian_01.png",
         "last_kill_date": "2024-04-09", "best_time": "5:33", "best_parse": "95.9%", "pull_count": 19, "defeated": True},
        {"name": "Rasha'nan", "icon_url": "https://static.wikia.nocookie.net/wowwiki/images/2/20/Inv_misc_ahnqirajtrinket_04.png",
         "last_kill_date": "2024-04-11", "best_time": "6:21", "best_parse": "92.7%", "pull_count": 28, "defeated": True},
        {"name": "Broodtwister Ovi'nax", "icon_url": "https://static.wikia.nocookie.net/wowwiki/images/b/be/Ability_hunter_pet_dragonhawk.png",
         "last_kill_date": "2024-04-14", "best_time": "7:44", "best_parse": "94.3%", "pull_count": 32, "defeated": True},
        {"name": "Nexus-Princess Ky'veza", "icon_url": "https://static.wikia.nocookie.net/wowwiki/images/f/fc/Inv_misc_gem_amethyst_02.png",
         "last_kill_date": "2024-04-17", "best_time": "8:12", "best_parse": "91.8%", "pull_count": 41, "defeated": True},
        {"name": "The Silken Court", "icon_url": "https://static.wikia.nocookie.net/wowwiki/images/3/30/Inv_fabric_silk_02.png",
         "last_kill_date": "2024-04-02", "best_time": "7:55", "best_parse": "90.4%", "pull_count": 28, "defeated": True},
        {"name": "Queen Ansurek", "icon_url": "https://wow.zamimg.com/images/wow/icons/large/achievement_raidnerubianpalace_ansurek.jpg",
         "last_kill_date": None, "best_time": "", "best_parse": "", "pull_count": 51, "defeated": False, "in_progress": True},
    ],
    "Liberation of Undermine": [
        {"name": "Vexie Fullthrottle and The Geargrinders", "icon_url": "https://static.wikia.nocookie.net/wowwiki/images/a/a1/Inv_gizmo_04.png",
         "last_kill_date": "2024-03-15", "best_time": "4:28", "best_parse": "95.3%", "pull_count": 12, "defeated": True},
        {"name": "Cauldron of Carnage", "icon_url": "https://static.wikia.nocookie.net/wowwiki/images/0/0d/Inv_cauldron_2.png",
         "last_kill_date": "2024-03-18", "best_time": "5:41", "best_parse": "93.6%", "pull_count": 18, "defeated": True},
        {"name": "Rik Reverb", "icon_url": "https://static.wikia.nocookie.net/wowwiki/images/0/04/Inv_helmet_74.png",
         "last_kill_date": "2024-03-25", "best_time": "6:15", "best_parse": "92.1%", "pull_count": 24, "defeated": True},
        {"name": "Stix Bunkjunker", "icon_url": "https://static.wikia.nocookie.net/wowwiki/images/0/09/Inv_weapon_rifle_02.png",
         "last_kill_date": "2024-03-30", "best_time": "5:45", "best_parse": "93.2%", "pull_count": 21, "defeated": True},
        {"name": "Sprocketmonger Lockenstock", "icon_url": "https://static.wikia.nocookie.net/wowwiki/images/0/03/Inv_misc_gear_08.png",
         "last_kill_date": None, "best_time": "", "best_parse": "", "pull_count": 33, "defeated": False, "in_progress": True},
        {"name": "One-Armed Bandit", "icon_url": "https://static.wikia.nocookie.net/wowwiki/images/5/54/Inv_misc_orb_05.png",
         "last_kill_date": None, "best_time": "", "best_parse": "", "pull_count": 0, "defeated": False},
        {"name": "Mug'Zee", "icon_url": "https://static.wikia.nocookie.net/wowwiki/images/9/91/Inv_helmet_15.png",
         "last_kill_date": None, "best_time": "", "best_parse": "", "pull_count": 0, "defeated": False},
        {"name": "Chrome King Gallywix", "icon_url": "https://static.wikia.nocookie.net/wowwiki/images/8/83/Inv_helmet_66.png",
         "last_kill_date": None, "best_time": "", "best_parse": "", "pull_count": 0, "defeated": False},
    ],
}

# Officers and raid leaders used when Raider.IO has no member data
DEFAULT_ROSTER = [
    {"name": "Truedream", "class_name": "Warrior", "spec_name": "Fury", "rank": 0, "item_level": 469,
     "avatar_url": "https://render.worldofwarcraft.com/eu/character/tarren-mill/98/123-98.jpg"},
    {"name": "Spritney", "class_name": "Priest", "spec_name": "Holy", "rank": 1, "item_level": 465,
     "avatar_url": "https://render.worldofwarcraft.com/eu/character/tarren-mill/180/456-180.jpg"},
    {"name": "Shadowstep", "class_name": "Rogue", "spec_name": "Subtlety", "rank": 1, "item_level": 467,
     "avatar_url": "https://render.worldofwarcraft.com/eu/character/tarren-mill/100/123-100.jpg"},
    {"name": "Flamecaller", "class_name": "Mage", "spec_name": "Fire", "rank": 1, "item_level": 465,
     "avatar_url": "https://render.worldofwarcraft.com/eu/character/tarren-mill/64/100-64.jpg"},
    {"name": "Stormshield", "class_name": "Shaman", "spec_name": "Elemental", "rank": 1, "item_level": 464,
     "avatar_url": "https://render.worldofwarcraft.com/eu/character/tarren-mill/64/100-64.jpg"},
    {"name": "Leafbinder", "class_name": "Druid", "spec_name": "Restoration", "rank": 2, "item_level": 459,
     "avatar_url": "https://render.worldofwarcraft.com/eu/character/tarren-mill/11/244-11.jpg"},
    {"name": "Fellblade", "class_name": "Demon Hunter", "spec_name": "Havoc", "rank": 2, "item_level": 462,
     "avatar_url": "https://render.worldofwarcraft.com/eu/character/tarren-mill/581/121-581.jpg"},
    {"name": "Soulripper", "class_name": "Warlock", "spec_name": "Demonology", "rank": 2, "item_level": 463,
     "avatar_url": "https://render.worldofwarcraft.com/eu/character/tarren-mill/9/129-9.jpg"},
    {"name": "Ironhide", "class_name": "Death Knight", "spec_name": "Blood", "rank": 2, "item_level": 460,
     "avatar_url": "https://render.worldofwarcraft.com/eu/character/tarren-mill/6/113-6.jpg"},
    {"name": "Embersong", "class_name": "Evoker", "spec_name": "Augmentation", "rank": 3, "item_level": 458,
     "avatar_url": "https://render.worldofwarcraft.com/eu/character/tarren-mill/1550/124-1550.jpg"},
    {"name": "Swiftarrow", "class_name": "Hunter", "spec_name": "Marksmanship", "rank": 3, "item_level": 455,
     "avatar_url": "https://render.worldofwarcraft.com/eu/character/tarren-mill/3/163-3.jpg"},
    {"name": "Truthbearer", "class_name": "Paladin", "spec_name": "Retribution", "rank": 3, "item_level": 457,
     "avatar_url": "https://render.worldofwarcraft.com/eu/character/tarren-mill/2/112-2.jpg"},
]
