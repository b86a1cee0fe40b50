"""
Verify that Mythic+ scores survive a round trip through MySQL with both decimals

Inserts a throwaway character into guild 1, updates its score, reads it back
and deletes it again. Connection settings come from the MYSQL_* variables.
"""
import asyncio
import sys

from guild_site.core.config import build_database_config, get_settings
from guild_site.models.character import Character
from guild_site.models.database import create_mysql_connection
from guild_site.services.storage import GuildStorage

INITIAL_SCORE = 1234.56
UPDATED_SCORE = 987.65


async def check_score_update() -> bool:
    """Run the insert / update / read / delete cycle"""
    print("Testing MySQL character score update functionality...")
    settings = get_settings().model_copy(update={"db_type": "mysql"})
    db = await create_mysql_connection(build_database_config(settings))
    print("Connected to MySQL database")

    try:
        async with db.session() as session:
            storage = GuildStorage(session)

            # 1. Insert a test character with a decimal score
            character = await storage.create_character(
                name="TestCharacter",
                class_name="Warrior",
                spec_name="Arms",
                item_level=400,
                guild_id=1,
                raider_io_score=INITIAL_SCORE,
            )
            character_id = character.id
            print(f"Inserted test character with ID: {character_id}")

            try:
                # 2. Check what was stored
                stored = await session.get(Character, character_id)
                await session.refresh(stored)
                initial_score = stored.raider_io_score
                print(f"Initial score: {initial_score}")

                # 3. Update the character with another decimal score
                await storage.update_character(stored, raider_io_score=UPDATED_SCORE)

                # 4. Check the result
                updated = await session.get(Character, character_id)
                await session.refresh(updated)
                print(f"Updated score: {updated.raider_io_score}")
                ok = initial_score == INITIAL_SCORE and updated.raider_io_score == UPDATED_SCORE
            finally:
                # 5. Clean up
                await storage.delete_character(await session.get(Character, character_id))
                print("Test data cleaned up")
    finally:
        await db.dispose()

    print("Score update OK" if ok else f"Score mismatch: expected {UPDATED_SCORE}")
    return ok


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(check_score_update()) else 1)
