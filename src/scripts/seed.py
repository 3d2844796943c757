import asyncio

from src.auth.service import AuthService
from src.database import AsyncSessionLocal, engine, init_db


async def seed_data():
    await init_db()
    async with AsyncSessionLocal() as session:
        created = await AuthService(session).seed_demo_members()
    await engine.dispose()
    if created:
        print(f"Seeded {created} demo members.")
    else:
        print("Users already present, nothing to seed.")


if __name__ == "__main__":
    asyncio.run(seed_data())
