import asyncio

from src.database import engine, init_db


async def init_models():
    await init_db()
    await engine.dispose()
    print("Database tables created.")


if __name__ == "__main__":
    asyncio.run(init_models())
