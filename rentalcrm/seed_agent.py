# rentalcrm/seed_agent.py
"""Create a sales agent account: python -m rentalcrm.seed_agent NAME EMAIL PASSWORD"""
import argparse
import asyncio

from pymongo.errors import DuplicateKeyError, PyMongoError

from rentalcrm.database import db, ensure_indexes
from rentalcrm.models.agents import Agent, create_agent


async def seed(name: str, email: str, password: str):
    try:
        await db.command("ping")
        await ensure_indexes()
        agent_id = await create_agent(Agent(name=name, email=email, password=password))
        print("Agent created:", agent_id)
    except DuplicateKeyError:
        print("An agent with this email already exists:", email)
    except PyMongoError as e:
        print("MongoDB connection failed:", e)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("name")
    parser.add_argument("email")
    parser.add_argument("password")
    args = parser.parse_args()
    asyncio.run(seed(args.name, args.email, args.password))
