# rentalcrm/models/agents.py
from datetime import datetime, timezone

from pydantic import BaseModel, EmailStr

from rentalcrm import database
from rentalcrm.utils.hash_utils import hash_password


class Agent(BaseModel):
    name: str
    email: EmailStr
    password: str


def _agents():
    return database.db.agents


async def find_agent_by_email(email: str):
    return await _agents().find_one({"email": email.strip().lower()})


async def create_agent(agent: Agent) -> str:
    now = datetime.now(timezone.utc)
    result = await _agents().insert_one({
        "name": agent.name.strip(),
        "email": agent.email.strip().lower(),
        "password": hash_password(agent.password),
        "createdAt": now,
        "updatedAt": now,
    })
    return str(result.inserted_id)
