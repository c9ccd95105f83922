# eduledger/core/actor.py
"""Explicit actor context passed into every service call."""
import enum
from typing import Optional
from fastapi import Header
from pydantic import BaseModel, Field


class ActorType(str, enum.Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"
    SYSTEM = "system"


class ActorContext(BaseModel):
    actor_id: str = Field(..., min_length=1)
    actor_type: ActorType
    actor_name: Optional[str] = None

    @property
    def is_student(self) -> bool:
        return self.actor_type == ActorType.STUDENT

    @property
    def display_name(self) -> str:
        return self.actor_name or self.actor_id


async def get_actor(
    x_actor_id: str = Header(..., min_length=1),
    x_actor_type: ActorType = Header(...),
    x_actor_name: Optional[str] = Header(None),
) -> ActorContext:
    """FastAPI dependency building the actor context from request headers"""
    return ActorContext(actor_id=x_actor_id, actor_type=x_actor_type, actor_name=x_actor_name)
