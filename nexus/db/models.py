"""Stored models (JSON documents in the key-value store)."""
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model using camelCase keys on the wire and in storage."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class PublicUser(CamelModel):
    """User as exposed to clients (no password hash)."""
    id: str
    email: str
    username: str
    credits: int = 0
    created_at: datetime


class User(PublicUser):
    """User record as stored under `user:<id>`."""
    password_hash: str

    def public(self) -> PublicUser:
        return PublicUser.model_validate(self.model_dump(exclude={"password_hash"}))


class Session(CamelModel):
    """Session record as stored under `session:<token>`."""
    user_id: str
    expires_at: datetime
