"""User data models for authentication"""

from datetime import datetime
from typing import Dict, Literal

from pydantic import BaseModel, ConfigDict

Role = Literal["admin", "user"]

# Unknown or missing roles rank 0
ROLE_HIERARCHY: Dict[str, int] = {
    "user": 1,
    "admin": 2,
}


class PublicUser(BaseModel):
    """User record as exposed to callers, without the password hash"""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    role: Role = "user"
    name: str
    created_at: datetime


class User(PublicUser):
    """User record as held by the store and persisted at rest"""

    password_hash: str

    def public(self) -> PublicUser:
        return PublicUser(**self.model_dump(exclude={"password_hash"}))
