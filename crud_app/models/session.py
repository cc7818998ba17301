"""Session model (opaque token bound to a user for a fixed window)"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict


class Session(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    token: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        expires_at = self.expires_at
        # Naive timestamps are treated as UTC
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now > expires_at
