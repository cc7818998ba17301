"""
In-memory record store with write-through persistence.

Holds users, products and sessions, and mirrors the whole state into a
single durable slot after every mutation. Absence is reported with None
or False; nothing here validates uniqueness or references, callers do.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..auth.passwords import DEFAULT_ROUNDS, hash_password
from ..models.product import Product, ProductInput
from ..models.session import Session
from ..models.user import PublicUser, User
from ..storage.local_storage import LocalStorage
from ..utils.logger import get_logger

logger = get_logger(__name__)

DATABASE_KEY = "crud_app_database"
SESSION_EXPIRY_HOURS = 24

# Fields the store stamps itself; callers cannot set or overwrite them
_PRODUCT_MANAGED_FIELDS = {"id", "created_by", "created_at"}

SEED_USERS = [
    {
        "id": 1,
        "username": "admin",
        "email": "admin@system.com",
        "password": "admin123",
        "role": "admin",
        "name": "Main Administrator",
    },
    {
        "id": 2,
        "username": "user",
        "email": "user@system.com",
        "password": "user123",
        "role": "user",
        "name": "Demo User",
    },
]

SEED_PRODUCTS = [
    {"id": 1, "name": "Dell Laptop", "category": "Technology", "price": 1200, "stock": 15, "created_by": 1},
    {"id": 2, "name": "Wireless Mouse", "category": "Accessories", "price": 25, "stock": 100, "created_by": 1},
    {"id": 3, "name": "Mechanical Keyboard", "category": "Accessories", "price": 80, "stock": 45, "created_by": 2},
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Store:
    """Authoritative owner of user, product and session records"""

    def __init__(
        self,
        storage: LocalStorage,
        database_key: str = DATABASE_KEY,
        session_expiry_hours: int = SESSION_EXPIRY_HOURS,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.storage = storage
        self.database_key = database_key
        self.session_expiry = timedelta(hours=session_expiry_hours)
        self.bcrypt_rounds = bcrypt_rounds
        self._clock = clock or _utcnow

        self._users: List[User] = []
        self._products: List[Product] = []
        self._sessions: Dict[str, Session] = {}
        self._sequences: Dict[str, int] = {"users": 1, "products": 1}

        self._loaded = False
        # Seed passwords are only hashed when no snapshot replaces them
        if not self.load_snapshot():
            self._apply_defaults()
        self._loaded = True

    def _now(self) -> datetime:
        return self._clock()

    def _seed_users(self) -> List[User]:
        now = self._now()
        return [
            User(
                id=seed["id"],
                username=seed["username"],
                email=seed["email"],
                password_hash=hash_password(seed["password"], self.bcrypt_rounds),
                role=seed["role"],
                name=seed["name"],
                created_at=now,
            )
            for seed in SEED_USERS
        ]

    def _seed_products(self) -> List[Product]:
        now = self._now()
        return [Product(created_at=now, **seed) for seed in SEED_PRODUCTS]

    def _apply_defaults(self) -> None:
        self._users = self._seed_users()
        self._products = self._seed_products()
        self._sessions = {}
        self._sequences = {
            "users": len(SEED_USERS) + 1,
            "products": len(SEED_PRODUCTS) + 1,
        }

    def _next_id(self, collection: str) -> int:
        next_id = self._sequences[collection]
        self._sequences[collection] = next_id + 1
        return next_id

    # Users

    def create_user(self, fields: Mapping[str, Any]) -> User:
        """Create a user with role 'user'; uniqueness is the caller's job"""
        user = User(
            id=self._next_id("users"),
            username=fields["username"],
            email=fields["email"],
            password_hash=hash_password(fields["password"], self.bcrypt_rounds),
            role="user",
            name=fields["name"],
            created_at=self._now(),
        )
        self._users.append(user)
        self.persist_snapshot()
        logger.info("User created", user_id=user.id, username=user.username)
        return user

    def find_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._users if u.username == username), None)

    def find_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._users if u.email == email), None)

    def find_user_by_id(self, user_id: int) -> Optional[User]:
        return next((u for u in self._users if u.id == user_id), None)

    def list_users(self) -> List[PublicUser]:
        """All users with the password hash stripped"""
        return [u.public() for u in self._users]

    def update_user_password(self, user_id: int, new_password: str) -> bool:
        for i, user in enumerate(self._users):
            if user.id == user_id:
                self._users[i] = user.model_copy(
                    update={"password_hash": hash_password(new_password, self.bcrypt_rounds)}
                )
                self.persist_snapshot()
                logger.info("Password updated", user_id=user_id)
                return True
        return False

    def count_users(self) -> int:
        return len(self._users)

    # Products

    def create_product(
        self, fields: Union[ProductInput, Mapping[str, Any]], creator_id: Optional[int]
    ) -> Optional[Product]:
        """Append a product; returns None when the fields do not form a valid product"""
        data = fields.model_dump() if isinstance(fields, ProductInput) else dict(fields)
        for key in _PRODUCT_MANAGED_FIELDS:
            data.pop(key, None)

        try:
            product = Product(
                id=self._sequences["products"],
                created_by=creator_id,
                created_at=self._now(),
                **data,
            )
        except (ValidationError, TypeError) as e:
            logger.warning("Rejected invalid product", error=str(e))
            return None
        self._next_id("products")
        self._products.append(product)
        self.persist_snapshot()
        logger.info("Product created", product_id=product.id, created_by=creator_id)
        return product

    def list_products(self) -> List[Product]:
        return list(self._products)

    def find_product_by_id(self, product_id: int) -> Optional[Product]:
        return next((p for p in self._products if p.id == product_id), None)

    def update_product(self, product_id: int, updates: Mapping[str, Any]) -> Optional[Product]:
        """Overwrite only the provided keys; returns None when the id is unknown or a value is invalid"""
        for i, product in enumerate(self._products):
            if product.id == product_id:
                changes = {k: v for k, v in updates.items() if k not in _PRODUCT_MANAGED_FIELDS}
                merged = product.model_dump()
                merged.update(changes)
                try:
                    updated = Product(**merged)
                except ValidationError as e:
                    logger.warning("Rejected invalid product update", product_id=product_id, error=str(e))
                    return None
                self._products[i] = updated
                self.persist_snapshot()
                logger.info("Product updated", product_id=product_id, fields=sorted(changes))
                return updated
        return None

    def delete_product(self, product_id: int) -> bool:
        remaining = [p for p in self._products if p.id != product_id]
        if len(remaining) == len(self._products):
            return False
        self._products = remaining
        self.persist_snapshot()
        logger.info("Product deleted", product_id=product_id)
        return True

    def count_products(self) -> int:
        return len(self._products)

    # Sessions

    def create_session(self, user_id: int, token: str) -> Session:
        now = self._now()
        session = Session(
            user_id=user_id,
            token=token,
            created_at=now,
            expires_at=now + self.session_expiry,
        )
        self._sessions[token] = session
        self.persist_snapshot()
        return session

    def validate_session(self, token: str) -> Optional[Session]:
        """Return the live session for token, purging it if it has expired"""
        session = self._sessions.get(token)
        if session is None:
            return None

        if session.is_expired(self._now()):
            del self._sessions[token]
            self.persist_snapshot()
            logger.info("Expired session removed", user_id=session.user_id)
            return None

        return session

    def delete_session(self, token: str) -> None:
        if self._sessions.pop(token, None) is not None:
            self.persist_snapshot()

    def list_sessions(self) -> List[Session]:
        return list(self._sessions.values())

    def count_sessions(self) -> int:
        return len(self._sessions)

    # Persistence

    def snapshot(self) -> Dict[str, Any]:
        return {
            "users": [u.model_dump(mode="json") for u in self._users],
            "products": [p.model_dump(mode="json") for p in self._products],
            "sessions": [s.model_dump(mode="json") for s in self._sessions.values()],
            "sequences": dict(self._sequences),
        }

    def persist_snapshot(self) -> None:
        """Write the full state to the durable slot"""
        self.storage.set_item(self.database_key, json.dumps(self.snapshot(), ensure_ascii=False))

    def load_snapshot(self) -> bool:
        """
        Replace in-memory state with the persisted snapshot.

        Missing or malformed data leaves the current state untouched and
        returns False; a collection absent from the document keeps its
        current value, or the seed data during construction.
        """
        raw = self.storage.get_item(self.database_key)
        if raw is None:
            return False

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("snapshot is not an object")
            if "users" in data:
                users = [User(**item) for item in data["users"]]
            else:
                users = self._users if self._loaded else self._seed_users()
            if "products" in data:
                products = [Product(**item) for item in data["products"]]
            else:
                products = self._products if self._loaded else self._seed_products()
            if "sessions" in data:
                sessions = {}
                for item in data["sessions"]:
                    session = Session(**item)
                    sessions[session.token] = session
            else:
                sessions = self._sessions
            stored_sequences = data.get("sequences") or {}
            if not isinstance(stored_sequences, dict):
                raise ValueError("sequences is not an object")
            # Never hand out an id at or below one already in use
            sequences = {
                "users": max(int(stored_sequences.get("users", 1)), max((u.id for u in users), default=0) + 1),
                "products": max(
                    int(stored_sequences.get("products", 1)), max((p.id for p in products), default=0) + 1
                ),
            }
        except (ValueError, TypeError, KeyError) as e:
            logger.warning("Stored snapshot is unreadable, keeping defaults", key=self.database_key, error=str(e))
            return False

        self._users = users
        self._products = products
        self._sessions = sessions
        self._sequences = sequences
        logger.info(
            "Snapshot loaded",
            users=len(self._users),
            products=len(self._products),
            sessions=len(self._sessions),
        )
        return True

    def reset_to_defaults(self) -> None:
        """Restore seed users and products, drop all sessions, persist"""
        self._apply_defaults()
        self.persist_snapshot()
        logger.warning("Database reset to defaults")

    def export_snapshot(self, exported_by: Optional[str]) -> Dict[str, Any]:
        """Backup document: redacted users, products, timestamp, exporter"""
        return {
            "users": [u.model_dump(mode="json") for u in self.list_users()],
            "products": [p.model_dump(mode="json") for p in self._products],
            "exported_at": self._now().isoformat(),
            "exported_by": exported_by,
        }
