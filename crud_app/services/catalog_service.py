"""
Catalog service: what the view layer calls for dashboards, product
management, user listing, backups and resets.

Role checks happen here through SessionManager.has_permission; the Store
itself stays permission-agnostic.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..auth.session_manager import SessionManager
from ..models.product import Product, ProductInput
from ..models.results import DashboardStats, OperationResult
from ..utils.exceptions import InvalidInputError, NotFoundError, StorageError, UnauthenticatedError, UnauthorizedError
from ..utils.logger import get_logger
from ..utils.operations import run_operation
from .store import Store

logger = get_logger(__name__)

RECENT_PRODUCTS_LIMIT = 5
UNKNOWN_CREATOR = "Unknown"


def _describe_validation_error(error: ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "input"
    return f"Invalid value for {field}: {first.get('msg', 'invalid')}"


class CatalogService:
    """Product and admin operations on behalf of the current principal"""

    def __init__(self, store: Store, sessions: SessionManager):
        self.store = store
        self.sessions = sessions

    def _require_user(self):
        user = self.sessions.current_user()
        if user is None:
            raise UnauthenticatedError("You must be logged in")
        return user

    def _require_role(self, role: str):
        user = self._require_user()
        if not self.sessions.has_permission(role):
            logger.warning("Permission denied", user_id=user.id, required_role=role)
            raise UnauthorizedError("You do not have permission to view this section")
        return user

    # Dashboard

    def dashboard_stats(self) -> DashboardStats:
        products = self.store.list_products()
        return DashboardStats(
            total_users=self.store.count_users(),
            total_products=len(products),
            active_sessions=self.store.count_sessions(),
            total_inventory_value=sum(p.inventory_value for p in products),
            recent_products=list(reversed(products[-RECENT_PRODUCTS_LIMIT:])),
            generated_at=datetime.now(timezone.utc),
        )

    def storage_counts(self) -> Dict[str, int]:
        return {
            "users": self.store.count_users(),
            "products": self.store.count_products(),
            "sessions": self.store.count_sessions(),
        }

    # Products

    def search_products(self, term: str = "", category: str = "") -> List[Product]:
        products = self.store.list_products()

        if term:
            needle = term.lower()
            products = [
                p for p in products
                if needle in p.name.lower() or needle in p.category.lower()
            ]

        if category:
            products = [p for p in products if p.category == category]

        return products

    def list_categories(self) -> List[str]:
        seen: List[str] = []
        for product in self.store.list_products():
            if product.category not in seen:
                seen.append(product.category)
        return seen

    def creator_name(self, product: Product) -> str:
        if product.created_by is None:
            return UNKNOWN_CREATOR
        creator = self.store.find_user_by_id(product.created_by)
        return creator.name if creator else UNKNOWN_CREATOR

    def save_product(
        self, fields: Union[ProductInput, Mapping[str, Any]], product_id: Optional[int] = None
    ) -> OperationResult:
        """Create a product, or update the one with product_id"""
        return run_operation(self._save_product, fields, product_id)

    def _save_product(
        self, fields: Union[ProductInput, Mapping[str, Any]], product_id: Optional[int]
    ) -> OperationResult:
        user = self._require_user()

        try:
            data = fields if isinstance(fields, ProductInput) else ProductInput(**fields)
        except ValidationError as e:
            raise InvalidInputError(_describe_validation_error(e))

        if product_id is None:
            product = self.store.create_product(data, user.id)
            if product is None:
                raise InvalidInputError("Invalid product data")
            return OperationResult.ok(product, message="Product created")

        updated = self.store.update_product(product_id, data.model_dump())
        if updated is None:
            raise NotFoundError("Product not found")
        return OperationResult.ok(updated, message="Product updated")

    def delete_product(self, product_id: int) -> OperationResult:
        return run_operation(self._delete_product, product_id)

    def _delete_product(self, product_id: int) -> OperationResult:
        self._require_user()
        if not self.store.delete_product(product_id):
            raise NotFoundError("Product not found")
        return OperationResult.ok(message="Product deleted")

    # Admin

    def list_users(self) -> OperationResult:
        return run_operation(self._list_users)

    def _list_users(self) -> OperationResult:
        self._require_role("admin")
        return OperationResult.ok(self.store.list_users())

    def reset_database(self) -> OperationResult:
        return run_operation(self._reset_database)

    def _reset_database(self) -> OperationResult:
        user = self._require_role("admin")
        self.store.reset_to_defaults()
        logger.warning("Database reset requested", user_id=user.id)
        # Reset drops every session, including ours
        self.sessions.logout()
        return OperationResult.ok(message="Database reset")

    # Backups

    def export_data(self) -> OperationResult:
        return run_operation(self._export_data)

    def _export_data(self) -> OperationResult:
        user = self._require_user()
        return OperationResult.ok(self.store.export_snapshot(user.name))

    def export_to_file(self, directory: Union[str, Path]) -> OperationResult:
        """Write the export as crud_backup_YYYY-MM-DD.json and return its path"""
        return run_operation(self._export_to_file, directory)

    def _export_to_file(self, directory: Union[str, Path]) -> OperationResult:
        user = self._require_user()
        document = self.store.export_snapshot(user.name)

        target_dir = Path(directory)
        file_name = f"crud_backup_{datetime.now(timezone.utc).date().isoformat()}.json"
        path = target_dir / file_name
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise StorageError(f"Failed to write export to {path}: {str(e)}")

        logger.info("Data exported", user_id=user.id, path=str(path))
        return OperationResult.ok(path, message="Data exported")
