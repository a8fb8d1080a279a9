"""
Restaurant Service: public reads, admin-only writes.
Working windows are validated whenever they are set or changed.
"""
import logging
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import Settings, get_settings
from core.restaurant_config import validate_window_definition
from db.models_sqlalchemy import Restaurant
from db.repositories import RestaurantRepository
from domain.errors import (
    MalformedInputError,
    NotFoundError,
    PolicyViolationError,
    TransientError,
    UnauthorizedError,
)
from domain.models import Actor, RestaurantCreate, RestaurantUpdate
from domain.validation import parse_model


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "address", "district", "province", "postalcode", "open_time", "close_time")
WINDOW_FIELDS = ("open_time", "close_time", "timezone")


def _require_admin(actor: Actor, action: str) -> None:
    if not actor.is_admin:
        raise UnauthorizedError(
            f"User {actor.id} is not authorized to {action} restaurants",
            code="ADMIN_REQUIRED",
            details={"actor_id": actor.id, "action": action},
        )


class RestaurantService:
    """Service for managing restaurants."""

    def __init__(self, db_session: Session, settings: Optional[Settings] = None):
        self.db = db_session
        self.settings = settings or get_settings()
        self.restaurants = RestaurantRepository(db_session)

    def _commit(self, action: str, **context: Any) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action} restaurant: {e}", extra=context)
            raise TransientError(f"Cannot {action} restaurant", code="STORAGE_FAILURE",
                                 details=context) from e

    def _ensure_unique_name(self, name: str, restaurant_id: Optional[int] = None) -> None:
        existing = self.restaurants.get_by_name(name)
        if existing is not None and existing.id != restaurant_id:
            raise PolicyViolationError(
                f"Restaurant name already exists: {name}",
                code="DUPLICATE_NAME",
                details={"name": name},
            )

    def list_restaurants(self) -> List[Restaurant]:
        """Get all restaurants."""
        return self.restaurants.list()

    def get_restaurant(self, restaurant_id) -> Restaurant:
        """
        Get a restaurant by ID.

        Raises:
            NotFoundError: If restaurant not found
        """
        restaurant = self.restaurants.get(restaurant_id)
        if restaurant is None:
            raise NotFoundError(
                f"No restaurant with the id of {restaurant_id}",
                code="RESTAURANT_NOT_FOUND",
                details={"restaurant_id": restaurant_id},
            )
        return restaurant

    def create_restaurant(self, actor: Actor, data: Union[Dict[str, Any], RestaurantCreate]) -> Restaurant:
        """
        Create a restaurant.

        Args:
            actor: Caller identity (must be admin)
            data: Raw fields or a validated RestaurantCreate

        Raises:
            UnauthorizedError: Caller is not an admin
            MalformedInputError: Missing fields, bad clock times or unknown timezone
            PolicyViolationError: Name already taken
        """
        _require_admin(actor, "create")

        if isinstance(data, RestaurantCreate):
            payload = data
        else:
            data = dict(data or {})
            missing = [f for f in REQUIRED_FIELDS if data.get(f) in (None, "")]
            if missing:
                raise MalformedInputError(
                    f"Missing required fields: {', '.join(missing)}",
                    code="MISSING_FIELDS",
                    details={"missing": missing},
                )
            data.pop("average_rating", None)
            data.pop("review_count", None)
            payload = parse_model(RestaurantCreate, data, code="INVALID_RESTAURANT")

        timezone = payload.timezone or self.settings.default_timezone
        validate_window_definition(payload.open_time, payload.close_time, timezone).raise_for_errors()
        self._ensure_unique_name(payload.name)

        restaurant = Restaurant(**payload.model_dump(exclude={"timezone"}), timezone=timezone)
        self.db.add(restaurant)
        self._commit("create", name=payload.name)
        self.db.refresh(restaurant)

        logger.info(f"Created restaurant {restaurant.id}", extra={"restaurant_name": restaurant.name})
        return restaurant

    def update_restaurant(
        self,
        actor: Actor,
        restaurant_id,
        data: Union[Dict[str, Any], RestaurantUpdate],
    ) -> Restaurant:
        """
        Update restaurant fields. Rating aggregates cannot be set this way.

        Raises:
            UnauthorizedError: Caller is not an admin
            NotFoundError: Restaurant not found
            MalformedInputError: Unknown field, bad clock times or unknown timezone
            PolicyViolationError: Name already taken
        """
        _require_admin(actor, "update")
        restaurant = self.get_restaurant(restaurant_id)

        if not isinstance(data, RestaurantUpdate):
            data = parse_model(RestaurantUpdate, dict(data or {}), code="INVALID_RESTAURANT")
        changes = data.model_dump(exclude_unset=True)

        if any(f in changes for f in WINDOW_FIELDS):
            validate_window_definition(
                changes.get("open_time", restaurant.open_time),
                changes.get("close_time", restaurant.close_time),
                changes.get("timezone") or restaurant.timezone,
            ).raise_for_errors()
        if changes.get("timezone") is None:
            changes.pop("timezone", None)

        if changes.get("name"):
            self._ensure_unique_name(changes["name"], restaurant.id)

        for key, value in changes.items():
            setattr(restaurant, key, value)

        self._commit("update", restaurant_id=restaurant.id)
        self.db.refresh(restaurant)

        logger.info(f"Updated restaurant {restaurant.id}", extra={"fields": sorted(changes)})
        return restaurant

    def delete_restaurant(self, actor: Actor, restaurant_id) -> None:
        """
        Delete a restaurant together with its reservations and reviews.

        Raises:
            UnauthorizedError: Caller is not an admin
            NotFoundError: Restaurant not found
        """
        _require_admin(actor, "delete")
        restaurant = self.get_restaurant(restaurant_id)

        self.db.delete(restaurant)
        self._commit("delete", restaurant_id=restaurant_id)

        logger.info(f"Deleted restaurant {restaurant_id}", extra={"actor_id": actor.id})
