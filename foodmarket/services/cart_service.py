from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from foodmarket.data.models.cart import CartModel
from foodmarket.data.models.cart_item import CartItemModel
from foodmarket.domain.errors import Conflict, NotFound, ValidationError
from foodmarket.domain.statuses import CartStatus
from foodmarket.repos.cart_repo import CartRepo
from foodmarket.repos.catalog_repo import CatalogRepo
from foodmarket.utils.logging import get_logger
from foodmarket.utils.settings import Settings

logger = get_logger(__name__)


class CartService:
    """
    Use case'y koszyka przypietego do klucza sesji.
    Komendy (add, update, remove, clear, contact) zmieniaja stan i podbijaja updated_at,
    zapytanie (view) tylko czyta.
    """

    def __init__(self, db: Session, settings: Settings):
        self.repo = CartRepo(db)
        self.catalog = CatalogRepo(db)
        self.settings = settings

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _touch(self, cart: CartModel) -> None:
        #kazda akcja przedluza waznosc koszyka
        now = self._now()
        cart.updated_at = now
        cart.expires_at = now + timedelta(seconds=self.settings.cart_ttl_seconds)

    #query
    def get_cart(self, session_key: str) -> CartModel | None:
        return self.repo.get_active_cart(session_key)

    def cart_view(self, cart: CartModel, session_token: str | None = None) -> Dict[str, Any]:
        items = self.repo.get_cart_items(cart.id)
        total = sum((i.unit_price * i.quantity for i in items), Decimal("0.00"))

        return {
            "cart": {
                "id": cart.id,
                "session_id": cart.session_key,
                "customer_name": cart.customer_name,
                "customer_email": cart.customer_email,
                "customer_phone": cart.customer_phone,
                "address": cart.address,
                "status": cart.status,
                "created_at": cart.created_at,
                "updated_at": cart.updated_at,
                "expires_at": cart.expires_at,
            },
            "items": [
                {
                    "id": i.id,
                    "food_id": i.food_id,
                    "name": i.food.name if i.food else None,
                    "category": i.food.category if i.food else None,
                    "image": i.food.image if i.food else None,
                    "quantity": i.quantity,
                    "unit_price": i.unit_price,
                    "note": i.note,
                    "subtotal": i.unit_price * i.quantity,
                }
                for i in items
            ],
            "summary": {
                "total_items": sum(i.quantity for i in items),
                "subtotal": total,
                "total": total,
            },
            "session_token": session_token,
        }

    #commands
    def get_or_create_cart(self, session_key: str) -> CartModel:
        existing = self.repo.get_active_cart(session_key)
        if existing:
            return existing

        now = self._now()
        cart = CartModel(
            session_key=session_key,
            status=CartStatus.ACTIVE,
            created_at=now,
            updated_at=now,
            expires_at=now + timedelta(seconds=self.settings.cart_ttl_seconds),
        )
        try:
            created = self.repo.create_cart(cart)
            self.repo.commit()
        except IntegrityError:
            # rownolegly request zalozyl koszyk dla tej sesji
            self.repo.rollback()
            existing = self.repo.get_active_cart(session_key)
            if existing is None:
                raise
            return existing

        logger.info(f"Created cart {created.id} for session {session_key[:8]}...")
        return created

    def add_item(
        self,
        session_key: str,
        food_id: int,
        quantity: int,
        note: str | None = None,
    ) -> CartItemModel:
        if quantity is None or quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")

        cart = self.get_or_create_cart(session_key)

        food = self.catalog.get_food(food_id)
        if not food:
            raise NotFound(f"Food {food_id} not found")

        try:
            existing_item = self.repo.get_cart_item(cart.id, food_id)
            if existing_item:
                logger.info(
                    f"Food {food_id} already in cart {cart.id}, quantity "
                    f"{existing_item.quantity} -> {existing_item.quantity + quantity}"
                )
                # cena zostaje z pierwszego dodania
                existing_item.quantity += quantity
                if note is not None:
                    existing_item.note = note
                item = existing_item
            else:
                logger.info(f"Adding food {food_id} x{quantity} to cart {cart.id} at {food.price}")
                item = self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart.id,
                        food_id=food_id,
                        quantity=quantity,
                        unit_price=food.price,
                        note=note,
                    )
                )

            self._touch(cart)
            self.repo.commit()
        except IntegrityError:
            self.repo.rollback()
            raise Conflict("Cart was modified concurrently, retry the request")
        except Exception:
            self.repo.rollback()
            raise

        return item

    def _get_line_or_404(self, session_key: str, line_id: int) -> tuple[CartModel, CartItemModel]:
        cart = self.repo.get_active_cart(session_key)
        line = self.repo.get_line(cart.id, line_id) if cart else None
        if not line:
            raise NotFound("Item not found in cart")
        return cart, line

    def update_item_quantity(self, session_key: str, line_id: int, quantity: int) -> CartItemModel:
        # zero nie oznacza usuniecia, do tego jest remove_item
        if quantity is None or quantity <= 0:
            raise ValidationError("Quantity must be greater than 0")

        cart, line = self._get_line_or_404(session_key, line_id)
        try:
            line.quantity = quantity
            self._touch(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cart {cart.id} line {line_id} quantity set to {quantity}")
        return line

    def remove_item(self, session_key: str, line_id: int) -> None:
        cart, line = self._get_line_or_404(session_key, line_id)
        try:
            self.repo.delete_cart_item(line)
            self._touch(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Removed line {line_id} from cart {cart.id}")

    def clear_cart(self, session_key: str) -> int:
        cart = self.repo.get_active_cart(session_key)
        if not cart:
            return 0

        try:
            removed = self.repo.clear_items(cart.id)
            self._touch(cart)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cleared cart {cart.id}, removed {removed} lines")
        return removed

    def set_contact_info(
        self,
        session_key: str,
        name: str,
        email: str,
        phone: str | None = None,
        address: str | None = None,
    ) -> CartModel:
        name = (name or "").strip()
        email = (email or "").strip()
        if not name or not email:
            raise ValidationError("Customer name and email are required")

        cart = self.get_or_create_cart(session_key)
        cart.customer_name = name
        cart.customer_email = email
        cart.customer_phone = (phone or "").strip() or None
        cart.address = (address or "").strip() or None
        self._touch(cart)
        self.repo.commit()

        logger.info(f"Contact info set on cart {cart.id}")
        return cart

    def abandon_inactive_carts(self, now: datetime | None = None) -> int:
        """Aktywne koszyki bez ruchu dluzej niz TTL (albo po expires_at) -> abandoned."""
        now = now or self._now()
        inactive_before = now - timedelta(seconds=self.settings.cart_abandon_after_seconds)

        try:
            count = self.repo.abandon_inactive(inactive_before=inactive_before, now=now)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Marked {count} carts as abandoned")
        return count
