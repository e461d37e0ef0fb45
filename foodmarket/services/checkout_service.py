# foodmarket/services/checkout_service.py
"""
Checkout: koszyk -> platnosc -> zamowienia.

Sciezka karty: create_payment_intent tworzy intent w Stripe i lokalny wpis 'pending';
confirm_payment sprawdza status bezposrednio w Stripe i dopiero wtedy, w jednej
transakcji, tworzy zamowienia (jedno na pozycje zapisana przy tworzeniu intentu),
oznacza platnosc 'succeeded' i koszyk 'converted'.

Gotowka/QR: bez bramki, zamowienia od razu w 'pending-payment' / 'pending-verification',
koszyk konwertowany optymistycznie, potwierdzenie recznie przez obsluge.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from foodmarket.data.models.cart import CartModel
from foodmarket.data.models.cart_item import CartItemModel
from foodmarket.data.models.order import OrderModel
from foodmarket.data.models.payment import PaymentModel
from foodmarket.domain.errors import (
    Conflict,
    EmptyCart,
    GatewayError,
    InvalidAmount,
    InvalidState,
    NotFound,
    PaymentNotCompleted,
)
from foodmarket.domain.statuses import CartStatus, OrderStatus, PaymentMethod, PaymentStatus
from foodmarket.repos.cart_repo import CartRepo
from foodmarket.repos.order_repo import OrderRepo
from foodmarket.repos.payment_repo import PaymentRepo
from foodmarket.services.payment_gateway import StripeGateway, to_minor_units
from foodmarket.utils.logging import get_logger
from foodmarket.utils.settings import Settings

logger = get_logger(__name__)

# status w Stripe -> status lokalny (pozostale nie zmieniaja wpisu)
GATEWAY_STATUS_MAP = {
    "processing": PaymentStatus.PROCESSING,
    "canceled": PaymentStatus.CANCELED,
}

MANUAL_ORDER_STATUS = {
    PaymentMethod.CASH: OrderStatus.PENDING_PAYMENT,
    PaymentMethod.QR: OrderStatus.PENDING_VERIFICATION,
}


class CheckoutService:
    def __init__(self, db: Session, gateway: StripeGateway, settings: Settings):
        self.db = db
        self.carts = CartRepo(db)
        self.payments = PaymentRepo(db)
        self.orders = OrderRepo(db)
        self.gateway = gateway
        self.settings = settings

    # ---------- helpers ----------

    def _checkout_ready_cart(
        self, session_key: str, for_update: bool = False
    ) -> tuple[CartModel, List[CartItemModel], Decimal]:
        cart = self.carts.get_active_cart(session_key, for_update=for_update)
        if not cart:
            raise NotFound("Cart not found")

        if not cart.has_contact_info():
            raise InvalidState("Customer name and email are required before checkout")

        items = self.carts.get_cart_items(cart.id)
        if not items:
            raise EmptyCart("Cart is empty")

        return cart, items, self._total(items)

    @staticmethod
    def _total(items: List[CartItemModel]) -> Decimal:
        return sum((i.unit_price * i.quantity for i in items), Decimal("0.00"))

    @staticmethod
    def _items_snapshot(items: List[CartItemModel]) -> Dict[str, Any]:
        return {
            "items": [
                {
                    "food_id": i.food_id,
                    "name": i.food.name if i.food else None,
                    "quantity": i.quantity,
                    "unit_price": str(i.unit_price),
                    "note": i.note,
                }
                for i in items
            ]
        }

    @staticmethod
    def _lines_from_snapshot(details: Dict[str, Any] | None) -> List[Dict[str, Any]]:
        # pozycje zamrozone przy tworzeniu intentu, to za nie klient zaplacil
        return [
            {
                "food_id": line["food_id"],
                "quantity": int(line["quantity"]),
                "unit_price": Decimal(line["unit_price"]),
                "note": line.get("note"),
            }
            for line in (details or {}).get("items", [])
        ]

    @staticmethod
    def _lines_from_items(items: List[CartItemModel]) -> List[Dict[str, Any]]:
        return [
            {"food_id": i.food_id, "quantity": i.quantity, "unit_price": i.unit_price, "note": i.note}
            for i in items
        ]

    def _materialize_orders(
        self,
        cart: CartModel,
        lines: List[Dict[str, Any]],
        payment: PaymentModel,
        status: str,
    ) -> List[int]:
        order_ids = []
        for line in lines:
            order = self.orders.create_order(
                OrderModel(
                    food_id=line["food_id"],
                    payment_id=payment.id,
                    customer_name=cart.customer_name,
                    customer_email=cart.customer_email,
                    customer_phone=cart.customer_phone,
                    address=cart.address,
                    quantity=line["quantity"],
                    total_price=line["unit_price"] * line["quantity"],
                    status=status,
                    payment_method=payment.method,
                    notes=line["note"],
                )
            )
            order_ids.append(order.id)
        return order_ids

    def _convert_cart(self, cart: CartModel) -> None:
        cart.status = CartStatus.CONVERTED
        cart.updated_at = datetime.now(timezone.utc)

    def _release_open_intents(self, cart: CartModel) -> None:
        """Najwyzej jeden niezakonczony intent na koszyk: poprzednie sa anulowane."""
        for payment in self.payments.get_open_card_payments(cart.id):
            remote = self.gateway.retrieve_intent(payment.gateway_intent_id)

            if remote.status == StripeGateway.SUCCEEDED:
                raise Conflict(
                    "A previous payment for this cart already succeeded, confirm it instead",
                    error=payment.gateway_intent_id,
                )
            if remote.status == "processing":
                raise Conflict(
                    "A previous payment for this cart is still processing",
                    error=payment.gateway_intent_id,
                )
            if remote.status != "canceled":
                self.gateway.cancel_intent(payment.gateway_intent_id)

            payment.status = PaymentStatus.CANCELED
            self.payments.commit()
            logger.info(f"Canceled previous intent {payment.gateway_intent_id} for cart {cart.id}")

    def _record_remote_status(self, payment: PaymentModel, remote_status: str) -> None:
        local = GATEWAY_STATUS_MAP.get(remote_status)
        if local and payment.status in PaymentStatus.NON_TERMINAL and payment.status != local:
            payment.status = local
            self.payments.commit()

    # ---------- karta ----------

    def create_payment_intent(self, session_key: str) -> Dict[str, Any]:
        cart, items, total = self._checkout_ready_cart(session_key)

        if total <= 0:
            raise InvalidAmount("Total must be greater than 0")
        if total < self.settings.payment_min_amount:
            raise InvalidAmount(
                f"Total {total} is below the minimum chargeable amount {self.settings.payment_min_amount}"
            )

        currency = self.settings.payment_currency
        amount_minor = to_minor_units(total, currency)

        self._release_open_intents(cart)

        # najpierw bramka: jej blad nie zostawia lokalnego wpisu
        intent = self.gateway.create_intent(
            amount_minor,
            currency,
            metadata={
                "cart_id": str(cart.id),
                "session_id": cart.session_key,
                "items_count": str(len(items)),
            },
            description=f"Order from {cart.customer_name}",
            receipt_email=cart.customer_email,
        )

        try:
            payment = self.payments.create_payment(
                PaymentModel(
                    cart_id=cart.id,
                    gateway_intent_id=intent.id,
                    method=PaymentMethod.CARD,
                    amount=total,
                    currency=currency,
                    status=PaymentStatus.PENDING,
                    details=self._items_snapshot(items),
                )
            )
            self.payments.commit()
        except Exception:
            self.payments.rollback()
            logger.error(f"Failed to persist payment for intent {intent.id}, canceling it", exc_info=True)
            try:
                self.gateway.cancel_intent(intent.id)
            except GatewayError:
                logger.error(f"Orphaned payment intent {intent.id} could not be canceled")
            raise

        logger.info(f"Payment {payment.id} ({intent.id}) created for cart {cart.id}: {total} {currency}")

        return {
            "client_secret": intent.client_secret,
            "payment_intent_id": intent.id,
            "payment_id": payment.id,
            "amount": total,
            "currency": currency,
        }

    def confirm_payment(self, gateway_intent_id: str) -> Dict[str, Any]:
        payment = self.payments.get_by_gateway_id(gateway_intent_id)
        if not payment:
            raise NotFound("Payment not found")

        existing = self.orders.get_order_ids_for_payment(payment.id)
        if existing:
            logger.info(f"Payment {payment.id} already processed, orders {existing}")
            return {"order_ids": existing, "payment_id": payment.id, "already_processed": True}

        # status tylko z bramki, nigdy od klienta
        remote = self.gateway.retrieve_intent(gateway_intent_id)
        if remote.status != StripeGateway.SUCCEEDED:
            self._record_remote_status(payment, remote.status)
            raise PaymentNotCompleted(
                f"Payment has not been completed (status: {remote.status})",
                gateway_status=remote.status,
            )

        if remote.amount != to_minor_units(payment.amount, payment.currency):
            logger.error(
                f"Amount mismatch for {gateway_intent_id}: gateway={remote.amount}, local={payment.amount}"
            )
            raise Conflict("Charged amount does not match the payment record")

        try:
            payment = self.payments.get_by_gateway_id(gateway_intent_id, for_update=True)

            # drugi rownolegly confirm czeka na blokadzie i trafia tutaj
            existing = self.orders.get_order_ids_for_payment(payment.id)
            if existing:
                self.payments.commit()
                return {"order_ids": existing, "payment_id": payment.id, "already_processed": True}

            cart = self.carts.get_cart(payment.cart_id, for_update=True)
            # porzucony przez sweep koszyk nadal moze zostac oplacony
            if cart.status not in (CartStatus.ACTIVE, CartStatus.ABANDONED):
                raise Conflict(f"Cart {cart.id} is already {cart.status}")

            # zmiany koszyka po utworzeniu intentu nie wplywaja na zamowienia
            lines = self._lines_from_snapshot(payment.details)
            if not lines:
                raise InvalidState(f"Payment {payment.id} has no item snapshot")
            if sum((line["unit_price"] * line["quantity"] for line in lines), Decimal("0.00")) != payment.amount:
                raise Conflict("Item snapshot does not match the payment amount")

            order_ids = self._materialize_orders(cart, lines, payment, OrderStatus.CONFIRMED)

            payment.status = PaymentStatus.SUCCEEDED
            payment.order_id = order_ids[0]
            self._convert_cart(cart)

            self.payments.commit()
        except Exception:
            self.payments.rollback()
            logger.error(f"Confirmation of {gateway_intent_id} rolled back", exc_info=True)
            raise

        logger.info(f"Payment {payment.id} confirmed, created orders {order_ids}")
        return {"order_ids": order_ids, "payment_id": payment.id, "already_processed": False}

    def get_payment_status(self, gateway_intent_id: str) -> Dict[str, Any]:
        payment = self.payments.get_by_gateway_id(gateway_intent_id)
        if not payment:
            raise NotFound("Payment not found")

        remote = self.gateway.retrieve_intent(gateway_intent_id)
        return {
            "gateway_status": remote.status,
            "status": payment.status,
            "order_id": payment.order_id,
            "amount": payment.amount,
            "currency": payment.currency,
        }

    def handle_gateway_event(self, event: Any) -> Dict[str, Any]:
        event_type = event["type"]
        intent_id = event["data"]["object"]["id"]
        logger.info(f"Gateway event {event_type} for {intent_id}")

        if event_type == "payment_intent.succeeded":
            try:
                result = self.confirm_payment(intent_id)
            except NotFound:
                logger.warning(f"Webhook for unknown payment intent {intent_id}")
                return {"handled": False}
            except Conflict as e:
                # pieniadze pobrane, zamowien brak - do recznego wyjasnienia
                logger.error(f"Webhook confirmation conflict for {intent_id}: {e.message}")
                return {"handled": False}
            return {"handled": True, "order_ids": result["order_ids"]}

        if event_type in ("payment_intent.payment_failed", "payment_intent.canceled"):
            payment = self.payments.get_by_gateway_id(intent_id)
            if not payment:
                logger.warning(f"Webhook for unknown payment intent {intent_id}")
                return {"handled": False}
            if payment.status in PaymentStatus.NON_TERMINAL:
                payment.status = (
                    PaymentStatus.FAILED
                    if event_type == "payment_intent.payment_failed"
                    else PaymentStatus.CANCELED
                )
                self.payments.commit()
            return {"handled": True}

        return {"handled": False}

    # ---------- gotowka / QR ----------

    def confirm_cash_order(self, session_key: str) -> Dict[str, Any]:
        return self._confirm_manual(session_key, PaymentMethod.CASH)

    def confirm_qr_order(self, session_key: str) -> Dict[str, Any]:
        return self._confirm_manual(session_key, PaymentMethod.QR)

    def _confirm_manual(self, session_key: str, method: str) -> Dict[str, Any]:
        order_status = MANUAL_ORDER_STATUS[method]

        # otwarty intent karty nie moze zostac oplacony po konwersji koszyka
        open_cart = self.carts.get_active_cart(session_key)
        if open_cart:
            self._release_open_intents(open_cart)

        try:
            cart, items, total = self._checkout_ready_cart(session_key, for_update=True)
            if total <= 0:
                raise InvalidAmount("Total must be greater than 0")

            payment = self.payments.create_payment(
                PaymentModel(
                    cart_id=cart.id,
                    gateway_intent_id=None,
                    method=method,
                    amount=total,
                    currency=self.settings.payment_currency,
                    status=PaymentStatus.PENDING,
                    details=self._items_snapshot(items),
                )
            )
            order_ids = self._materialize_orders(cart, self._lines_from_items(items), payment, order_status)
            payment.order_id = order_ids[0]
            self._convert_cart(cart)

            self.payments.commit()
        except Exception:
            self.payments.rollback()
            raise

        logger.info(f"{method} checkout for cart {cart.id}: orders {order_ids} in {order_status}")
        return {
            "order_ids": order_ids,
            "payment_id": payment.id,
            "order_status": order_status,
            "amount": total,
        }
