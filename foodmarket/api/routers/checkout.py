# foodmarket/api/routers/checkout.py
from fastapi import APIRouter, Depends, Header, Request
from starlette.concurrency import run_in_threadpool

from foodmarket.api.deps import get_app_settings, get_checkout_service, get_gateway, get_session_key
from foodmarket.domain.schemas import (
    CheckoutConfigOut,
    ConfirmOut,
    ConfirmPaymentIn,
    ManualCheckoutOut,
    PaymentIntentOut,
    PaymentStatusOut,
)
from foodmarket.services.checkout_service import CheckoutService
from foodmarket.services.payment_gateway import StripeGateway
from foodmarket.utils.settings import Settings

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.get("/config", response_model=CheckoutConfigOut)
def checkout_config(settings: Settings = Depends(get_app_settings)):
    return {"publishable_key": settings.stripe_publishable_key, "currency": settings.payment_currency}


@router.post("/create-payment-intent", response_model=PaymentIntentOut)
def create_payment_intent(
    session_key: str = Depends(get_session_key),
    svc: CheckoutService = Depends(get_checkout_service),
):
    """Start platnosci karta dla calego koszyka sesji."""
    return svc.create_payment_intent(session_key)


@router.post("/confirm", response_model=ConfirmOut)
def confirm_payment(
    payload: ConfirmPaymentIn,
    svc: CheckoutService = Depends(get_checkout_service),
):
    """
    Potwierdzenie po stronie klienta. Status i tak jest sprawdzany w Stripe,
    wiele wywolan dla tego samego intentu zwraca te same zamowienia.
    """
    return svc.confirm_payment(payload.payment_intent_id)


@router.post("/confirm-efectivo", response_model=ManualCheckoutOut, status_code=201)
def confirm_cash(
    session_key: str = Depends(get_session_key),
    svc: CheckoutService = Depends(get_checkout_service),
):
    return svc.confirm_cash_order(session_key)


@router.post("/confirm-qr", response_model=ManualCheckoutOut, status_code=201)
def confirm_qr(
    session_key: str = Depends(get_session_key),
    svc: CheckoutService = Depends(get_checkout_service),
):
    return svc.confirm_qr_order(session_key)


@router.get("/payment-status/{intent_id}", response_model=PaymentStatusOut)
def payment_status(intent_id: str, svc: CheckoutService = Depends(get_checkout_service)):
    return svc.get_payment_status(intent_id)


@router.post("/webhook")
async def webhook(
    request: Request,
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
    gateway: StripeGateway = Depends(get_gateway),
    svc: CheckoutService = Depends(get_checkout_service),
):
    # podpis liczony z surowego body
    payload = await request.body()
    event = gateway.parse_webhook_event(payload, stripe_signature)
    result = await run_in_threadpool(svc.handle_gateway_event, event)
    return {"received": True, **result}
