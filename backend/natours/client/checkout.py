"""
Natours Client — Checkout Initiator
====================================

What:  Books a tour: fetch a checkout session, redirect to hosted payment.
Why:   Card details never touch our servers; the payment provider's hosted
       page collects them. We only pass along the session id issued by the
       booking API.
How:   1. GET /api/v1/bookings/checkout-session/{tourId} → {"session": {"id": ...}}
       2. redirector.redirect_to_checkout(session_id)
       Any failure (network, HTTP status, malformed body, provider rejection)
       is logged and shown as an error alert. No retry: the user starts a
       new attempt explicitly.
"""

import inspect
import logging
from typing import Any, Callable, Protocol
from urllib.parse import quote

import httpx

from natours.client.alerts import AlertBoard

logger = logging.getLogger(__name__)

CHECKOUT_SESSION_PATH = "/api/v1/bookings/checkout-session/{tour_id}"
DEFAULT_CHECKOUT_URL = "https://checkout.stripe.com/pay"
FALLBACK_ALERT = "Could not start the checkout. Please try again."


class CheckoutError(Exception):
    """Raised when the checkout session cannot be obtained or used."""


class CheckoutRedirectError(CheckoutError):
    """Raised when the payment provider refuses the redirect."""


class PaymentRedirector(Protocol):
    async def redirect_to_checkout(self, session_id: str) -> None:
        """Sends the user to the hosted checkout; raises CheckoutRedirectError on rejection."""
        ...


class HostedCheckoutRedirector:
    """
    Redirects to the provider's hosted checkout page.

    Args:
        publishable_key: Public API key ("pk_..."); a missing key is a rejection
        open_url:        Navigates to a URL; may be sync or async, falsy on failure
        checkout_url:    Base URL of the hosted checkout page
    """

    def __init__(
        self,
        publishable_key: str,
        open_url: Callable[[str], Any],
        checkout_url: str = DEFAULT_CHECKOUT_URL,
    ):
        self.publishable_key = publishable_key
        self.open_url = open_url
        self.checkout_url = checkout_url.rstrip("/")

    def url_for(self, session_id: str) -> str:
        return f"{self.checkout_url}/{quote(session_id, safe='')}"

    async def redirect_to_checkout(self, session_id: str) -> None:
        if not self.publishable_key.startswith("pk_"):
            raise CheckoutRedirectError("Payment provider rejected the publishable key.")
        if not session_id:
            raise CheckoutRedirectError("Checkout session id is empty.")

        opened = self.open_url(self.url_for(session_id))
        if inspect.isawaitable(opened):
            opened = await opened
        if opened is False:
            raise CheckoutRedirectError("Could not open the checkout page.")


async def fetch_checkout_session(http: httpx.AsyncClient, tour_id: str) -> str:
    """Asks the booking API for a checkout session and returns its id."""
    response = await http.get(CHECKOUT_SESSION_PATH.format(tour_id=quote(str(tour_id), safe="")))
    response.raise_for_status()
    try:
        session_id = response.json()["session"]["id"]
    except (ValueError, KeyError, TypeError) as exc:
        raise CheckoutError("Malformed checkout session response.") from exc
    if not isinstance(session_id, str) or not session_id:
        raise CheckoutError("Malformed checkout session response.")
    return session_id


def describe_failure(exc: Exception) -> str:
    """Message for the alert: the API's own message when it sent one."""
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            message = exc.response.json().get("message")
        except (ValueError, AttributeError):
            message = None
        if message:
            return str(message)
    if isinstance(exc, CheckoutError) and str(exc):
        return str(exc)
    return FALLBACK_ALERT


async def initiate_checkout(
    tour_id: str,
    *,
    http: httpx.AsyncClient,
    redirector: PaymentRedirector,
    alerts: AlertBoard,
) -> bool:
    """
    Starts the hosted checkout for `tour_id`.

    Returns:
        True once the redirect was handed off, False if an alert was shown.
    """
    try:
        session_id = await fetch_checkout_session(http, tour_id)
        await redirector.redirect_to_checkout(session_id)
    except (httpx.HTTPError, CheckoutError) as exc:
        logger.warning("Checkout for tour %s failed: %r", tour_id, exc)
        alerts.show("error", describe_failure(exc))
        return False
    except Exception as exc:
        # Redirectors raise their own error types (no browser, provider SDK)
        logger.exception("Checkout for tour %s failed unexpectedly", tour_id)
        alerts.show("error", describe_failure(exc))
        return False
    return True
