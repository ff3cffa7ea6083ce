"""
Natours Client — Checkout Flow
===============================

What:  The browser-side booking action, expressed as an async client.
How:   initiate_checkout() asks the booking API for a checkout session and
       hands its id to the payment provider's hosted redirect. Failures end
       up as a dismissable alert, never as an exception in the caller.
"""

from natours.client.alerts import Alert, AlertBoard
from natours.client.checkout import (
    CheckoutError,
    CheckoutRedirectError,
    HostedCheckoutRedirector,
    PaymentRedirector,
    initiate_checkout,
)

__all__ = [
    "Alert",
    "AlertBoard",
    "CheckoutError",
    "CheckoutRedirectError",
    "HostedCheckoutRedirector",
    "PaymentRedirector",
    "initiate_checkout",
]
