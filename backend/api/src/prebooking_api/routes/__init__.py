"""API routes package.

- payments: Checkout session creation and payment status polling
- webhooks: PayMongo webhook receiver

All routers are registered in main.py.
"""

from prebooking_api.routes.payments import router as payments_router
from prebooking_api.routes.webhooks import router as webhooks_router

__all__ = [
    "payments_router",
    "webhooks_router",
]
