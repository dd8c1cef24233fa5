"""Payment-session and webhook-reconciliation core for bus pre-bookings."""
