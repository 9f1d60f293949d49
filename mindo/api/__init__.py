"""Platform-level API routers (auth, users, tickets, notifications, admin, status)."""
