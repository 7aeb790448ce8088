"""Services: cache, record store, HTTP, sheets and sync."""
