"""Free State directory client.

Offline-capable client core for the Free State property directory: CSV
sheet ingestion, an expiring cache, a durable record store and replay of
actions queued while offline.
"""

from freestate.shared.constants import Application

__version__ = Application.VERSION

__all__ = ["__version__"]
