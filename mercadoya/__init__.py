"""MercadoYa backend: catalog, accounts and orders with real-time notifications."""

__version__ = "1.0.0"
