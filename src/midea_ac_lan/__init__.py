"""LAN client for Midea air conditioner controllers."""

__version__ = "0.3.0"
