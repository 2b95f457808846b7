"""Storefront kiosk controller."""
