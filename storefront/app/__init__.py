"""Gesture-driven selection and session core for the storefront menu."""
