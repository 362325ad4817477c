"""Shared utilities for PaymentFlow."""
