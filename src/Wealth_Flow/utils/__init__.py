"""Shared utilities for Wealth Flow."""
