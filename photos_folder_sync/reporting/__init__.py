"""Reporting of sync results."""
