"""Utility modules for the Google Photos folder sync tool."""
