"""Utility helpers for the RSS reader."""
