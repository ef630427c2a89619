"""Utility helpers for the InfluxDB publisher."""
