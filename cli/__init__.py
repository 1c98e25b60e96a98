"""Sensor client CLI for the measurement service."""
