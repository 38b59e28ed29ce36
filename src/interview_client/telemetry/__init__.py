"""Telemetry sinks and logging configuration."""
