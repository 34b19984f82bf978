"""Core functionality for metricol."""
