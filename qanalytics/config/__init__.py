"""
Configuration loading and validation.

Provides a strongly typed settings object for logging and parallel-reduction
knobs, loaded from environment variables with upfront validation.
"""
