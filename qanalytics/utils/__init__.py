"""
Generic utility functions shared across modules.

Includes clock abstractions, numeric coercion helpers and summation reducers.
"""
