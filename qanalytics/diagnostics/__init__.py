"""
Diagnostics: structured event sinks and logging setup.

The analytics core reports what it did through an injected EventSink and never
configures logging itself; applications opt in via configure_logging().
"""
