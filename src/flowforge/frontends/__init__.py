"""Frontends - user interfaces for FlowForge.

Available frontends:
    cli: Command-line interface (flowforge command)
"""
