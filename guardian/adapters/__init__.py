"""
Outer adapters: CLI and configuration
"""
