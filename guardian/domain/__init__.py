"""
Domain services built on the remote execution layer
"""
