"""
Proxy to the visualization server.
"""
