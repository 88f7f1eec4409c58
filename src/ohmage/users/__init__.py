"""
User accounts and user information.
"""
