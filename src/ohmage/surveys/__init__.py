"""
Survey responses and prompt response values.
"""
