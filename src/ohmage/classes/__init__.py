"""
Classes and their rosters.
"""
