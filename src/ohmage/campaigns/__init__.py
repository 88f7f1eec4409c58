"""
Campaigns: storage, search and transactional updates.

NOTE:
Keep this package __init__ lightweight. Importing models here would map
the ORM as a side effect of importing any submodule.
"""

__all__: list[str] = []
