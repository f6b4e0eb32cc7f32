"""
Theurgy - Command implementations for calltest.

- drive: send setData, time it, then read getData back
"""
