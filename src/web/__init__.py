"""
Web status/control API.
"""
