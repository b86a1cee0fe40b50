"""
Storage, sync and logging services
"""
