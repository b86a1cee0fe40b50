"""
Core configuration and application context
"""
