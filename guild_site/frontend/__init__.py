"""
Server-rendered presentation components
"""
