"""
Battle.net authentication
"""
