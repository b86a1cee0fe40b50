"""
HTTP clients for the site API and external game-data services
"""
