"""
Translation bundles and language detection
"""
