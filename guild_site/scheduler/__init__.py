"""
Cron scheduling and scheduled refresh tasks
"""
