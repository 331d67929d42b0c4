"""Scheduler module for notification, precache and cache maintenance tasks.

Schedule overview (service timezone):
  - every minute - Push notification tick
  - 01:00 daily  - Remove cached meals past retention
  - 03:00 Sunday - Clear school search cache
  - 04:00 Sunday - Prune stale access statistics
  - 05:30 daily  - Precache today's and tomorrow's meals
"""
