"""
Services package for radiko-watch

This package contains all business logic and service layer components.
"""
from radiko_watch.services.match_query_service import get_artist_programs, list_artists
from radiko_watch.services.schedule_fetch_service import fetch_and_process
from radiko_watch.services.scheduler_service import fetch_scheduler

__all__ = [
    'get_artist_programs',
    'list_artists',
    'fetch_and_process',
    'fetch_scheduler',
]
