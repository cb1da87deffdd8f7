"""Vendor provider definitions.

Each module exposes ``KEY`` and ``create_provider(max_depth=..., **options)``.
``PLATFORMS`` lists them in registration order, which is also the tie-break
order when several providers match one URL.
"""

from . import (
    adobe_analytics,
    adobe_launch,
    adobe_web_sdk,
    facebook_pixel,
    google_analytics,
    google_analytics4,
    google_tag_manager,
    linkedin,
    microsoft_clarity,
    pinterest,
    tiktok,
    twitter,
)

PLATFORMS = [
    google_analytics4,
    google_analytics,
    adobe_analytics,
    facebook_pixel,
    google_tag_manager,
    adobe_launch,
    tiktok,
    pinterest,
    linkedin,
    twitter,
    microsoft_clarity,
    adobe_web_sdk,
]

__all__ = ["PLATFORMS"]
