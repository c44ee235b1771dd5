"""
Application configuration for the Price Tracker

All settings come from environment variables (a local .env file is loaded
first). Only the BaaS URL and anon key are required to run the app; admin
scripts additionally need the service role key.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_SEARCH_RADIUS = 2000  # meters
DEFAULT_STORAGE_FILE = Path.home() / ".price-tracker" / "storage.json"


@dataclass
class Settings:
    """Runtime settings resolved from the environment"""
    supabase_url: str
    supabase_anon_key: str
    supabase_service_key: Optional[str] = None
    googlemaps_api_key: Optional[str] = None
    mapbox_access_token: Optional[str] = None
    search_radius_meters: int = DEFAULT_SEARCH_RADIUS
    anonymous_user_file: Path = DEFAULT_STORAGE_FILE
    currency: str = "JPY"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        Raises:
            ValueError: If SUPABASE_URL or SUPABASE_ANON_KEY is missing
        """
        load_dotenv()

        supabase_url = os.getenv("SUPABASE_URL")
        supabase_anon_key = os.getenv("SUPABASE_ANON_KEY")
        if not supabase_url or not supabase_anon_key:
            raise ValueError(
                "SUPABASE_URL and SUPABASE_ANON_KEY are required. "
                "Please set them in your .env file."
            )

        radius = os.getenv("SEARCH_RADIUS_METERS")
        storage_file = os.getenv("ANONYMOUS_USER_FILE")

        return cls(
            supabase_url=supabase_url.rstrip("/"),
            supabase_anon_key=supabase_anon_key,
            supabase_service_key=os.getenv("SUPABASE_SERVICE_KEY") or None,
            googlemaps_api_key=os.getenv("GOOGLEMAPS_API_KEY") or None,
            mapbox_access_token=os.getenv("MAPBOX_ACCESS_TOKEN") or None,
            search_radius_meters=int(radius) if radius else DEFAULT_SEARCH_RADIUS,
            anonymous_user_file=Path(storage_file).expanduser() if storage_file else DEFAULT_STORAGE_FILE,
            currency=os.getenv("CURRENCY", "JPY"),
        )
