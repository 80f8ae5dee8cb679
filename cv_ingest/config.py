from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "CV Ingest (Resume Normalization Service)"
    log_level: str = "INFO"

    # Fuser: two jobs whose first years differ by at most this many years may be the same job
    date_window_years: int = 1

    # Caps shared by the normalizer and the fuser (must agree for self-fuse idempotence)
    max_skills: int = 80
    max_skill_length: int = 60
    max_bullets_per_item: int = 25
    max_certifications: int = 25

    # Rule-based parser
    max_parsed_bullets: int = 60
    identity_scan_lines: int = 18
    location_scan_lines: int = 30
    summary_max_chars: int = 900

    # Bounded search for misplaced experience/education arrays
    deep_search_max_depth: int = 4
    deep_search_max_results: int = 2

    model_config = SettingsConfigDict(
        env_prefix="CV_INGEST_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
