from cv_ingest.config import Settings, get_settings
from cv_ingest.core.fuser import fuse
from cv_ingest.core.schemas import CVRecord, ExperienceItem


def test_defaults():
    settings = Settings()
    assert settings.date_window_years == 1
    assert settings.max_skills == 80
    assert settings.max_bullets_per_item == 25


def test_window_from_environment(monkeypatch):
    monkeypatch.setenv("CV_INGEST_DATE_WINDOW_YEARS", "0")
    get_settings.cache_clear()
    try:
        assert get_settings().date_window_years == 0
        primary = CVRecord(experience=[ExperienceItem(employer="Acme", role="Engineer", start="2019")])
        assist = CVRecord(experience=[ExperienceItem(employer="Acme", role="Architect", start="2020")])
        assert len(fuse(primary, assist).experience) == 2
    finally:
        get_settings.cache_clear()
