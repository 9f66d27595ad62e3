import pytest

from bid_scraper.config import DEFAULT_CONFIG_PATH, Config, DatabaseConfig, load_config


def test_bundled_defaults():
    config = load_config()

    assert DEFAULT_CONFIG_PATH.exists()
    assert config.scheduler.interval_minutes == 15
    assert config.browser.navigation_timeout == 60
    assert config.browser.element_timeout == 30
    assert config.scraping.default_due_days == 30
    assert config.database.fallback_to_memory is True


def test_load_from_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "scheduler:\n"
        "  interval_minutes: 5\n"
        "scraping:\n"
        "  portal_urls:\n"
        "    county: https://bids.example.gov/open\n"
    )

    config = load_config(str(path))

    assert config.scheduler.interval_minutes == 5
    assert config.scraping.portal_urls == {"county": "https://bids.example.gov/open"}
    assert config.browser.headless is True


def test_config_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("app:\n  name: Staging Scraper\n")
    monkeypatch.setenv("BID_SCRAPER_CONFIG", str(path))

    assert load_config().app.name == "Staging Scraper"


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert load_config(str(path)) == Config()


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))


def test_database_url_from_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://bids@db/bids")

    assert DatabaseConfig(url="sqlite:///bids.db").url == "postgresql://bids@db/bids"


def test_invalid_interval_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("scheduler:\n  interval_minutes: 0\n")

    with pytest.raises(ValueError):
        load_config(str(path))
