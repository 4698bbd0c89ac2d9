from __future__ import annotations

from pathlib import Path

from learnkids import __version__
from learnkids.core.config import DEFAULT_DATA_DIR, ServerSettings


def test_defaults() -> None:
    settings = ServerSettings.from_env({})
    assert settings.host == "0.0.0.0"
    assert settings.port == 8000
    assert settings.log_level == "INFO"
    assert settings.app_name == "learningkids-server"
    assert settings.app_version == __version__
    assert settings.data_dir == DEFAULT_DATA_DIR
    assert settings.session_idle_seconds == 3600.0
    assert settings.keepalive_seconds == 15.0
    assert settings.max_submission_length == 5000
    assert (settings.data_dir / "courses.json").is_file()


def test_environment_overrides(tmp_path: Path) -> None:
    settings = ServerSettings.from_env(
        {
            "BIND": "127.0.0.1",
            "PORT": "9001",
            "LOG_LEVEL": "debug",
            "APP_NAME": "kids",
            "APP_VERSION": "9.9.9",
            "LEARNKIDS_DATA_DIR": str(tmp_path),
            "LEARNKIDS_SESSION_IDLE_SECONDS": "120.5",
            "LEARNKIDS_KEEPALIVE_SECONDS": "5",
            "LEARNKIDS_MAX_SUBMISSION_LENGTH": "2000",
        }
    )
    assert settings.host == "127.0.0.1"
    assert settings.port == 9001
    assert settings.log_level == "DEBUG"
    assert settings.app_name == "kids"
    assert settings.app_version == "9.9.9"
    assert settings.data_dir == tmp_path
    assert settings.session_idle_seconds == 120.5
    assert settings.keepalive_seconds == 5.0
    assert settings.max_submission_length == 2000


def test_bad_numbers_fall_back_to_defaults() -> None:
    settings = ServerSettings.from_env(
        {
            "PORT": "eighty",
            "LEARNKIDS_SESSION_IDLE_SECONDS": "-1",
            "LEARNKIDS_KEEPALIVE_SECONDS": "nan",
            "LEARNKIDS_MAX_SUBMISSION_LENGTH": "0",
        }
    )
    assert settings.port == 8000
    assert settings.session_idle_seconds == 3600.0
    assert settings.keepalive_seconds == 15.0
    assert settings.max_submission_length == 5000
