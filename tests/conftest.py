"""Shared pytest fixtures for TubeGate tests."""

import pytest

from config import Config, WebConfig, UpstreamConfig


def make_movie(**overrides) -> dict:
    """Upstream movie record shaped like the real api/movies/all entries."""
    record = {
        "_id": "65f1c0ffee0000000000abcd",
        "Title": "Sunset Drive",
        "Slug": "sunset-drive",
        "Thumbnail": "https://cdn.example.com/thumbs/sunset.jpg",
        "Poster": "https://cdn.example.com/posters/sunset.jpg",
        "Views": 2_500,
        "Likes": 2_300,
        "Director": "J. Doe",
        "SubCategory": {"Name": "Road Trips"},
        "createdAt": "2024-03-05T12:30:00.000Z",
        "Videos": [
            {"Quality": "1080p", "Url": "https://cdn.example.com/v/sunset-1080.mp4",
             "FileSize": 150 * 1024 * 1024},
            {"Quality": "720p", "Url": "https://cdn.example.com/v/sunset-720.mp4",
             "FileSize": 100 * 1024 * 1024},
            {"Quality": "480P", "Url": "https://cdn.example.com/v/sunset-480.mp4"},
        ],
    }
    record.update(overrides)
    return record


@pytest.fixture
def movie():
    return make_movie()


@pytest.fixture
def sample_config(tmp_path):
    """Minimal Config with safe defaults for testing."""
    return Config(
        web=WebConfig(host="127.0.0.1", port=9999),
        upstream=UpstreamConfig(
            base_url="https://upstream.test",
            default_country="US",
            default_limit=30,
        ),
    )


@pytest.fixture
def config_yaml(tmp_path):
    """Write a minimal config.yaml and return its path."""
    cfg = tmp_path / "config.yaml"
    cfg.write_text("""\
web:
  host: 127.0.0.1
  port: 8081
upstream:
  base_url: "https://movies.example.org"
  default_country: "GB"
  default_limit: 24
  timeout: 12.5
ads:
  - name: banner
    key: abcdef0123456789
    width: 320
    height: 50
""")
    return cfg
