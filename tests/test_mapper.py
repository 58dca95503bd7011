"""Tests for upstream/mapper.py: the pure upstream-to-VideoRecord mapping."""

import copy

import pytest

from conftest import make_movie
from upstream.mapper import (
    collect_qualities,
    compute_rating,
    detect_quality_flags,
    estimate_duration,
    format_duration,
    format_views,
    map_movie,
    map_movies,
    pick_preview_url,
    resolve_author,
)

MB = 1024 * 1024


class TestCollectQualities:
    def test_lowercases_quality_keys(self):
        videos = [{"Quality": "1080P", "Url": "a"}, {"Quality": "4K", "Url": "b"}]
        assert collect_qualities(videos) == {"1080p": "a", "4k": "b"}

    def test_skips_entries_missing_quality_or_url(self):
        videos = [
            {"Quality": "720p"},
            {"Url": "orphan"},
            {"Quality": "", "Url": "empty-quality"},
            {"Quality": "480p", "Url": "ok"},
        ]
        assert collect_qualities(videos) == {"480p": "ok"}

    def test_numeric_quality_label(self):
        assert collect_qualities([{"Quality": 720, "Url": "u"}]) == {"720": "u"}

    @pytest.mark.parametrize("videos", [None, "nope", {"Quality": "720p"}, [None, 3, "x"]])
    def test_malformed_input_gives_empty_map(self, videos):
        assert collect_qualities(videos) == {}


class TestQualityFlags:
    def test_no_keys(self):
        flags = detect_quality_flags({})
        assert not flags.is_hd
        assert not flags.is_4k

    @pytest.mark.parametrize("key", ["1080p", "1080", "720p", "720"])
    def test_hd_keys(self, key):
        flags = detect_quality_flags({key: "u"})
        assert flags.is_hd
        assert not flags.is_4k

    @pytest.mark.parametrize("key", ["2160p", "4k", "2160"])
    def test_4k_suppresses_hd(self, key):
        flags = detect_quality_flags({key: "u", "1080p": "u", "720p": "u"})
        assert flags.is_4k
        assert not flags.is_hd

    def test_480_only_is_not_hd(self):
        flags = detect_quality_flags({"480p": "u"})
        assert flags.has_480
        assert not flags.is_hd


class TestPickPreviewUrl:
    def test_prefers_720(self):
        q = {"1080p": "hi", "720p": "mid", "480p": "lo"}
        assert pick_preview_url(q, []) == "mid"

    def test_bare_720_key(self):
        assert pick_preview_url({"720": "mid", "1080p": "hi"}, []) == "mid"

    def test_then_1080(self):
        assert pick_preview_url({"1080p": "hi", "480p": "lo"}, []) == "hi"

    def test_then_480(self):
        assert pick_preview_url({"480": "lo", "2160p": "uhd"}, []) == "lo"

    def test_falls_back_to_first_raw_entry(self):
        videos = [{"Quality": "2160p", "Url": "uhd"}, {"Quality": "360p", "Url": "tiny"}]
        assert pick_preview_url(collect_qualities(videos), videos) == "uhd"

    def test_first_raw_entry_without_quality(self):
        videos = [{"Url": "raw-only"}]
        assert pick_preview_url(collect_qualities(videos), videos) == "raw-only"

    def test_none_when_nothing_available(self):
        assert pick_preview_url({}, []) is None
        assert pick_preview_url({}, [{"Quality": "720p"}]) is None


class TestFormatViews:
    @pytest.mark.parametrize("count, expected", [
        (2_500_000, "2.5M"),
        (1_000_000, "1.0M"),
        (2_500, "2.5K"),
        (1_000, "1.0K"),
        (999, "999"),
        (250, "250"),
        (0, "0"),
        (None, "0"),
        ("12345", "12.3K"),
        ("garbage", "0"),
    ])
    def test_format(self, count, expected):
        assert format_views(count) == expected


class TestComputeRating:
    def test_floor_applied(self):
        assert compute_rating(0, 100) == 85

    def test_ratio_above_floor(self):
        assert compute_rating(92, 100) == 92

    def test_rounds_half_up(self):
        # 112.5 exactly; round() would give 112
        assert compute_rating(9, 8) == 113

    def test_no_views(self):
        assert compute_rating(10, 0) == 95
        assert compute_rating(None, None) == 95

    def test_string_numbers(self):
        assert compute_rating("99", "100") == 99

    def test_overflowing_ratio_uses_floor(self):
        assert compute_rating(1e308, 1) == 85
        assert compute_rating(1e308, 1e-300) == 85


class TestFormatDuration:
    @pytest.mark.parametrize("seconds, expected", [
        (0, "0:00"),
        (None, "0:00"),
        (60, "1:00"),
        (323, "5:23"),
        (3735, "1:02:15"),
        (7200, "2:00:00"),
    ])
    def test_format(self, seconds, expected):
        assert format_duration(seconds) == expected


class TestEstimateDuration:
    def _flags(self, *keys):
        return detect_quality_flags({k: "u" for k in keys})

    def test_no_file_size_is_placeholder(self):
        videos = [{"Quality": "720p", "Url": "u"}]
        assert estimate_duration(videos, self._flags("720p")) == "0:00"

    def test_720_tier(self):
        videos = [{"FileSize": 10 * MB}]
        assert estimate_duration(videos, self._flags("720p")) == "10:00"

    def test_1080_tier(self):
        videos = [{"FileSize": 15 * MB}]
        assert estimate_duration(videos, self._flags("1080p")) == "10:00"

    def test_fractional_minutes_become_seconds(self):
        videos = [{"FileSize": int(10.5 * MB)}]
        assert estimate_duration(videos, self._flags("720p")) == "10:30"

    def test_4k_tier(self):
        videos = [{"FileSize": 30 * MB}]
        assert estimate_duration(videos, self._flags("2160p", "1080p")) == "10:00"

    def test_low_tier(self):
        videos = [{"FileSize": 5 * MB}]
        assert estimate_duration(videos, self._flags("480p")) == "10:00"

    def test_capped_at_120_minutes(self):
        videos = [{"FileSize": 500 * MB}]
        assert estimate_duration(videos, self._flags("720p")) == "2:00:00"

    def test_at_least_one_minute(self):
        videos = [{"FileSize": 1024}]
        assert estimate_duration(videos, self._flags("720p")) == "1:00"

    def test_uses_first_known_size(self):
        videos = [{"Quality": "720p", "Url": "u"}, {"FileSize": 20 * MB}, {"FileSize": 90 * MB}]
        assert estimate_duration(videos, self._flags("720p")) == "20:00"

    def test_never_negative_seconds(self):
        # 2.75 min must not render as "3:-15"
        videos = [{"FileSize": int(2.75 * MB)}]
        assert estimate_duration(videos, self._flags("720p")) == "2:45"


class TestResolveAuthor:
    def test_subcategory_first(self, movie):
        assert resolve_author(movie, 1, 30, 0) == "Road Trips"

    def test_director_second(self):
        assert resolve_author({"Director": "Ann", "SubCategory": {}}, 1, 30, 0) == "Ann"

    def test_synthesized_channel(self):
        assert resolve_author({}, 3, 20, 4) == "Channel45"

    def test_malformed_subcategory(self):
        assert resolve_author({"SubCategory": "flat-string"}, 1, 10, 0) == "Channel1"


class TestMapMovie:
    def test_full_record(self, movie):
        video = map_movie(movie, 2, 2, 30)
        assert video["id"] == 33
        assert video["title"] == "Sunset Drive"
        assert video["thumbnail"] == "https://cdn.example.com/thumbs/sunset.jpg"
        assert video["previewVideo"] == "https://cdn.example.com/v/sunset-720.mp4"
        assert video["views"] == "2.5K"
        assert video["rating"] == 92
        assert video["author"] == "Road Trips"
        assert video["isHd"] is True
        assert video["is4k"] is False
        assert video["isVr"] is False
        assert video["slug"] == "sunset-drive"
        assert video["_apiId"] == "65f1c0ffee0000000000abcd"
        assert video["createdAt"] == "2024-03-05T12:30:00.000Z"
        assert video["videoQualities"] == {
            "1080p": "https://cdn.example.com/v/sunset-1080.mp4",
            "720p": "https://cdn.example.com/v/sunset-720.mp4",
            "480p": "https://cdn.example.com/v/sunset-480.mp4",
        }
        # 150 MB at 1.5 MB/min (1080p tier)
        assert video["duration"] == "1:40:00"

    def test_no_videos(self):
        video = map_movie(make_movie(Videos=[]), 0, 1, 30)
        assert video["previewVideo"] is None
        assert video["isHd"] is False
        assert video["is4k"] is False
        assert video["videoQualities"] == {}
        assert video["duration"] == "0:00"

    def test_4k_record(self):
        videos = [
            {"Quality": "2160p", "Url": "uhd"},
            {"Quality": "1080p", "Url": "hi"},
            {"Quality": "720p", "Url": "mid"},
        ]
        video = map_movie(make_movie(Videos=videos), 0, 1, 30)
        assert video["is4k"] is True
        assert video["isHd"] is False

    def test_empty_record_uses_fallbacks(self):
        video = map_movie({}, 0, 1, 30)
        assert video == {
            "id": 1,
            "title": "Untitled",
            "thumbnail": "",
            "previewVideo": None,
            "duration": "0:00",
            "views": "0",
            "author": "Channel1",
            "isHd": False,
            "is4k": False,
            "isVr": False,
            "rating": 95,
            "createdAt": None,
            "videoQualities": {},
            "slug": None,
            "_apiId": None,
        }

    def test_poster_fallback_for_thumbnail(self):
        video = map_movie(make_movie(Thumbnail=""), 0, 1, 30)
        assert video["thumbnail"] == "https://cdn.example.com/posters/sunset.jpg"

    def test_release_date_fallback(self):
        record = make_movie(createdAt=None, ReleaseDate="2023-11-02")
        assert map_movie(record, 0, 1, 30)["createdAt"] == "2023-11-02T00:00:00.000Z"

    def test_unparsable_date_is_none(self):
        record = make_movie(createdAt="last tuesday")
        assert map_movie(record, 0, 1, 30)["createdAt"] is None

    @pytest.mark.parametrize("raw", ["0001-01-01T00:00:00+05:00", "9999-12-31T23:00:00-05:00"])
    def test_out_of_range_date_is_none(self, raw):
        record = make_movie(createdAt=raw)
        assert map_movie(record, 0, 1, 30)["createdAt"] is None

    def test_overflowing_likes(self):
        video = map_movie(make_movie(Likes=1e308, Views=1), 0, 1, 30)
        assert video["rating"] == 85
        assert video["views"] == "1"

    def test_id_ignores_upstream_id(self):
        a = map_movie(make_movie(_id="aaa"), 5, 1, 10)
        b = map_movie(make_movie(_id="bbb"), 5, 1, 10)
        assert a["id"] == b["id"] == 6

    @pytest.mark.parametrize("record", [
        None,
        [],
        "string",
        {"Videos": "not-a-list", "Views": "lots", "Likes": [1], "SubCategory": None},
        {"Videos": [None, {"Quality": None, "Url": None}], "Title": 42, "Slug": {}},
        {"createdAt": "0001-01-01T00:00:00+05:00"},
        {"createdAt": "9999-12-31T23:00:00-05:00", "ReleaseDate": "0001-01-01T00:00:00+01:00"},
        {"Likes": 1e308, "Views": 1},
        {"Likes": 1e308, "Views": 1e-300, "Videos": [{"Quality": "720p", "Url": "u", "FileSize": 1e308}]},
    ])
    def test_malformed_records_never_raise(self, record):
        video = map_movie(record, 0, 1, 30)
        assert video["id"] == 1
        assert video["title"] == "Untitled"

    def test_pure_and_idempotent(self, movie):
        snapshot = copy.deepcopy(movie)
        first = map_movie(movie, 3, 2, 24)
        second = map_movie(movie, 3, 2, 24)
        assert first == second
        assert movie == snapshot


class TestMapMovies:
    def test_positional_ids(self):
        records = [make_movie(Title=f"T{i}") for i in range(3)]
        videos = map_movies(records, 2, 3)
        assert [v["id"] for v in videos] == [4, 5, 6]
        assert [v["title"] for v in videos] == ["T0", "T1", "T2"]

    def test_empty_page(self):
        assert map_movies([], 1, 30) == []
