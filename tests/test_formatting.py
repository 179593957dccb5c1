from datetime import datetime, timezone

from vidpeer.db.models.videos import Video
from vidpeer.features.videos.formatting import format_video, format_videos, strip_scheme, video_exists


def make_video(**overrides):
    fields = dict(
        id=3,
        name="cat",
        description="a cat",
        tags=["pets"],
        author="alice",
        duration=12,
        pod_url="https://pod1.test",
        magnet_uri="magnet:?xt=urn:btih:cat",
        name_path="a.mp4",
        thumbnail="t.png",
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return Video(**fields)


def test_strip_scheme():
    assert strip_scheme("https://pod1.test") == "pod1.test"
    assert strip_scheme("http://pod1.test:9000") == "pod1.test:9000"
    assert strip_scheme("pod1.test") == "pod1.test"


def test_local_video_view():
    out = format_video(make_video(), static_path="/static/thumbnails/")

    assert out.is_local is True
    assert out.pod_url == "pod1.test"
    assert out.thumbnail_path == "/static/thumbnails/t.png"
    assert out.tags == ["pets"]
    assert "name_path" not in out.model_dump()


def test_remote_mirror_keeps_origin_thumbnail_url():
    video = make_video(name_path=None, pod_url="http://pod2.test", thumbnail="http://pod2.test/static/thumbnails/x.png")

    out = format_video(video, static_path="/static/thumbnails")

    assert out.is_local is False
    assert out.thumbnail_path == "http://pod2.test/static/thumbnails/x.png"


def test_format_videos_keeps_order_and_total():
    videos = [make_video(id=1, name="a"), make_video(id=2, name="b")]

    out = format_videos(videos, 10, static_path="/static/thumbnails")

    assert out.total == 10
    assert [v.name for v in out.data] == ["a", "b"]


def test_video_exists(tmp_path):
    local = make_video()
    assert video_exists(local, tmp_path) is False
    (tmp_path / "a.mp4").write_bytes(b"video")
    assert video_exists(local, tmp_path) is True

    assert video_exists(make_video(name_path=None), tmp_path) is True
