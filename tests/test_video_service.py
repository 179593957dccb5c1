import asyncio
import io
import time

import pytest
from fastapi import HTTPException, UploadFile

from vidpeer.features.videos.pipeline import PublishPipeline, RetractPipeline
from vidpeer.features.videos.services import VideoService

from helpers import MP4_BYTES, FakeThumbnailer


class SlowThumbnailer(FakeThumbnailer):
    def __init__(self, thumbnails_dir, delay):
        super().__init__(thumbnails_dir)
        self.delay = delay

    def generate(self, video):
        time.sleep(self.delay)
        return super().generate(video)


def make_service(settings, repo, distributor, thumbnailer, broadcaster, probe=lambda path: 10):
    common = dict(distributor=distributor, thumbnailer=thumbnailer, repo=repo, broadcaster=broadcaster)
    return VideoService(
        repo=repo,
        publisher=PublishPipeline(pod_url=settings.POD_URL, **common),
        retractor=RetractPipeline(uploads_dir=settings.UPLOADS_DIR, **common),
        settings=settings,
        duration_probe=probe,
    )


def upload(svc):
    file = UploadFile(file=io.BytesIO(MP4_BYTES), filename="clip.mp4")
    return svc.upload(file, name="cat", description="", tags=["pets"], author="alice")


def test_upload_publishes_and_keeps_the_file(settings, video_repo, distributor, thumbnailer, broadcaster):
    svc = make_service(settings, video_repo, distributor, thumbnailer, broadcaster)

    result = asyncio.run(upload(svc))

    assert result.announced is True
    assert [p.name for p in settings.UPLOADS_DIR.iterdir()] == [result.video.name_path]


def test_cancelled_upload_compensates_every_step(settings, video_repo, distributor, broadcaster):
    thumbnailer = SlowThumbnailer(settings.THUMBNAILS_DIR, delay=0.3)
    svc = make_service(settings, video_repo, distributor, thumbnailer, broadcaster)

    async def scenario():
        task = asyncio.ensure_future(upload(svc))
        await asyncio.sleep(0.1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert video_repo.count() == 0
    [(_, handle)] = distributor.seeded
    assert distributor.unseeded == [handle]
    assert list(settings.UPLOADS_DIR.iterdir()) == []
    assert list(settings.THUMBNAILS_DIR.iterdir()) == []
    assert broadcaster.announced == []


def test_rejected_duration_removes_the_upload(settings, video_repo, distributor, thumbnailer, broadcaster):
    svc = make_service(settings, video_repo, distributor, thumbnailer, broadcaster,
                       probe=lambda path: settings.MAX_VIDEO_DURATION + 1)

    with pytest.raises(HTTPException) as exc:
        asyncio.run(upload(svc))

    assert exc.value.status_code == 400
    assert list(settings.UPLOADS_DIR.iterdir()) == []
    assert distributor.seeded == []


def test_slow_probe_does_not_block_other_requests(settings, video_repo, distributor, thumbnailer, broadcaster):
    def slow_probe(path):
        time.sleep(0.5)
        return 10

    svc = make_service(settings, video_repo, distributor, thumbnailer, broadcaster, probe=slow_probe)

    async def scenario():
        gaps = []

        async def ticker():
            last = time.monotonic()
            while True:
                await asyncio.sleep(0.05)
                now = time.monotonic()
                gaps.append(now - last)
                last = now

        tick = asyncio.ensure_future(ticker())
        await upload(svc)
        tick.cancel()
        return gaps

    gaps = asyncio.run(scenario())

    assert len(gaps) >= 5
    assert max(gaps) < 0.3
