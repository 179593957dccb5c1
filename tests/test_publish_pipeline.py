import threading

import pytest

from vidpeer.db.repositories.videos import VideoRepository
from vidpeer.features.videos.errors import (
    DistributionError,
    FederationError,
    PersistenceError,
    PublishCancelledError,
    ThumbnailError,
)
from vidpeer.features.videos.pipeline import PublishPipeline
from vidpeer.features.videos.schemas import PublishRequest

from helpers import FakeBroadcaster, FakeDistributor, FakeThumbnailer


class FailingInsertRepository(VideoRepository):
    def insert(self, **fields):
        raise RuntimeError("database is locked")


def make_pipeline(repo, distributor, thumbnailer, broadcaster):
    return PublishPipeline(
        distributor=distributor,
        thumbnailer=thumbnailer,
        repo=repo,
        broadcaster=broadcaster,
        pod_url="http://pod1.test",
    )


def make_request(path, **overrides):
    fields = dict(path=path, name="cat", author="alice", description="a cat", tags=["pets"], duration=12)
    fields.update(overrides)
    return PublishRequest(**fields)


def test_publish_success_persists_seeds_and_announces(video_repo, distributor, thumbnailer, broadcaster, video_file):
    result = make_pipeline(video_repo, distributor, thumbnailer, broadcaster).publish(make_request(video_file))

    video = result.video
    assert result.announced is True
    assert video.id is not None
    assert video.name == "cat"
    assert video.tags == ["pets"]
    assert video.owned is True
    assert video.name_path == "a.mp4"
    assert video.pod_url == "http://pod1.test"
    assert video.magnet_uri.startswith("magnet:?xt=")
    assert distributor.seeded == [(video_file, video.magnet_uri)]
    assert distributor.unseeded == []
    assert thumbnailer.path_for(video.thumbnail).exists()
    assert broadcaster.announced == [video.id]
    assert video_repo.get(video.id).magnet_uri == video.magnet_uri


def test_seed_failure_is_terminal_and_touches_nothing_else(video_repo, thumbnailer, broadcaster, video_file):
    distributor = FakeDistributor(fail_seed=DistributionError("agent down"))

    with pytest.raises(DistributionError):
        make_pipeline(video_repo, distributor, thumbnailer, broadcaster).publish(make_request(video_file))

    assert thumbnailer.generated == []
    assert distributor.unseeded == []
    assert broadcaster.announced == []
    assert video_repo.count() == 0


def test_untyped_seed_error_is_tagged(video_repo, thumbnailer, broadcaster, video_file):
    distributor = FakeDistributor(fail_seed=ConnectionRefusedError("no agent"))

    with pytest.raises(DistributionError) as exc:
        make_pipeline(video_repo, distributor, thumbnailer, broadcaster).publish(make_request(video_file))

    assert isinstance(exc.value.__cause__, ConnectionRefusedError)


def test_thumbnail_failure_unseeds_exactly_once(video_repo, distributor, settings, broadcaster, video_file):
    thumbnailer = FakeThumbnailer(settings.THUMBNAILS_DIR, fail=RuntimeError("ffmpeg exploded"))

    with pytest.raises(ThumbnailError):
        make_pipeline(video_repo, distributor, thumbnailer, broadcaster).publish(make_request(video_file))

    [(_, handle)] = distributor.seeded
    assert distributor.unseeded == [handle]
    assert video_repo.count() == 0
    assert broadcaster.announced == []


def test_insert_failure_unseeds_and_removes_thumbnail(session, distributor, thumbnailer, broadcaster, video_file):
    repo = FailingInsertRepository(session)

    with pytest.raises(PersistenceError):
        make_pipeline(repo, distributor, thumbnailer, broadcaster).publish(make_request(video_file))

    [(_, handle)] = distributor.seeded
    [thumbnail] = thumbnailer.generated
    assert distributor.unseeded == [handle]
    assert thumbnailer.removed == [thumbnail]
    assert not thumbnailer.path_for(thumbnail).exists()
    assert broadcaster.announced == []


def test_announce_failure_is_a_degraded_success(video_repo, distributor, thumbnailer, video_file):
    broadcaster = FakeBroadcaster(fail=FederationError("executor is shut down"))

    result = make_pipeline(video_repo, distributor, thumbnailer, broadcaster).publish(make_request(video_file))

    assert result.announced is False
    assert "shut down" in result.announce_error
    assert video_repo.get(result.video.id) is not None
    assert distributor.unseeded == []
    assert thumbnailer.removed == []


def test_interrupted_publish_still_compensates(video_repo, distributor, settings, broadcaster, video_file):
    thumbnailer = FakeThumbnailer(settings.THUMBNAILS_DIR, fail=KeyboardInterrupt())

    with pytest.raises(KeyboardInterrupt):
        make_pipeline(video_repo, distributor, thumbnailer, broadcaster).publish(make_request(video_file))

    [(_, handle)] = distributor.seeded
    assert distributor.unseeded == [handle]
    assert video_repo.count() == 0


def test_failed_compensation_does_not_mask_original_error(video_repo, settings, broadcaster, video_file):
    distributor = FakeDistributor(fail_unseed=DistributionError("agent gone"))
    thumbnailer = FakeThumbnailer(settings.THUMBNAILS_DIR, fail=ThumbnailError("bad codec"))

    with pytest.raises(ThumbnailError, match="bad codec"):
        make_pipeline(video_repo, distributor, thumbnailer, broadcaster).publish(make_request(video_file))

    assert len(distributor.unseeded) == 1


def test_empty_content_handle_is_a_distribution_error(video_repo, thumbnailer, broadcaster, video_file):
    distributor = FakeDistributor()
    distributor.seed = lambda path: ""

    with pytest.raises(DistributionError):
        make_pipeline(video_repo, distributor, thumbnailer, broadcaster).publish(make_request(video_file))

    assert thumbnailer.generated == []


class CancellingThumbnailer(FakeThumbnailer):
    def __init__(self, thumbnails_dir, cancelled):
        super().__init__(thumbnails_dir)
        self.cancelled = cancelled

    def generate(self, video):
        name = super().generate(video)
        self.cancelled.set()
        return name


class CancellingInsertRepository(VideoRepository):
    cancelled = None

    def insert(self, **fields):
        video = super().insert(**fields)
        self.cancelled.set()
        return video


def test_cancellation_during_thumbnail_undoes_seed_and_thumbnail(video_repo, distributor, settings, broadcaster, video_file):
    cancelled = threading.Event()
    thumbnailer = CancellingThumbnailer(settings.THUMBNAILS_DIR, cancelled)

    with pytest.raises(PublishCancelledError):
        make_pipeline(video_repo, distributor, thumbnailer, broadcaster).publish(make_request(video_file), cancelled)

    [(_, handle)] = distributor.seeded
    assert distributor.unseeded == [handle]
    assert thumbnailer.removed == thumbnailer.generated
    assert video_repo.count() == 0
    assert broadcaster.announced == []


def test_cancellation_after_insert_deletes_the_record(session, distributor, thumbnailer, broadcaster, video_file):
    repo = CancellingInsertRepository(session)
    repo.cancelled = threading.Event()

    with pytest.raises(PublishCancelledError):
        make_pipeline(repo, distributor, thumbnailer, broadcaster).publish(make_request(video_file), repo.cancelled)

    assert repo.count() == 0
    [(_, handle)] = distributor.seeded
    assert distributor.unseeded == [handle]
    assert thumbnailer.removed == thumbnailer.generated
    assert broadcaster.announced == []


def test_cancellation_flag_set_before_start_seeds_nothing_durable(video_repo, distributor, thumbnailer, broadcaster, video_file):
    cancelled = threading.Event()
    cancelled.set()

    with pytest.raises(PublishCancelledError):
        make_pipeline(video_repo, distributor, thumbnailer, broadcaster).publish(make_request(video_file), cancelled)

    assert distributor.unseeded == [distributor.seeded[0][1]]
    assert thumbnailer.generated == []
