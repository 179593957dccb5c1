import pytest
from sqlmodel import Session

from vidpeer.core.config import Settings
from vidpeer.db.repositories.videos import VideoRepository
from vidpeer.db.session import build_engine, init_db

from helpers import FakeBroadcaster, FakeDistributor, FakeThumbnailer


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        ENV="test",
        POD_URL="http://pod1.test/",
        SQLITE_PATH=str(tmp_path / "vidpeer.db"),
        UPLOADS_DIR=tmp_path / "uploads",
        THUMBNAILS_DIR=tmp_path / "thumbnails",
        JWT_SECRET_KEY="test-secret",
        FEDERATION_WORKERS=1,
    )


@pytest.fixture()
def session(settings):
    engine = build_engine(settings)
    init_db(engine)
    with Session(engine) as s:
        yield s
    engine.dispose()


@pytest.fixture()
def video_repo(session):
    return VideoRepository(session)


@pytest.fixture()
def distributor():
    return FakeDistributor()


@pytest.fixture()
def thumbnailer(settings):
    return FakeThumbnailer(settings.THUMBNAILS_DIR)


@pytest.fixture()
def broadcaster():
    return FakeBroadcaster()


@pytest.fixture()
def video_file(settings):
    settings.UPLOADS_DIR.mkdir(parents=True, exist_ok=True)
    path = settings.UPLOADS_DIR / "a.mp4"
    path.write_bytes(b"video")
    return path
