"""Fakes for the leaf components (distributor, thumbnailer, broadcaster)."""

import secrets
from concurrent.futures import Executor, Future
from pathlib import Path

MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 512


class FakeDistributor:
    def __init__(self, *, fail_seed=None, fail_unseed=None):
        self.fail_seed = fail_seed
        self.fail_unseed = fail_unseed
        self.seeded = []
        self.unseeded = []

    def seed(self, path):
        if self.fail_seed:
            raise self.fail_seed
        handle = f"magnet:?xt=urn:btih:{secrets.token_hex(20)}"
        self.seeded.append((Path(path), handle))
        return handle

    def unseed(self, handle):
        self.unseeded.append(handle)
        if self.fail_unseed:
            raise self.fail_unseed


class FakeThumbnailer:
    def __init__(self, thumbnails_dir, *, fail=None, fail_remove=None):
        self.thumbnails_dir = Path(thumbnails_dir)
        self.fail = fail
        self.fail_remove = fail_remove
        self.generated = []
        self.removed = []

    def path_for(self, thumbnail):
        return self.thumbnails_dir / thumbnail

    def generate(self, video):
        if self.fail:
            raise self.fail
        name = f"{secrets.token_hex(16)}.png"
        self.thumbnails_dir.mkdir(parents=True, exist_ok=True)
        self.path_for(name).write_bytes(b"\x89PNG")
        self.generated.append(name)
        return name

    def remove(self, thumbnail):
        self.removed.append(thumbnail)
        if self.fail_remove:
            raise self.fail_remove
        self.path_for(thumbnail).unlink(missing_ok=True)


class FakeBroadcaster:
    def __init__(self, *, fail=None):
        self.fail = fail
        self.announced = []
        self.retracted = []

    def announce(self, video):
        self.announced.append(video.id)
        if self.fail:
            raise self.fail
        return 2

    def retract(self, name, magnet_uri):
        self.retracted.append((name, magnet_uri))
        if self.fail:
            raise self.fail
        return 2


class ImmediateExecutor(Executor):
    """Runs submitted work inline so tests can observe it."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future
