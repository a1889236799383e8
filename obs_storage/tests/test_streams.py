import io

from obs_storage.storage.streams import spool_response


class Response(io.BytesIO):
    closed_by_caller = False

    def close(self):
        self.closed_by_caller = True
        super().close()


def test_spool_copies_and_rewinds():
    response = Response(b"abc" * 100)

    spool = spool_response(response, chunk_size=7)

    assert spool.read() == b"abc" * 100
    assert response.closed_by_caller


def test_spool_rolls_large_bodies_to_disk():
    spool = spool_response(Response(b"x" * 64), chunk_size=16, max_size=32)

    assert spool._rolled
    assert spool.read() == b"x" * 64
