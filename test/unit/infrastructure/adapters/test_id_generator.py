import datetime as dt

from app.infrastructure.adapters.artifact_store_local import safe_file_stem
from app.infrastructure.adapters.id_generator import SystemClock, TimestampIdGenerator


class FixedClock:
    def __init__(self, *millis):
        self._values = list(millis)

    def now(self):
        value = self._values.pop(0) if len(self._values) > 1 else self._values[0]
        return dt.datetime.fromtimestamp(value / 1000, tz=dt.timezone.utc)


def test_ids_use_epoch_millis():
    gen = TimestampIdGenerator(FixedClock(1718000000125))

    assert gen.new_id() == "video_1718000000125"


def test_same_millisecond_gets_suffix():
    gen = TimestampIdGenerator(
        FixedClock(1718000000000, 1718000000000, 1718000000000, 1718000000250)
    )

    assert [gen.new_id() for _ in range(4)] == [
        "video_1718000000000",
        "video_1718000000000_1",
        "video_1718000000000_2",
        "video_1718000000250",
    ]


def test_real_clock_ids_are_unique():
    gen = TimestampIdGenerator(prefix="job_")

    ids = [gen.new_id() for _ in range(1000)]

    assert len(set(ids)) == 1000
    assert all(i.startswith("job_") for i in ids)


def test_system_clock_is_timezone_aware():
    assert SystemClock().now().tzinfo is not None


def test_generated_ids_are_used_verbatim_as_file_stems():
    gen = TimestampIdGenerator(FixedClock(1718000000000, 1718000000000))

    for job_id in (gen.new_id(), gen.new_id()):
        assert safe_file_stem(job_id) == job_id
