import itertools
import random

from telecheck.common.models import DisasterRecord
from telecheck.reconcile.reconciler import reconcile


def _record(agrn: str, **fields) -> DisasterRecord:
    values = {
        "agrn": agrn,
        "title": f"Disaster {agrn}",
        "state": "QLD",
        "start_date": "2024-01-01",
        "end_date": None,
        "url": f"https://example.test/{agrn}",
    }
    values.update(fields)
    return DisasterRecord(**values)


STORED = [
    _record("A-1"),
    _record("A-2"),
    _record("A-3"),
    _record("A-4"),
]
SCRAPED = [
    _record("A-1"),
    _record("A-2", title="Renamed"),
    _record("A-3", end_date="2024-05-01"),
    _record("A-5"),
]


def _all_agrns(report) -> list[str]:
    agrns = [c.agrn for c in report.new_disasters]
    agrns += [c.agrn for c in report.updated_disasters]
    agrns += [c.agrn for c in report.ended_disasters]
    agrns += [c.agrn for c in report.removed_disasters]
    agrns += list(report.unchanged_agrns)
    return agrns


def test_reconcile_classifies_each_bucket():
    report = reconcile(SCRAPED, STORED, timestamp="2024-06-01T00:00:00+00:00")

    assert [c.agrn for c in report.new_disasters] == ["A-5"]
    assert [c.agrn for c in report.updated_disasters] == ["A-2"]
    assert report.updated_disasters[0].changes == ("title changed from Disaster A-2 to Renamed",)
    assert [c.agrn for c in report.ended_disasters] == ["A-3"]
    assert report.ended_disasters[0].changes == ("end_date set to 2024-05-01 (disaster ended)",)
    assert [c.agrn for c in report.removed_disasters] == ["A-4"]
    assert report.unchanged_agrns == ("A-1",)
    assert report.timestamp == "2024-06-01T00:00:00+00:00"


def test_reconcile_summary_counts():
    summary = reconcile(SCRAPED, STORED).summary

    assert summary.new_count == 1
    assert summary.updated_count == 1
    assert summary.ended_count == 1
    assert summary.unchanged_count == 1
    assert summary.removed_count == 1
    assert summary.total_changes == 3


def test_reconcile_partition_is_exhaustive_and_disjoint():
    rng = random.Random(7)
    for _ in range(25):
        stored = [_record(f"S-{i}", end_date=rng.choice([None, "2024-02-02"])) for i in range(rng.randint(0, 8))]
        scraped = [
            _record(agrn, end_date=rng.choice([None, "2024-03-03"]), title=rng.choice(["a", "b"]))
            for agrn in {f"S-{rng.randint(0, 10)}" for _ in range(rng.randint(0, 8))}
        ]
        report = reconcile(scraped, stored)
        agrns = _all_agrns(report)
        expected = {r.agrn for r in stored} | {r.agrn for r in scraped}
        assert len(agrns) == len(set(agrns))
        assert set(agrns) == expected


def test_reconcile_is_order_independent():
    baseline = reconcile(SCRAPED, STORED, timestamp="t").to_dict()
    for scraped in itertools.permutations(SCRAPED):
        shuffled_stored = list(reversed(STORED))
        assert reconcile(list(scraped), shuffled_stored, timestamp="t").to_dict() == baseline


def test_reconcile_identical_inputs_is_idempotent():
    report = reconcile(STORED, list(STORED))
    summary = report.summary

    assert summary.new_count == 0
    assert summary.updated_count == 0
    assert summary.ended_count == 0
    assert report.removed_disasters == ()
    assert summary.unchanged_count == len(STORED)


def test_reconcile_buckets_sorted_by_agrn():
    scraped = [_record("Z-9"), _record("B-2"), _record("M-5")]
    report = reconcile(scraped, [])
    assert [c.agrn for c in report.new_disasters] == ["B-2", "M-5", "Z-9"]


def test_reconcile_collapses_duplicate_agrns_to_last_occurrence():
    scraped = [_record("A-1", title="first"), _record("A-1", title="second")]
    report = reconcile(scraped, [])
    assert report.scraped_count == 1
    assert report.new_disasters[0].record.title == "second"
    assert report.duplicate_agrns == ("A-1",)


def test_reconcile_ignores_blank_agrns():
    report = reconcile([_record(""), _record("  ")], [_record("")])
    assert report.summary.total_changes == 0
    assert report.existing_count == 0


def test_reconcile_tolerates_missing_fields():
    sparse_stored = DisasterRecord.from_dict({"agrn": "A-1"})
    sparse_scraped = DisasterRecord.from_dict({"agrn": "A-1", "title": None, "end_date": ""})
    report = reconcile([sparse_scraped], [sparse_stored])
    assert report.unchanged_agrns == ("A-1",)


def test_reconcile_empty_inputs():
    report = reconcile([], [])
    assert report.to_dict()["summary"] == {
        "new_count": 0,
        "updated_count": 0,
        "ended_count": 0,
        "unchanged_count": 0,
        "removed_count": 0,
        "total_changes": 0,
    }
