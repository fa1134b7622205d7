"""Tests for merge status values."""
from datetime import datetime
from pathlib import Path

from videomerger.status import MergeOutcome, MergeStatus


def test_outcome_records_finish_time():
    before = datetime.now()
    outcome = MergeOutcome(MergeStatus.SUCCESS, Path("out.flv"), exit_code=0)
    assert outcome.finished is not None
    assert outcome.finished >= before
    assert outcome.moved == [] and outcome.move_failures == []


def test_outcome_keeps_given_finish_time():
    stamp = datetime(2023, 1, 1, 8, 0, 0)
    outcome = MergeOutcome(MergeStatus.ERROR, Path("out.flv"), finished=stamp)
    assert outcome.finished == stamp


def test_status_labels_and_styles():
    assert MergeStatus.IDLE.description == "Ready"
    assert MergeStatus.ERROR.style == "red"
    assert {status.style for status in MergeStatus} == {"grey50", "dark_orange", "green", "red"}
