from __future__ import annotations

import pytest

from src.core.errors import MissingField, MissingReference, StorageError
from src.state.storage import Outcome, StepStorage


def test_entries_are_written_once_and_in_order() -> None:
    storage = StepStorage()
    storage.save(0, Outcome.SUCCESS, {"alias": "a"})
    with pytest.raises(StorageError):
        storage.save(0, Outcome.FAIL)
    with pytest.raises(StorageError):
        storage.save(2, Outcome.SUCCESS)
    storage.save(1, Outcome.NOOP, None, "missing reference")
    assert len(storage) == 2
    assert storage.outcomes() == [(0, Outcome.SUCCESS), (1, Outcome.NOOP)]


def test_fields_are_stored_as_strings() -> None:
    storage = StepStorage()
    storage.save(0, Outcome.SUCCESS, {"amount": 5})
    assert storage.get(0, "amount") == "5"


def test_get_from_non_success_step_raises() -> None:
    storage = StepStorage()
    storage.save(0, Outcome.FAIL, {"amount": "1"}, "err")
    with pytest.raises(MissingReference):
        storage.get(0, "amount")
    assert storage.error(0) == "err"
    assert not storage.is_success(0)


def test_get_unknown_field_raises_missing_field() -> None:
    storage = StepStorage()
    storage.save(0, Outcome.SUCCESS, {"amount": "1"})
    with pytest.raises(MissingField):
        storage.get(0, "token")


def test_overall_outcome_treats_noop_as_success() -> None:
    storage = StepStorage()
    storage.save(0, Outcome.SUCCESS)
    storage.save(1, Outcome.NOOP)
    assert storage.overall_outcome() is Outcome.SUCCESS
    storage.save(2, Outcome.FAIL, None, "x")
    assert storage.overall_outcome() is Outcome.FAIL


def test_account_aliases() -> None:
    storage = StepStorage()
    storage.save_account("load-tester-enst-a", "tnam1abc")
    assert storage.get_account("load-tester-enst-a") == "tnam1abc"
    with pytest.raises(MissingReference):
        storage.get_account("unknown")
