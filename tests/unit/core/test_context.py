"""Tests for RequestContext and ResultRecord."""

import dataclasses

import pytest

from fastapi_handler_scopes.core.context import (
    DEFAULT_DELAY_MS,
    MAX_DELAY_MS,
    RequestContext,
    ResultRecord,
    now_ms,
)
from fastapi_handler_scopes.exceptions import BadRequestError


def _record(**overrides) -> ResultRecord:  # type: ignore[no-untyped-def]
    fields = {
        "requested_id": "alice",
        "resolved_id": "alice",
        "delay_ms": 100,
        "strategy_name": "UnsafeHandler",
        "discipline_name": "shared-instance-field",
        "scope_name": "singleton",
        "timestamp_ms": 1_700_000_000_000,
        "handler_identity": "UnsafeHandler@0x1",
        "worker_name": "Task-1",
    }
    fields.update(overrides)
    return ResultRecord(**fields)


class TestRequestContext:
    def test_default_delay(self):
        assert RequestContext(id="42").delay_ms == DEFAULT_DELAY_MS == 100

    def test_is_immutable(self):
        ctx = RequestContext(id="42", delay_ms=5)
        with pytest.raises(dataclasses.FrozenInstanceError):
            ctx.id = "43"  # type: ignore[misc]

    def test_zero_delay_allowed(self):
        assert RequestContext(id="42", delay_ms=0).delay_ms == 0

    @pytest.mark.parametrize("bad_id", ["", "   "])
    def test_blank_id_rejected(self, bad_id):
        with pytest.raises(BadRequestError, match="non-empty"):
            RequestContext(id=bad_id)

    def test_negative_delay_rejected(self):
        with pytest.raises(BadRequestError, match=">= 0"):
            RequestContext(id="42", delay_ms=-1)

    def test_bool_delay_rejected(self):
        with pytest.raises(BadRequestError, match="integer"):
            RequestContext(id="42", delay_ms=True)

    def test_delay_above_maximum_rejected(self):
        with pytest.raises(BadRequestError, match="<="):
            RequestContext(id="42", delay_ms=MAX_DELAY_MS + 1)


class TestFromPath:
    def test_missing_timeout_uses_default(self):
        assert RequestContext.from_path("42") == RequestContext(id="42", delay_ms=100)

    def test_custom_default(self):
        assert RequestContext.from_path("42", default_delay_ms=7).delay_ms == 7

    def test_numeric_timeout(self):
        assert RequestContext.from_path("alice", "3000") == RequestContext(
            id="alice", delay_ms=3000
        )

    def test_zero_timeout(self):
        assert RequestContext.from_path("42", "0").delay_ms == 0

    @pytest.mark.parametrize("raw", ["abc", "-5", "1.5", "+5", " 5", "1_000", "", "5\n"])
    def test_malformed_timeout_rejected(self, raw):
        with pytest.raises(BadRequestError, match="non-negative integer"):
            RequestContext.from_path("42", raw)

    @pytest.mark.parametrize("raw", [str(MAX_DELAY_MS + 1), "9" * 400, "1" + "0" * 5000])
    def test_out_of_range_timeout_rejected(self, raw):
        with pytest.raises(BadRequestError, match="at most"):
            RequestContext.from_path("42", raw)

    def test_largest_timeout_accepted(self):
        assert RequestContext.from_path("42", str(MAX_DELAY_MS)).delay_ms == MAX_DELAY_MS

    def test_leading_zeros_ignored(self):
        assert RequestContext.from_path("42", "0" * 30 + "25").delay_ms == 25
        assert RequestContext.from_path("42", "000").delay_ms == 0

    def test_id_is_opaque(self):
        ctx = RequestContext.from_path("user@example.com", "1")
        assert ctx.id == "user@example.com"


class TestResultRecord:
    def test_correct_when_ids_match(self):
        assert _record().is_correct

    def test_incorrect_when_another_call_overwrote_the_id(self):
        assert not _record(resolved_id="bob").is_correct

    def test_is_immutable(self):
        record = _record()
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.resolved_id = "bob"  # type: ignore[misc]


def test_now_ms_is_epoch_milliseconds():
    value = now_ms()
    # After 2020-01-01 and well before the year 3000
    assert 1_577_836_800_000 < value < 32_503_680_000_000
