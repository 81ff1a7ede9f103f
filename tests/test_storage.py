"""Tests for the local snapshot store."""

from __future__ import annotations

import json
import math

import pytest

from engines import storage
from engines.funnel import EO, FIO, LIO, PERFORMANCE, SETTINGS, TARGETS, default_state
from engines.kpi import compute_kpis


class TestStateSnapshot:
    def test_absent_key_gives_defaults(self, store_dir) -> None:
        assert storage.load_state() == default_state()

    def test_round_trip(self, store_dir, state: dict) -> None:
        state[SETTINGS]["offerName"] = "Mastermind"
        assert storage.save_state(state) is True
        assert (store_dir / f"{storage.STATE_KEY}.json").exists()
        assert storage.load_state()[SETTINGS]["offerName"] == "Mastermind"

    def test_explicit_store_dir(self, tmp_path, state: dict) -> None:
        storage.save_state(state, store_dir=str(tmp_path))
        assert storage.load_state(store_dir=str(tmp_path)) == state

    def test_corrupt_json_gives_defaults(self, store_dir) -> None:
        (store_dir / f"{storage.STATE_KEY}.json").write_text("{not json", encoding="utf-8")
        assert storage.load_state() == default_state()

    def test_missing_section_gives_defaults(self, store_dir, state: dict) -> None:
        del state[EO]
        (store_dir / f"{storage.STATE_KEY}.json").write_text(json.dumps(state), encoding="utf-8")
        assert storage.load_state() == default_state()

    def test_wrong_field_type_gives_defaults(self, store_dir, state: dict) -> None:
        state[SETTINGS]["offerPrice"] = "lots"
        (store_dir / f"{storage.STATE_KEY}.json").write_text(json.dumps(state), encoding="utf-8")
        assert storage.load_state() == default_state()

    @pytest.mark.parametrize(
        ("tool", "section", "field", "value"),
        [
            (EO, PERFORMANCE, "positiveReplies", float("nan")),
            (LIO, PERFORMANCE, "dealsClosed", -3),
            (FIO, TARGETS, "closeRate", float("-inf")),
        ],
    )
    def test_out_of_range_number_gives_defaults(self, store_dir, state: dict, tool: str,
                                                section: str, field: str, value: float) -> None:
        state[tool][section][field] = value
        (store_dir / f"{storage.STATE_KEY}.json").write_text(json.dumps(state), encoding="utf-8")
        assert storage.load_state() == default_state()

    def test_infinite_offer_price_gives_defaults(self, store_dir, state: dict) -> None:
        state[SETTINGS]["offerPrice"] = float("inf")
        (store_dir / f"{storage.STATE_KEY}.json").write_text(json.dumps(state), encoding="utf-8")
        restored = storage.load_state()
        assert restored == default_state()
        for tool in (LIO, FIO, EO):
            kpis = compute_kpis(restored[SETTINGS], restored[tool][PERFORMANCE], tool)
            assert all(math.isfinite(v) and v >= 0 for v in kpis.values())

    def test_write_failure_is_swallowed(self, tmp_path, state: dict, caplog) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        assert storage.save_state(state, store_dir=str(blocker)) is False
        assert "Could not save" in caplog.text


class TestActiveTool:
    def test_default_is_linkedin(self, store_dir) -> None:
        assert storage.load_active_tool() == LIO

    def test_round_trip(self, store_dir) -> None:
        storage.save_active_tool(EO)
        assert storage.load_active_tool() == EO

    def test_unknown_stored_tool(self, store_dir) -> None:
        storage.write_key(storage.ACTIVE_TOOL_KEY, "SMS")
        assert storage.load_active_tool() == LIO

    def test_keys_are_independent(self, store_dir) -> None:
        (store_dir / f"{storage.STATE_KEY}.json").write_text("garbage", encoding="utf-8")
        storage.save_active_tool(EO)
        assert storage.load_active_tool() == EO
        assert storage.load_state() == default_state()
