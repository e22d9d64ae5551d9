"""
Tests for the staged config draft and its controller.

Includes:
- Discard leaves live config and file untouched
- Apply with valid, invalid and unsaveable drafts
- Section and full resets
- Draft edit operations
"""

from unittest.mock import MagicMock, patch

import pytest

from nzi.app.controller import DraftController, Mode, NoDraftError
from nzi.app.draft import Section
from nzi.config.cities import CITIES
from nzi.config.model import City, default_config
from nzi.config.store import ConfigStore
from nzi.config.validation import ConfigErrorKind
from nzi.errors import ConfigIOError


@pytest.fixture
def controller(store):
    result = store.load()
    return DraftController(store, result.config)


def paris():
    return City.from_catalog(CITIES["PAR"])


class TestModes:
    """Test Normal <-> ConfigEditing transitions."""

    def test_starts_normal(self, controller):
        assert controller.mode is Mode.NORMAL
        assert controller.draft is None

    def test_begin_edit_copies_live(self, controller):
        draft = controller.begin_edit()
        assert controller.mode is Mode.CONFIG_EDITING
        assert draft.config == controller.live
        assert draft.config is not controller.live
        assert not draft.is_dirty

    def test_begin_edit_twice_keeps_draft(self, controller):
        draft = controller.begin_edit()
        draft.set_map_focus("AKL")
        assert controller.begin_edit() is draft

    def test_edits_do_not_touch_live(self, controller):
        controller.begin_edit()
        controller.remove_tracked_city("LDN")
        controller.set_display(show_seconds=False)
        assert controller.live.find_city("LDN") is not None
        assert controller.live.display.show_seconds is True

    def test_discard_leaves_live_and_file_unchanged(self, controller, config_path):
        before_config = controller.live.model_copy(deep=True)
        before_bytes = config_path.read_bytes()
        listener = MagicMock()
        controller.subscribe(listener)

        controller.begin_edit()
        controller.remove_tracked_city("TYO")
        controller.toggle_currency_sync()
        controller.discard()

        assert controller.mode is Mode.NORMAL
        assert controller.live == before_config
        assert config_path.read_bytes() == before_bytes
        listener.assert_not_called()

    def test_edit_outside_editing_rejected(self, controller):
        with pytest.raises(NoDraftError):
            controller.add_tracked_city(paris())

    def test_help_is_orthogonal(self, controller):
        controller.begin_edit()
        assert controller.toggle_help()
        assert controller.mode is Mode.CONFIG_EDITING


class TestApply:
    """Test applying drafts."""

    def test_valid_apply_replaces_live_and_saves(self, controller, store):
        listener = MagicMock()
        controller.subscribe(listener)
        controller.begin_edit()
        controller.set_display(use_24_hour=False)

        outcome = controller.apply()

        assert outcome.ok
        assert controller.mode is Mode.NORMAL
        assert controller.live.display.use_24_hour is False
        assert store.load().config.display.use_24_hour is False
        listener.assert_called_once_with(controller.live)

    def test_invalid_apply_stays_in_editing(self, controller, config_path):
        before_bytes = config_path.read_bytes()
        controller.begin_edit()
        controller.add_tracked_city(City(name="Nowhere", code="NOW", country="X",
                                         timezone="Mars/Base", currency="NZD"))
        controller.add_tracked_city(City.from_catalog(CITIES["LDN"]))

        outcome = controller.apply()

        assert not outcome.ok
        assert controller.mode is Mode.CONFIG_EDITING
        kinds = {e.kind for e in controller.errors}
        assert kinds == {ConfigErrorKind.INVALID_TIMEZONE, ConfigErrorKind.DUPLICATE_CITY_CODE}
        assert controller.live.find_city("NOW") is None
        assert config_path.read_bytes() == before_bytes

    def test_invalid_draft_can_be_fixed_and_applied(self, controller):
        controller.begin_edit()
        controller.add_tracked_city(City(name="Nowhere", code="NOW", country="X",
                                         timezone="Mars/Base", currency="NZD"))
        assert not controller.apply().ok
        controller.update_tracked_city("NOW", timezone="Pacific/Chatham")
        assert controller.apply().ok
        assert controller.live.find_city("NOW").timezone == "Pacific/Chatham"
        assert controller.errors == []

    def test_save_failure_keeps_draft(self, controller):
        listener = MagicMock()
        controller.subscribe(listener)
        before = controller.live
        controller.begin_edit()
        controller.set_display(show_animations=False)

        with patch.object(ConfigStore, "_atomic_write", side_effect=ConfigIOError("disk full")):
            outcome = controller.apply()

        assert not outcome.ok
        assert "disk full" in outcome.io_error
        assert controller.mode is Mode.CONFIG_EDITING
        assert controller.draft.config.display.show_animations is False
        assert controller.live is before
        listener.assert_not_called()

    def test_apply_without_draft(self, controller):
        with pytest.raises(NoDraftError):
            controller.apply()


class TestResets:
    """Test section and full resets."""

    def test_reset_active_section_only(self, controller):
        controller.begin_edit()
        controller.remove_tracked_city("LDN")
        controller.set_display(show_seconds=False)
        controller.set_active_section(Section.ADVANCED)

        controller.reset_active_section()

        draft = controller.draft
        assert draft.config.display.show_seconds is True
        # Cities section untouched, still dirty
        assert draft.config.find_city("LDN") is None
        assert draft.dirty[Section.CITIES]

    def test_reset_all(self, controller):
        controller.begin_edit()
        controller.remove_tracked_city("LDN")
        controller.set_map_focus("AKL")

        controller.reset_all()

        assert controller.draft.config == default_config()
        assert not controller.draft.is_dirty
        assert controller.mode is Mode.CONFIG_EDITING

    def test_next_section_cycles(self, controller):
        controller.begin_edit()
        seen = [controller.next_section() for _ in range(4)]
        assert seen == [Section.CURRENCY, Section.MAP, Section.ADVANCED, Section.CITIES]

    def test_reset_to_defaults_applies(self, controller, store):
        controller.begin_edit()
        controller.set_display(show_seconds=False)
        controller.apply()

        outcome = controller.reset_to_defaults()

        assert outcome.ok
        assert controller.live == default_config()
        assert store.load().config == default_config()


class TestDraftEdits:
    """Test edit operations on the draft."""

    def test_set_home_from_tracked_swaps(self, controller):
        controller.begin_edit()
        index = [c.code for c in controller.draft.config.tracked_cities].index("PAR")

        controller.set_home_from_tracked("PAR")

        config = controller.draft.config
        assert config.home_city.name == "Paris"
        assert config.tracked_cities[index].code == "BOS"
        assert controller.draft.dirty[Section.CITIES]

    def test_update_tracked_city_rejects_unknown_field(self, controller):
        controller.begin_edit()
        with pytest.raises(ValueError):
            controller.update_tracked_city("LDN", population=9)

    def test_remove_unknown_city(self, controller):
        controller.begin_edit()
        with pytest.raises(ValueError):
            controller.remove_tracked_city("ZZZ")

    def test_move_tracked_city(self, controller):
        controller.begin_edit()
        controller.move_tracked_city("LAX", -1)
        assert [c.code for c in controller.draft.config.tracked_cities[:2]] == ["LAX", "LDN"]

    def test_toggle_sync_seeds_manual_pair(self, controller):
        controller.begin_edit()
        assert controller.toggle_currency_sync() is False
        currency = controller.draft.config.currency
        assert (currency.base, currency.quote) == ("NZD", "USD")
        assert controller.apply().ok

    def test_manual_pair(self, controller):
        controller.begin_edit()
        controller.set_manual_pair("aud", "jpy")
        assert controller.draft.config.currency_pair() == ("AUD", "JPY")
        assert controller.draft.dirty[Section.CURRENCY]

    def test_bad_display_value_rejected(self, controller):
        controller.begin_edit()
        with pytest.raises(ValueError):
            controller.set_display(animation_speed_ms=0)
        assert not controller.draft.dirty[Section.ADVANCED]

    def test_negative_amount_rejected(self, controller):
        controller.begin_edit()
        with pytest.raises(ValueError):
            controller.set_amount(-5)

    def test_map_focus_validated_on_apply(self, controller):
        controller.begin_edit()
        controller.set_map_focus("QQQ")
        outcome = controller.apply()
        assert [e.kind for e in outcome.errors] == [ConfigErrorKind.UNKNOWN_CITY_CODE]


class TestReload:
    """Test /reload semantics."""

    def test_reload_discards_draft_and_picks_up_disk_edits(self, controller, store, config_path):
        edited = default_config()
        edited.display.use_24_hour = False
        store.save(edited)
        controller.begin_edit()
        controller.remove_tracked_city("LDN")

        result = controller.reload()

        assert result.source == "file"
        assert controller.mode is Mode.NORMAL
        assert controller.live.display.use_24_hour is False
        assert controller.live.find_city("LDN") is not None

    def test_reload_of_broken_file_keeps_running_config(self, controller, config_path):
        controller.begin_edit()
        controller.set_display(show_seconds=False)
        controller.apply()
        config_path.write_text("current_city: [broken\n")

        result = controller.reload()

        assert result.source == "fallback"
        assert controller.live.display.show_seconds is False
        assert config_path.read_text() == "current_city: [broken\n"
