from pathlib import Path

import pytest

from sidebar_agent.prompt_builder import (
    build_file_prompt,
    build_page_prompt,
    build_selection_prompt,
    build_tabs_prompt,
    get_preset,
    get_presets,
)
from sidebar_agent.settings import Settings, SettingsStore


def test_missing_settings_file_gives_defaults(tmp_path: Path) -> None:
    settings = SettingsStore(tmp_path / "settings.json").load()
    assert settings.active_provider_id == "chatgpt"
    assert settings.injection_delay == 500
    assert settings.auto_submit is True
    assert settings.char_limit == 10000


def test_update_persists(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.json")
    store.update(active_provider_id="claude", auto_submit=False)
    reloaded = SettingsStore(tmp_path / "settings.json").load()
    assert reloaded.active_provider_id == "claude"
    assert reloaded.auto_submit is False


def test_update_rejects_unknown_key(tmp_path: Path) -> None:
    with pytest.raises(AttributeError):
        SettingsStore(tmp_path / "settings.json").update(colour="blue")


def test_invalid_numbers_fall_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text('{"injection_delay": 0, "char_limit": "lots", "extra": 1}', encoding="utf-8")
    settings = SettingsStore(path).load()
    assert settings.injection_delay == 500
    assert settings.char_limit == 10000


def test_broken_settings_file_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("[1, 2", encoding="utf-8")
    assert SettingsStore(path).load() == Settings()


def test_presets_mark_default_and_include_custom() -> None:
    settings = Settings(
        default_preset_id="mine",
        custom_presets=[{"id": "mine", "name": "Mine", "instruction": "Explain like I'm five."}],
    )
    presets = get_presets(settings)
    assert [p["id"] for p in presets] == ["concise", "detailed", "bullets", "mine"]
    assert [p["id"] for p in presets if p["isDefault"]] == ["mine"]
    assert get_preset(settings)["instruction"] == "Explain like I'm five."
    assert get_preset(settings, "bullets")["name"] == "Bullet Points"


def test_unknown_default_preset_falls_back_to_first() -> None:
    assert get_preset(Settings(default_preset_id="gone"))["id"] == "concise"


def test_page_and_tabs_prompts() -> None:
    page = build_page_prompt("https://example.com", "Be brief.")
    assert "\n\nhttps://example.com\n\n" in page
    assert page.endswith("Be brief.")

    tabs = build_tabs_prompt(
        [{"title": "A", "url": "https://a.example"}, {"title": "B", "url": "https://b.example"}],
        "Be brief.",
    )
    assert "1. A\n   https://a.example\n2. B\n   https://b.example" in tabs


def test_selection_prompt_truncates() -> None:
    prompt = build_selection_prompt("x" * 30, "Summarize.", char_limit=10)
    assert prompt == "Summarize.\n\n---\n" + "x" * 10 + "\n\n[Text truncated at 10 characters]"
    assert build_selection_prompt("short", "Summarize.") == "Summarize.\n\n---\nshort"


def test_file_prompt_names_title() -> None:
    assert '"Rust in 2026"' in build_file_prompt("Rust in 2026", "Be brief.")
    assert build_file_prompt(None, "Be brief.") == "The attached file contains the article. Be brief."
