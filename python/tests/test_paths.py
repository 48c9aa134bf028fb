"""Role path grammar tests."""

from __future__ import annotations

import pytest

from ocacli.paths import format_path, parse_path, quote_role, relative_components
from ocadev.objects import format_handle, parse_handle


@pytest.mark.parametrize(
    "text, expected",
    [
        ("", ([], False)),
        ("/", ([], True)),
        ("Block", (["Block"], False)),
        ("Block/Gain", (["Block", "Gain"], False)),
        ("/Block/Gain", (["Block", "Gain"], True)),
        ("/My Block/Gain 2", (["My Block", "Gain 2"], True)),
    ],
)
def test_parse_path(text, expected):
    assert parse_path(text) == expected


def test_format_path_absolute_and_relative():
    assert format_path([]) == "/"
    assert format_path(["Block", "Gain"]) == "/Block/Gain"
    assert format_path(["Block", "Gain"], absolute=False) == "Block/Gain"


def test_paths_survive_a_round_trip():
    for components in ([], ["Block"], ["Block", "My Gain"]):
        for absolute in (True, False):
            assert parse_path(format_path(components, absolute)) == (components, absolute)
    for text in ("/", "/Block", "/Block/Inner/Level", "/My Block/x"):
        components, absolute = parse_path(text)
        assert absolute
        assert format_path(components) == text


def test_format_path_escape_quotes_paths_with_spaces():
    assert format_path(["Block", "My Gain"], absolute=False, escape=True) == '"Block/My Gain"'
    assert format_path(["Block", "Gain"], absolute=False, escape=True) == "Block/Gain"


def test_quote_role():
    assert quote_role("Gain") == "Gain"
    assert quote_role("My Gain") == '"My Gain"'


def test_relative_components_only_strictly_below():
    assert relative_components(["Block", "Gain"], ["Block"]) == ["Gain"]
    assert relative_components(["Block", "Inner", "Level"], []) == ["Block", "Inner", "Level"]
    assert relative_components(["Block"], ["Block"]) is None
    assert relative_components(["Mute"], ["Block"]) is None


def test_handle_literals():
    assert parse_handle("<100>") == 100
    assert parse_handle("<0x64>") == 100
    assert parse_handle("100") is None
    assert parse_handle("<>") is None
    assert parse_handle("<abc>") is None
    assert format_handle(204) == "<204>"
