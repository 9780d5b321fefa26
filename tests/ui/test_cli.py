from __future__ import annotations

import logging

import pytest

from sunball.domain.model import GeoPoint, SurfaceType
from sunball.domain.presence import PresenceChange
from sunball.ui import cli
from tests.helpers.documents import make_field, make_player


def test_fields_command_passes_coordinates(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_refresh(lat: float, lng: float, radius: int | None) -> list[object]:
        captured.update(lat=lat, lng=lng, radius=radius)
        return [make_field("100", position=GeoPoint(lat, lng))]

    monkeypatch.setattr(cli, "refresh_fields", fake_refresh)

    cli.main(["fields", "--lat", "55.75", "--lng", "37.61", "--radius", "800"])

    assert captured == {"lat": 55.75, "lng": 37.61, "radius": 800}


def test_check_in_command(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    def fake_check_in(player_id: str, field_id: str) -> PresenceChange:
        return PresenceChange(player=make_player(player_id), joined=make_field(field_id))

    monkeypatch.setattr(cli, "check_in_player", fake_check_in)

    with caplog.at_level(logging.INFO, logger="sunball.ui.cli"):
        cli.main(["check-in", "--player", "p1", "--field", "100"])

    assert "joined=100" in caplog.text


def test_check_out_defaults_to_current_field(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: list[object] = []

    def fake_check_out(player_id: str, field_id: str | None) -> PresenceChange:
        captured.append((player_id, field_id))
        return PresenceChange(player=make_player(player_id), changed=False)

    monkeypatch.setattr(cli, "check_out_player", fake_check_out)

    cli.main(["check-out", "--player", "p1"])

    assert captured == [("p1", None)]


def test_field_add_command(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_add_field(**kwargs: object) -> object:
        captured.update(kwargs)
        return make_field("user-1")

    monkeypatch.setattr(cli, "add_field", fake_add_field)

    cli.main(
        ["field", "add", "--name", "Cage", "--lat", "1", "--lng", "2", "--surface", "sand"]
    )

    assert captured["surface"] is SurfaceType.SAND
    assert captured["lighting"] is False


def test_invalid_latitude_exits_with_code_2(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_refresh(*_: object, **__: object) -> list[object]:
        raise AssertionError("refresh must not run")

    monkeypatch.setattr(cli, "refresh_fields", fake_refresh)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["fields", "--lat", "91", "--lng", "0"])

    assert excinfo.value.code == 2


def test_negative_watch_duration_exits_with_code_2() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["watch", "--player", "p1", "--duration", "-1"])

    assert excinfo.value.code == 2


def test_command_failure_exits_with_code_1(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_create(**_: object) -> object:
        raise RuntimeError("database locked")

    monkeypatch.setattr(cli, "create_player", failing_create)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["player", "create", "--id", "p1"])

    assert excinfo.value.code == 1
