"""Tests for the CLI interface."""

from unittest.mock import patch

import numpy as np
import soundfile as sf

from metronome.cli import main
from metronome.settings import ConfigStore


def _write_settings(path, body: str):
    path.write_text(body)
    return path


def test_cli_runs_fixed_number_of_ticks(tmp_path):
    settings = _write_settings(
        tmp_path / "settings.toml",
        "[metronome]\ntick_count = 2\ntick_volume = 50\n",
    )

    with patch("metronome.host._play_audio") as play:
        result = main(["--settings", str(settings), "--ticks", "6", "--tick-length", "0"])

    assert result == 0
    # Candidate firings at ticks 2, 4 and 6
    assert play.call_count == 3


def test_cli_uses_configured_clip(tmp_path):
    clip_path = tmp_path / "tick.wav"
    sf.write(clip_path, np.zeros(441, dtype=np.float32), 44100)
    settings = _write_settings(
        tmp_path / "settings.toml",
        f'[metronome]\ntick_path = "{clip_path.as_posix()}"\n',
    )

    with patch("metronome.host._play_audio") as play, patch("audio.manager.open_output_stream") as open_stream:
        open_stream.return_value.stopped = True
        open_stream.return_value.active = False
        result = main(["--settings", str(settings), "--ticks", "2", "--tick-length", "0"])

    assert result == 0
    play.assert_not_called()
    stream = open_stream.return_value
    assert stream.start.called
    stream.close.assert_called_once()


def test_cli_rejects_invalid_settings(tmp_path, caplog):
    settings = _write_settings(tmp_path / "settings.toml", "[metronome]\nvolume = 500\n")

    assert main(["--settings", str(settings), "--ticks", "1", "--tick-length", "0"]) == 1
    assert "volume" in caplog.text


def test_cli_rejects_malformed_toml(tmp_path):
    settings = _write_settings(tmp_path / "settings.toml", "[metronome\n")

    assert main(["--settings", str(settings), "--ticks", "1", "--tick-length", "0"]) == 1


def test_cli_rejects_negative_tick_length(tmp_path):
    assert main(["--settings", str(tmp_path / "none.toml"), "--tick-length", "-1"]) == 2


def test_cli_watch_reloads_changed_settings(tmp_path):
    settings = _write_settings(tmp_path / "settings.toml", "[metronome]\ntick_volume = 50\n")

    with patch("metronome.host._play_audio"), patch("metronome.cli._mtime", side_effect=[1, 2, 2]):
        with patch.object(ConfigStore, "reload", autospec=True) as reload:
            result = main(["--settings", str(settings), "--ticks", "2", "--tick-length", "0", "--watch"])

    assert result == 0
    reload.assert_called_once()
    assert reload.call_args.args[1] == settings


def test_cli_stops_cleanly_on_ctrl_c(tmp_path):
    with patch("metronome.host._play_audio"), patch("metronome.cli.time.sleep", side_effect=KeyboardInterrupt):
        result = main(["--settings", str(tmp_path / "none.toml"), "--tick-length", "0.6"])

    assert result == 0


def test_cli_rejects_settings_table_of_wrong_shape(tmp_path, caplog):
    settings = _write_settings(tmp_path / "settings.toml", "host = 5\n")

    assert main(["--settings", str(settings), "--ticks", "1", "--tick-length", "0"]) == 1
    assert "[host]" in caplog.text


def test_cli_watch_survives_bad_edit(tmp_path, caplog):
    settings = _write_settings(tmp_path / "settings.toml", "[metronome]\ntick_volume = 50\n")
    mtimes = iter([1, 2, 2, 2])

    def edit_then_report_mtime(path):
        mtime = next(mtimes)
        if mtime == 2:
            path.write_text("[[metronome]]\ntick_count = 1\n")
        return mtime

    with patch("metronome.host._play_audio") as play, patch("metronome.cli._mtime", side_effect=edit_then_report_mtime):
        result = main(["--settings", str(settings), "--ticks", "3", "--tick-length", "0", "--watch"])

    assert result == 0
    assert "Ignoring invalid settings" in caplog.text
    # Previous settings stay in effect for every tick
    assert play.call_count == 3
