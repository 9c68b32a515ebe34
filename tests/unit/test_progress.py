from __future__ import annotations

from unittest.mock import MagicMock, patch

from sheetbridge.services.progress import CYCLE_STAGES, ProgressTracker, is_tty_enabled


def test_disabled_without_tty():
    with patch("sheetbridge.services.progress.is_tty_enabled", return_value=False):
        with ProgressTracker() as tracker:
            assert tracker.enabled is False
            assert tracker.pbar is None
            tracker.start_stage("locate")
            tracker.finish_stage()
            tracker.set_postfix(records=1)
        assert tracker.current_stage == "locate"


def test_enabled_with_tty():
    fake_bar = MagicMock()
    with patch("sheetbridge.services.progress.is_tty_enabled", return_value=True), \
            patch("sheetbridge.services.progress.tqdm", return_value=fake_bar) as tqdm_cls:
        tracker = ProgressTracker()
        tracker.start_stage("transform")
        tracker.finish_stage()
        tracker.close()
    assert tqdm_cls.call_args.kwargs["total"] == len(CYCLE_STAGES)
    fake_bar.update.assert_called_once_with(1)
    fake_bar.close.assert_called_once()
    assert tracker.pbar is None


def test_is_tty_enabled_follows_stdout():
    with patch("sys.stdout") as stdout:
        stdout.isatty.return_value = True
        assert is_tty_enabled() is True
