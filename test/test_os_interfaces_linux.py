"""Tests for Linux OS interfaces"""

import shlex
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

pytest.importorskip("desktop_notifier")
pytest.importorskip("pystemd")

from desktop_notifier import Urgency  # noqa: E402

from os_interfaces.base import ClockBase, Importance, NotificationButton  # noqa: E402
from os_interfaces.linux import (  # noqa: E402
  LinuxNotifier,
  LinuxWakeScheduler,
  decode_extras,
  encode_extras,
)


def test_extras_token_survives_shell_quoting():
  extras = {"alarmId": 1, "title": "Time to Hydrate! 💧", "body": "it's \"time\""}
  token = encode_extras(extras)

  assert shlex.split(token) == [token]
  assert decode_extras(token) == extras


def test_empty_token_decodes_to_no_extras():
  assert decode_extras("") == {}


class TestLinuxNotifier:
  """Tests for LinuxNotifier"""

  @patch("os_interfaces.linux.DesktopNotifier")
  def test_init(self, mock_notifier_class):
    notifier = LinuxNotifier(app_name="TestApp")
    mock_notifier_class.assert_called_once_with(app_name="TestApp")
    assert notifier.notifier is not None

  @pytest.mark.asyncio
  @patch("os_interfaces.linux.DesktopNotifier")
  async def test_post_with_actions(self, mock_notifier_class):
    mock_notifier = MagicMock()
    mock_notifier.send = AsyncMock(return_value="n-1")
    mock_notifier_class.return_value = mock_notifier

    notifier = LinuxNotifier(app_name="TestApp")
    notifier.ensure_channel("water", Importance.HIGH, "Water", "Reminders")
    drink, tap = MagicMock(), MagicMock()
    await notifier.post(
      1, "Title", "Body", [NotificationButton("I Drank Water", drink)], tap, channel_id="water"
    )

    kwargs = mock_notifier.send.call_args.kwargs
    assert kwargs["title"] == "Title"
    assert kwargs["message"] == "Body"
    assert kwargs["urgency"] == Urgency.Critical
    assert kwargs["on_clicked"] is tap
    [button] = kwargs["buttons"]
    assert button.title == "I Drank Water"
    button.on_pressed()
    drink.assert_called_once()

  @pytest.mark.asyncio
  @patch("os_interfaces.linux.DesktopNotifier")
  async def test_unknown_channel_posts_normal_urgency(self, mock_notifier_class):
    mock_notifier = MagicMock()
    mock_notifier.send = AsyncMock()
    mock_notifier_class.return_value = mock_notifier

    notifier = LinuxNotifier(app_name="TestApp")
    await notifier.post(1, "Title", "Body", [])

    assert mock_notifier.send.call_args.kwargs["urgency"] == Urgency.Normal

  @pytest.mark.asyncio
  @patch("os_interfaces.linux.DesktopNotifier")
  async def test_repost_replaces_previous(self, mock_notifier_class):
    mock_notifier = MagicMock()
    mock_notifier.send = AsyncMock(side_effect=["first", "second"])
    mock_notifier.clear = AsyncMock()
    mock_notifier_class.return_value = mock_notifier

    notifier = LinuxNotifier(app_name="TestApp")
    await notifier.post(1, "Title", "Body", [])
    await notifier.post(1, "Title", "Body", [])

    mock_notifier.clear.assert_awaited_once_with("first")

  @pytest.mark.asyncio
  @patch("os_interfaces.linux.DesktopNotifier")
  async def test_clear_sent_notification(self, mock_notifier_class):
    mock_notifier = MagicMock()
    mock_notifier.send = AsyncMock(return_value="n-7")
    mock_notifier.clear = AsyncMock()
    mock_notifier_class.return_value = mock_notifier

    notifier = LinuxNotifier(app_name="TestApp")
    await notifier.post(7, "Title", "Body", [])
    await notifier.clear(7)
    await notifier.clear(7)

    mock_notifier.clear.assert_awaited_once_with("n-7")

  @patch("os_interfaces.linux.DesktopNotifier")
  def test_ensure_channel_idempotent(self, mock_notifier_class):
    notifier = LinuxNotifier(app_name="TestApp")
    notifier.ensure_channel("water", Importance.HIGH, "Water", "Reminders")
    notifier.ensure_channel("water", Importance.LOW, "Other", "Other")

    assert notifier.channels == {"water": Importance.HIGH}


@pytest.fixture
def mock_manager():
  with patch("os_interfaces.linux.DBus") as mock_dbus_class, patch(
    "os_interfaces.linux.Manager"
  ) as mock_manager_class:
    mock_dbus_class.return_value.__enter__ = MagicMock(return_value=MagicMock())
    mock_dbus_class.return_value.__exit__ = MagicMock(return_value=None)
    manager = MagicMock()
    manager.Manager.ListUnitFiles.return_value = []
    mock_manager_class.return_value = manager
    yield manager


@pytest.fixture
def scheduler(tmp_path):
  wakes = LinuxWakeScheduler(app_name="aqua", fire_command=["/usr/bin/aqua-fire"])
  with patch.object(LinuxWakeScheduler, "_user_unit_dir", return_value=tmp_path):
    yield wakes


class TestLinuxWakeScheduler:
  """Tests for LinuxWakeScheduler"""

  def test_default_fire_command_runs_worker_module(self):
    wakes = LinuxWakeScheduler(app_name="aqua")
    assert wakes.fire_command[-2:] == ["-m", "notification.main"]

  def test_register_wall_clock_wake(self, scheduler, mock_manager, tmp_path):
    when = datetime(2025, 6, 11, 7, 0, tzinfo=timezone.utc)
    extras = {"alarmId": 1, "hour": 9, "minute": 0}

    scheduler.register_exact_wake(1, int(when.timestamp() * 1000), ClockBase.WALL_CLOCK, extras)

    timer = (tmp_path / "aqua-alarm-1.timer").read_text()
    service = (tmp_path / "aqua-alarm-1.service").read_text()
    assert "OnCalendar=2025-06-11 07:00:00 UTC" in timer
    assert "Persistent=true" in timer
    assert "AccuracySec=1ms" in timer
    assert "WakeSystem=true" in timer
    assert "Unit=aqua-alarm-1.service" in timer
    assert f"ExecStart=/usr/bin/aqua-fire --extras {encode_extras(extras)}" in service
    mock_manager.Manager.Reload.assert_called_once()
    mock_manager.Manager.RestartUnit.assert_called_once_with(b"aqua-alarm-1.timer", b"replace")

  def test_register_uptime_wake(self, scheduler, mock_manager, tmp_path):
    scheduler.register_exact_wake(0, 123_456, ClockBase.BOOT_UPTIME, {})

    timer = (tmp_path / "aqua-alarm-0.timer").read_text()
    assert "OnBootSec=123456ms" in timer
    assert "OnCalendar" not in timer

  def test_register_same_key_overwrites(self, scheduler, mock_manager, tmp_path):
    scheduler.register_exact_wake(0, 1_000, ClockBase.BOOT_UPTIME, {})
    scheduler.register_exact_wake(0, 2_000, ClockBase.BOOT_UPTIME, {})

    assert "OnBootSec=2000ms" in (tmp_path / "aqua-alarm-0.timer").read_text()
    assert len(list(tmp_path.iterdir())) == 2

  def test_lookup_missing_returns_none(self, scheduler, mock_manager):
    assert scheduler.lookup_pending(5) is None

  def test_lookup_and_release(self, scheduler, mock_manager, tmp_path):
    scheduler.register_exact_wake(5, 1_000, ClockBase.BOOT_UPTIME, {})
    mock_manager.Manager.ListUnitFiles.return_value = [
      (str(tmp_path / "aqua-alarm-5.timer").encode(), b"static"),
    ]

    pending = scheduler.lookup_pending(5)
    assert pending is not None and pending.key == 5

    pending.cancel()
    assert list(tmp_path.iterdir()) == []

  def test_cancel_stops_timer(self, scheduler, mock_manager):
    scheduler.cancel(5)

    mock_manager.Manager.StopUnit.assert_called_once_with(b"aqua-alarm-5.timer", b"replace")

  def test_exact_always_allowed(self, scheduler):
    assert scheduler.can_schedule_exact() is True
