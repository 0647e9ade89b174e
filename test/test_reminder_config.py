"""
Test reminder configuration loading
Run with: pytest test/test_reminder_config.py
"""

import pytest
import yaml
from pydantic import ValidationError

from os_interfaces.base import Importance
from reminders.config import (
  CONFIG_ENV_VAR,
  ReminderSettings,
  default_config_path,
  load_settings,
)
from reminders.models import AlarmSpec


@pytest.fixture
def valid_config_yaml():
  """Fixture providing a partial override of the defaults"""
  return """
default_hour: 7
default_minute: 30
default_title: "Drink!"
channel_importance: default
backend_port: 8123
timezone: UTC
"""


def test_load_valid_config(valid_config_yaml, tmp_path):
  config_file = tmp_path / "reminders.yaml"
  config_file.write_text(valid_config_yaml)

  settings = load_settings(config_file)

  assert settings.default_hour == 7
  assert settings.default_minute == 30
  assert settings.default_title == "Drink!"
  assert settings.channel_importance == Importance.DEFAULT
  assert settings.backend_url == "http://127.0.0.1:8123"
  assert settings.timezone == "UTC"
  # Untouched keys keep their defaults
  assert settings.default_body == ReminderSettings().default_body


def test_missing_file_gives_defaults(tmp_path):
  assert load_settings(tmp_path / "nope.yaml") == ReminderSettings()


def test_empty_file_gives_defaults(tmp_path):
  config_file = tmp_path / "reminders.yaml"
  config_file.write_text("")

  assert load_settings(config_file) == ReminderSettings()


def test_non_mapping_rejected(tmp_path):
  config_file = tmp_path / "reminders.yaml"
  config_file.write_text("- 1\n- 2\n")

  with pytest.raises(ValueError, match="mapping"):
    load_settings(config_file)


def test_malformed_yaml_rejected(tmp_path):
  config_file = tmp_path / "reminders.yaml"
  config_file.write_text("default_hour: [7\n")

  with pytest.raises(yaml.YAMLError):
    load_settings(config_file)


@pytest.mark.parametrize(
  "content",
  [
    "default_hour: 24",
    "default_minute: 60",
    "one_shot_seconds: -1",
    "timezone: Mars/Olympus_Mons",
    "channel_importance: urgent",
  ],
)
def test_invalid_values_rejected(content, tmp_path):
  config_file = tmp_path / "reminders.yaml"
  config_file.write_text(content)

  with pytest.raises(ValidationError):
    load_settings(config_file)


def test_env_var_selects_config_path(monkeypatch, tmp_path):
  config_file = tmp_path / "custom.yaml"
  config_file.write_text("default_minute: 45")
  monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file))

  assert default_config_path() == config_file
  assert load_settings().default_minute == 45


def test_default_path_without_env_var(monkeypatch):
  monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

  path = default_config_path()

  assert path.name == "reminders.yaml"
  assert "aquabalance" in str(path)


class TestDailySpec:
  """Tests for ReminderSettings.daily_spec"""

  def test_all_defaults(self):
    settings = ReminderSettings()

    assert settings.daily_spec() == AlarmSpec(
      alarm_id=0,
      hour=9,
      minute=0,
      title="Time to Hydrate! 💧",
      body="Remember to log your water intake and stay hydrated!",
      payload="",
    )

  def test_explicit_values_win(self):
    spec = ReminderSettings().daily_spec(alarm_id=5, hour=0, minute=0, payload="x")

    assert (spec.alarm_id, spec.hour, spec.minute, spec.payload) == (5, 0, 0, "x")

  def test_defaults_follow_settings(self):
    settings = ReminderSettings(default_alarm_id=9, default_hour=21, default_title="T")

    spec = settings.daily_spec()

    assert (spec.alarm_id, spec.hour, spec.title) == (9, 21, "T")

  def test_invalid_hour_rejected(self):
    with pytest.raises(ValidationError):
      ReminderSettings().daily_spec(hour=24)


class TestAlarmExtras:
  """Tests for the wake extras carried by an alarm"""

  def test_extras_keys(self):
    spec = ReminderSettings().daily_spec(alarm_id=2, hour=8, minute=15, payload="p")

    assert spec.to_extras() == {
      "alarmId": 2,
      "hour": 8,
      "minute": 15,
      "title": spec.title,
      "body": spec.body,
      "payload": "p",
    }

  def test_partial_extras_fall_back_to_defaults(self):
    settings = ReminderSettings()

    spec = AlarmSpec.from_extras({"alarmId": 3, "hour": 12}, settings)

    assert (spec.alarm_id, spec.hour, spec.minute) == (3, 12, 0)
    assert spec.title == settings.default_title
