"""
Tests for Settings

Unit tests for configuration loading and validation.
"""

import json
import os
import shutil
import tempfile
import unittest
from json.decoder import JSONDecodeError
from unittest.mock import patch

from rss_reader.settings import Settings


class TestSettings(unittest.TestCase):
    """Test cases for Settings class."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.settings_path = os.path.join(self.temp_dir, 'settings.json')

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def _write(self, content):
        with open(self.settings_path, 'w', encoding='utf-8') as f:
            if isinstance(content, str):
                f.write(content)
            else:
                json.dump(content, f, indent=2)

    def test_defaults(self):
        settings = Settings(use_env=False)

        self.assertEqual(settings.timeout, 30)
        self.assertTrue(settings.verify_tls)
        self.assertEqual(settings.log_level, "INFO")
        self.assertIsNone(settings.log_dir)

    def test_file_values_merge_with_defaults(self):
        self._write({"networking": {"timeout_seconds": 7.5}, "extra": {"kept": True}})

        settings = Settings(self.settings_path, use_env=False)

        self.assertEqual(settings.timeout, 7.5)
        self.assertTrue(settings.verify_tls)
        self.assertEqual(settings.log_level, "INFO")
        self.assertTrue(settings.get_config_value("extra.kept"))

    def test_get_config_value(self):
        settings = Settings(use_env=False)

        self.assertEqual(settings.get_config_value("networking.timeout_seconds"), 30)
        self.assertEqual(settings.get_config_value("networking.missing", "fallback"), "fallback")
        self.assertIsNone(settings.get_config_value("nothing.here"))

    def test_defaults_are_not_shared(self):
        first = Settings(use_env=False)
        first.settings["networking"]["timeout_seconds"] = 1

        self.assertEqual(Settings(use_env=False).timeout, 30)

    def test_environment_overrides(self):
        env = {
            "RSS_READER_TIMEOUT": "2.5",
            "RSS_READER_VERIFY_TLS": "false",
            "RSS_READER_LOG_LEVEL": "DEBUG",
            "RSS_READER_LOG_DIR": self.temp_dir,
        }
        with patch.dict(os.environ, env):
            settings = Settings()

        self.assertEqual(settings.timeout, 2.5)
        self.assertFalse(settings.verify_tls)
        self.assertEqual(settings.log_level, "DEBUG")
        self.assertEqual(settings.log_dir, self.temp_dir)

    def test_invalid_environment_value(self):
        with patch.dict(os.environ, {"RSS_READER_TIMEOUT": "soon"}):
            with self.assertRaises(ValueError):
                Settings()

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            Settings(os.path.join(self.temp_dir, 'missing.json'), use_env=False)

    def test_invalid_json(self):
        self._write("{not json")

        with self.assertRaises(JSONDecodeError):
            Settings(self.settings_path, use_env=False)

    def test_top_level_must_be_object(self):
        self._write([1, 2, 3])

        with self.assertRaises(TypeError):
            Settings(self.settings_path, use_env=False)

    def test_invalid_types(self):
        cases = [
            {"networking": {"timeout_seconds": "thirty"}},
            {"networking": {"timeout_seconds": True}},
            {"networking": {"verify_tls": "yes"}},
            {"logging": {"level": 10}},
            {"logging": {"log_dir": 5}},
            {"networking": []},
        ]
        for case in cases:
            self._write(case)
            with self.assertRaises(TypeError, msg=str(case)):
                Settings(self.settings_path, use_env=False)

    def test_invalid_values(self):
        for case in ({"networking": {"timeout_seconds": 0}}, {"logging": {"level": "LOUD"}}):
            self._write(case)
            with self.assertRaises(ValueError, msg=str(case)):
                Settings(self.settings_path, use_env=False)

    def test_timeout_may_be_disabled(self):
        self._write({"networking": {"timeout_seconds": None}})

        self.assertIsNone(Settings(self.settings_path, use_env=False).timeout)


if __name__ == '__main__':
    unittest.main()
