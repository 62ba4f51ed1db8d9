"""
Configuration Test Suite

Precedence between explicit overrides, STOREFIX_* environment variables,
config.conf and defaults.

Author: StoreFix Project
License: GNU GPL v3
"""

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from storefix.config import FixerConfig, find_config_file, load_config
from storefix.engine.base import MAX_VERSIONS_TO_KEEP
from storefix.errors import ConfigError
from storefix.models import RecoveryOptions


CONFIG_TEXT = """
[store]
dir = /srv/store   # table directory
num_versions = 2

[engine]
engine = fakes:HealthyEngine

[backup]
backup_dir = /srv/backup
force_not_empty = yes

[logging]
log_backup_count = 9
"""


def clean_env():
    return {k: v for k, v in os.environ.items() if not k.startswith('STOREFIX_')}


class ConfigTestCase(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.conf = Path(self._tmp.name) / "config.conf"
        self.conf.write_text(CONFIG_TEXT)

        env = patch.dict(os.environ, clean_env(), clear=True)
        env.start()
        self.addCleanup(env.stop)


class TestDefaults(ConfigTestCase):

    def test_defaults_without_config_file(self):
        with patch('storefix.config.find_config_file', return_value=None):
            config = load_config()

        self.assertEqual(config.dir, "")
        self.assertIsNone(config.backup_dir)
        self.assertFalse(config.force_not_empty)
        self.assertTrue(config.verify_backup_content)
        self.assertEqual(config.num_versions, 0)

    def test_each_load_is_independent(self):
        with patch('storefix.config.find_config_file', return_value=None):
            first = load_config(dir="/a")
            second = load_config(dir="/b")
        self.assertIsNot(first, second)
        self.assertEqual(first.dir, "/a")


class TestConfigFile(ConfigTestCase):

    def test_values_from_file(self):
        config = load_config(config_file=str(self.conf))

        self.assertEqual(config.dir, "/srv/store")
        self.assertEqual(config.num_versions, 2)
        self.assertEqual(config.engine, "fakes:HealthyEngine")
        self.assertEqual(config.backup_dir, "/srv/backup")
        self.assertTrue(config.force_not_empty)
        self.assertEqual(config.log_backup_count, 9)

    def test_explicit_override_beats_file(self):
        config = load_config(config_file=str(self.conf), dir="/cli/store", force_not_empty=False)
        self.assertEqual(config.dir, "/cli/store")
        self.assertFalse(config.force_not_empty)

    def test_none_override_falls_through(self):
        config = load_config(config_file=str(self.conf), dir=None)
        self.assertEqual(config.dir, "/srv/store")

    def test_environment_beats_file(self):
        os.environ['STOREFIX_DIR'] = "/env/store"
        config = load_config(config_file=str(self.conf))
        self.assertEqual(config.dir, "/env/store")

    def test_config_file_from_environment(self):
        os.environ['STOREFIX_CONFIG_FILE'] = str(self.conf)
        self.assertEqual(find_config_file(), self.conf)

    def test_invalid_boolean(self):
        self.conf.write_text("[backup]\nforce_not_empty = maybe\n")
        with self.assertRaises(ConfigError):
            load_config(config_file=str(self.conf))

    def test_invalid_integer(self):
        self.conf.write_text("[store]\nnum_versions = lots\n")
        with self.assertRaises(ConfigError):
            load_config(config_file=str(self.conf))

    def test_empty_values_mean_unset(self):
        self.conf.write_text("[store]\ndir = /x\nvalue_dir =\n[backup]\nbackup_dir =\n")
        config = load_config(config_file=str(self.conf))
        self.assertIsNone(config.value_dir)
        self.assertIsNone(config.backup_dir)


class TestDerivedOptions(ConfigTestCase):

    def test_engine_options_require_dir(self):
        with patch('storefix.config.find_config_file', return_value=None):
            config = FixerConfig()
        with self.assertRaises(ConfigError):
            config.engine_options()

    def test_engine_options_from_file(self):
        options = load_config(config_file=str(self.conf)).engine_options()
        self.assertEqual(options.dir, "/srv/store")
        self.assertEqual(options.value_dir, "/srv/store")
        self.assertEqual(options.num_versions_to_keep, 2)
        self.assertTrue(options.read_only)

    def test_engine_options_keep_all_versions(self):
        with patch('storefix.config.find_config_file', return_value=None):
            options = load_config(dir="/d", value_dir="/v").engine_options()
        self.assertEqual(options.num_versions_to_keep, MAX_VERSIONS_TO_KEEP)
        self.assertEqual(options.value_dir, "/v")
        self.assertFalse(options.read_only)

    def test_recovery_options(self):
        options = load_config(config_file=str(self.conf)).recovery_options()
        self.assertEqual(options, RecoveryOptions(backup_dir="/srv/backup", force_delete_non_empty=True))


if __name__ == '__main__':
    unittest.main()
