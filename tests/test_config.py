import tempfile
import unittest
from pathlib import Path

from exocore_console.config import (
    DEFAULT_POLL_INTERVAL_SEC,
    POLL_INTERVAL_KEY,
    REVEAL_CHUNK_KEY,
    REVEAL_INTERVAL_KEY,
    SAMPLER_SEED_KEY,
    load_config,
    load_env_file,
)


class TestConfig(unittest.TestCase):
    def test_defaults_without_env(self):
        with tempfile.TemporaryDirectory() as tmp:
            cfg = load_config(Path(tmp), environ={})
        self.assertEqual(cfg.poll_interval_sec, DEFAULT_POLL_INTERVAL_SEC)
        self.assertAlmostEqual(cfg.reveal_interval_sec, 0.035)
        self.assertEqual(cfg.reveal_chunk_chars, 6)
        self.assertIsNone(cfg.sampler_seed)
        self.assertEqual(cfg.log_level, "INFO")

    def test_env_file_then_process_env_override(self):
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / ".env").write_text(
                "# console settings\n"
                f"{POLL_INTERVAL_KEY}=2.5\n"
                f"{REVEAL_CHUNK_KEY}=12\n"
                f"{SAMPLER_SEED_KEY}=42\n",
                encoding="utf-8",
            )
            cfg = load_config(root, environ={REVEAL_CHUNK_KEY: "3", REVEAL_INTERVAL_KEY: "10"})
        self.assertEqual(cfg.poll_interval_sec, 2.5)
        self.assertEqual(cfg.reveal_chunk_chars, 3)
        self.assertAlmostEqual(cfg.reveal_interval_sec, 0.01)
        self.assertEqual(cfg.sampler_seed, 42)

    def test_invalid_values_fall_back(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertLogs("exocore_console.config", level="WARNING"):
                cfg = load_config(
                    Path(tmp),
                    environ={POLL_INTERVAL_KEY: "soon", REVEAL_CHUNK_KEY: "0", SAMPLER_SEED_KEY: "x"},
                )
        self.assertEqual(cfg.poll_interval_sec, DEFAULT_POLL_INTERVAL_SEC)
        self.assertEqual(cfg.reveal_chunk_chars, 1)
        self.assertIsNone(cfg.sampler_seed)

    def test_missing_env_file(self):
        self.assertEqual(load_env_file(Path("/nonexistent/.env")), {})


if __name__ == "__main__":
    unittest.main()
