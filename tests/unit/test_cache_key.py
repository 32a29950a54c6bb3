import subprocess
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "installers" / "bootstrap"))

from staticsites_core.errors import CodenameQueryError
from staticsites_bootstrap.cache import derive_cache_key, linux_codename


class _Runner:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def output(self, command, args=()):
        self.calls.append([command, *args])
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class CacheKeyTests(unittest.TestCase):
    def test_key_layout(self):
        key = derive_cache_key("StaticSitesClient", "1.0.020761-stable", "win32", "x64")
        self.assertEqual(key, "StaticSitesClient-1.0.020761-stable-win32-x64-cache")

    def test_codename_suffix(self):
        key = derive_cache_key("StaticSitesClient", "1.0.020761-stable", "linux", "x64", "jammy")
        self.assertEqual(key, "StaticSitesClient-1.0.020761-stable-linux-x64-jammy-cache")

    def test_deterministic(self):
        args = ("StaticSitesClient", "1.4.2-latest", "linux", "x64", "focal")
        self.assertEqual(derive_cache_key(*args), derive_cache_key(*args))

    def test_every_input_changes_key(self):
        base = ("StaticSitesClient", "1.4.2-latest", "linux", "x64", "focal")
        variants = [
            ("OtherTool", "1.4.2-latest", "linux", "x64", "focal"),
            ("StaticSitesClient", "1.4.3-latest", "linux", "x64", "focal"),
            ("StaticSitesClient", "1.4.2-latest", "darwin", "x64", "focal"),
            ("StaticSitesClient", "1.4.2-latest", "linux", "arm64", "focal"),
            ("StaticSitesClient", "1.4.2-latest", "linux", "x64", "jammy"),
        ]
        for variant in variants:
            with self.subTest(variant=variant):
                self.assertNotEqual(derive_cache_key(*base), derive_cache_key(*variant))


class LinuxCodenameTests(unittest.TestCase):
    def test_queries_lsb_release(self):
        runner = _Runner("jammy")
        self.assertEqual(linux_codename(runner), "jammy")
        self.assertEqual(runner.calls, [["lsb_release", "-cs"]])

    def test_missing_command_is_fatal(self):
        with self.assertRaises(CodenameQueryError):
            linux_codename(_Runner(FileNotFoundError("lsb_release")))

    def test_failed_command_is_fatal(self):
        with self.assertRaises(CodenameQueryError):
            linux_codename(_Runner(subprocess.CalledProcessError(1, ["lsb_release", "-cs"])))

    def test_empty_codename_is_fatal(self):
        with self.assertRaises(CodenameQueryError):
            linux_codename(_Runner(""))


if __name__ == "__main__":
    unittest.main()
