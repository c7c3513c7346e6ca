import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "installers" / "bootstrap"))

from fritzbox_bootstrap.config import InstallContext, default_install_dir


class InstallContextTests(unittest.TestCase):
    def test_defaults_when_env_empty(self):
        ctx = InstallContext.from_env({})
        self.assertEqual(ctx.version, "latest")
        self.assertEqual(ctx.install_dir, default_install_dir())
        self.assertEqual(ctx.target_path, default_install_dir() / "fritzbox-mcp-server")
        self.assertEqual(ctx.release_base, "https://github.com/kambriso/fritzbox-mcp-server/releases/download")
        self.assertEqual(
            ctx.latest_release_url,
            "https://api.github.com/repos/kambriso/fritzbox-mcp-server/releases/latest",
        )

    def test_env_overrides(self):
        ctx = InstallContext.from_env(
            {
                "FRITZBOX_MCP_VERSION": "v0.4.0",
                "FRITZBOX_MCP_INSTALL_DIR": "/opt/fritz/bin",
                "FRITZBOX_MCP_CA_BUNDLE": "/etc/ssl/corp.pem",
            }
        )
        self.assertEqual(ctx.version, "v0.4.0")
        self.assertEqual(ctx.install_dir, Path("/opt/fritz/bin"))
        self.assertEqual(ctx.ca_bundle, "/etc/ssl/corp.pem")

    def test_blank_env_counts_as_unset(self):
        ctx = InstallContext.from_env({"FRITZBOX_MCP_VERSION": "", "FRITZBOX_MCP_INSTALL_DIR": ""})
        self.assertEqual(ctx.version, "latest")
        self.assertEqual(ctx.install_dir, default_install_dir())

    def test_env_version_passed_through_unchanged(self):
        ctx = InstallContext.from_env({"FRITZBOX_MCP_VERSION": " v1 "})
        self.assertEqual(ctx.version, " v1 ")

    def test_max_attempts_bounded_by_backoff_schedule(self):
        self.assertEqual(InstallContext().max_attempts, 3)
        self.assertEqual(InstallContext(max_attempts=1).max_attempts, 1)
        with self.assertRaises(ValueError):
            InstallContext(max_attempts=4)
        with self.assertRaises(ValueError):
            InstallContext(max_attempts=0)

    def test_explicit_overrides_beat_env(self):
        ctx = InstallContext.from_env(
            {"FRITZBOX_MCP_VERSION": "v0.3.0"},
            version="v0.4.0",
            install_dir=None,
        )
        self.assertEqual(ctx.version, "v0.4.0")
        self.assertEqual(ctx.install_dir, default_install_dir())

    def test_home_is_expanded(self):
        ctx = InstallContext.from_env({"FRITZBOX_MCP_INSTALL_DIR": "~/bin"})
        self.assertEqual(ctx.install_dir, Path.home() / "bin")

    def test_custom_download_base(self):
        ctx = InstallContext(download_base="https://mirror.example/releases/")
        self.assertEqual(ctx.release_base, "https://mirror.example/releases")


if __name__ == "__main__":
    unittest.main()
