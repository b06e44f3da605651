import os
import shutil
import tempfile
import unittest
from unittest.mock import patch
from click.testing import CliRunner
from guestfsbuilder import builder, formula
from guestfsbuilder.builder import BuildState
from guestfsbuilder.dependencies import Platform, fetched_dependencies, plan
from guestfsbuilder.errors import (
    BuildDirectoryError,
    BuildStepError,
    IntegrityMismatchError,
    UnsatisfiedRequirementError,
)
from guestfsbuilder.main import cli

class TestMain(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()
        self.test_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def invoke(self, *args):
        return self.runner.invoke(cli, ["--path", self.test_dir, *args])

    def test_deps_linux(self):
        result = self.invoke("deps", "--platform", "linux")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("libfuse [runtime]", result.output)
        self.assertIn("autoconf [build]", result.output)
        self.assertNotIn("macfuse", result.output)

    def test_deps_macos(self):
        result = self.invoke("deps", "--platform", "macos")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("macfuse [build] (install separately)", result.output)
        self.assertIn("libxml2 [runtime] (provided by the system)", result.output)
        self.assertNotIn("libcap", result.output)

    def test_caveats(self):
        result = self.invoke("caveats", "--prefix", "/opt/libguestfs")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("export LIBGUESTFS_PATH=/opt/libguestfs/var/libguestfs-appliance", result.output)

    @patch.object(builder, 'install_libguestfs', return_value=BuildState.DONE)
    def test_install_passes_options(self, mock_install):
        result = self.invoke("install", "--head", "--prefix", "/opt/libguestfs", "--host-prefix", "/opt/homebrew")
        self.assertEqual(result.exit_code, 0)
        settings = mock_install.call_args.args[0]
        self.assertTrue(settings.head)
        self.assertEqual(settings.prefix, "/opt/libguestfs")
        self.assertEqual(settings.host_prefix, "/opt/homebrew")
        self.assertIn(formula.caveats("/opt/libguestfs"), result.output)

    @patch.object(builder, 'install_libguestfs')
    def test_install_unsatisfied_requirement_exits_non_zero(self, mock_install):
        mock_install.side_effect = UnsatisfiedRequirementError("macfuse", "macFUSE is required")
        result = self.invoke("install")
        self.assertEqual(result.exit_code, 1)
        self.assertNotIn("A fixed appliance is required", result.output)

    @patch.object(builder, 'install_libguestfs')
    def test_install_integrity_mismatch_exits_non_zero(self, mock_install):
        mock_install.side_effect = IntegrityMismatchError("fixed_appliance", "a" * 64, "b" * 64)
        result = self.invoke("install")
        self.assertEqual(result.exit_code, 1)

    @patch.object(builder, 'install_libguestfs')
    def test_install_step_failure_exits_non_zero(self, mock_install):
        mock_install.side_effect = BuildStepError(3, "Compile", 2, "make: *** Error 2")
        result = self.invoke("install")
        self.assertEqual(result.exit_code, 1)

    @patch.object(builder, 'install_libguestfs')
    def test_install_refuses_foreign_buildpath(self, mock_install):
        mock_install.side_effect = BuildDirectoryError("/home/me/libguestfs")
        result = self.invoke("install", "--buildpath", "/home/me/libguestfs")
        self.assertEqual(result.exit_code, 1)

    @patch.object(builder, 'run_quickcheck', return_value=True)
    def test_check(self, mock_quickcheck):
        result = self.invoke("check", "--prefix", "/opt/libguestfs")
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(mock_quickcheck.call_args.args[0].prefix, "/opt/libguestfs")

    def test_doctor_ok_on_linux(self):
        for dep in fetched_dependencies(plan(Platform.LINUX)):
            os.makedirs(os.path.join(self.test_dir, "opt", dep.name))
        with patch('guestfsbuilder.dependencies.sys.platform', 'linux'):
            self.invoke("config", "set", "build.host_prefix", self.test_dir)
            result = self.invoke("doctor")
        self.assertEqual(result.exit_code, 0)

    def test_doctor_reports_missing(self):
        with patch('guestfsbuilder.dependencies.sys.platform', 'linux'):
            result = self.invoke("config", "set", "build.host_prefix", self.test_dir)
            self.assertEqual(result.exit_code, 0)
            result = self.invoke("doctor")
        self.assertEqual(result.exit_code, 1)

if __name__ == '__main__':
    unittest.main()
