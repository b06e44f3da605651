import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from guestfsbuilder.errors import UnsatisfiedRequirementError
from guestfsbuilder.requirement import MacFuseRequirement


class TestMacFuseRequirement(unittest.TestCase):

    def setUp(self):
        self.root = tempfile.mkdtemp()
        self.requirement = MacFuseRequirement(root=self.root)

    def tearDown(self):
        shutil.rmtree(self.root)

    def _install_header(self, directory):
        os.makedirs(directory, exist_ok=True)
        with open(os.path.join(directory, "fuse.h"), "w") as f:
            f.write("/* fuse */\n")

    def test_missing_header(self):
        self.assertFalse(self.requirement.satisfied())

    def test_regular_header(self):
        self._install_header(os.path.join(self.root, "include", "fuse"))
        self.assertTrue(self.requirement.satisfied())

    def test_symlinked_include_dir(self):
        real = os.path.join(self.root, "osxfuse")
        self._install_header(real)
        os.makedirs(os.path.join(self.root, "include"))
        os.symlink(real, os.path.join(self.root, "include", "fuse"))

        self.assertTrue(os.path.exists(self.requirement.header))
        self.assertFalse(self.requirement.satisfied())

    def test_symlinked_header(self):
        real = os.path.join(self.root, "elsewhere.h")
        with open(real, "w") as f:
            f.write("/* decoy */\n")
        os.makedirs(os.path.join(self.root, "include", "fuse"))
        os.symlink(real, self.requirement.header)
        self.assertFalse(self.requirement.satisfied())

    @patch('guestfsbuilder.requirement.logger')
    def test_check_raises_with_message(self, mock_logger):
        with self.assertRaises(UnsatisfiedRequirementError) as cm:
            self.requirement.check()
        self.assertEqual(str(cm.exception), MacFuseRequirement.message)
        self.assertIn("brew install --cask macfuse", cm.exception.message)
        mock_logger.error.assert_called_once_with(MacFuseRequirement.message)

    def test_no_search_paths_for_default_prefix(self):
        self.assertEqual(MacFuseRequirement().search_paths("/usr/local"), {})
        self.assertEqual(MacFuseRequirement().search_paths("/usr/local/"), {})

    def test_search_paths_for_other_prefix(self):
        paths = MacFuseRequirement().search_paths("/opt/homebrew")
        self.assertEqual(paths, {
            "HOMEBREW_LIBRARY_PATHS": "/usr/local/lib",
            "HOMEBREW_INCLUDE_PATHS": "/usr/local/include/fuse",
        })


if __name__ == '__main__':
    unittest.main()
