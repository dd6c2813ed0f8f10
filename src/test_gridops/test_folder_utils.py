"""test_folder_utils.py"""

import pathlib
import unittest
from unittest import mock

from gridops import folder_utils


class TestFolderUtils(unittest.TestCase):
    def test_get_gridops_dir(self):
        utils_file_path = pathlib.Path(folder_utils.__file__).resolve()
        expected_dir = utils_file_path.parent
        self.assertEqual(pathlib.Path(folder_utils.get_gridops_dir()), expected_dir)
        self.assertTrue(expected_dir.is_dir())

    def test_get_config_file(self):
        config_file = pathlib.Path(folder_utils.get_config_file())
        self.assertEqual(config_file.name, "user_config.ini")
        self.assertTrue(config_file.is_file())

    def test_get_test_dir(self):
        with mock.patch(
            "gridops.folder_utils.get_gridops_dir",
            return_value="/fake/src/gridops",
        ):
            self.assertEqual(
                pathlib.Path(folder_utils.get_test_dir()),
                pathlib.Path("/fake/src/test_gridops"),
            )


if __name__ == "__main__":
    unittest.main()
