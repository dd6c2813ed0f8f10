"""folder_utils.py: Folder utility functions for the gridops package."""

import os


def get_gridops_dir() -> str:
    """Returns the directory of the installed gridops package."""
    return os.path.dirname(os.path.abspath(__file__))


def get_config_file() -> str:
    """Returns the path of the default configuration file."""
    return os.path.join(get_gridops_dir(), "user_config.ini")


def get_test_dir() -> str:
    """Returns the test directory of the gridops package."""
    return os.path.join(os.path.dirname(get_gridops_dir()), "test_gridops")
