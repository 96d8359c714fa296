# src/codes_site/core/utils/path_utils.py
from pathlib import Path


class PathUtils:
    """
    A central utility for reliably retrieving important package paths.
    """

    @staticmethod
    def get_shell_package_root() -> Path:
        """Returns the directory of the codes_site package (where settings.json lives)."""
        return Path(__file__).resolve().parents[2]
