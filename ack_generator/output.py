"""
Output writers for rendered artifacts: print them to the console, or write
them into a directory.
"""

import logging
import os
import sys
from typing import Sequence, TextIO

from .models import Artifact

logger = logging.getLogger(__name__)


class StdoutWriter:
    """Prints each artifact under a banner line with its file name."""

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream

    def write(self, artifacts: Sequence[Artifact]):
        stream = self.stream or sys.stdout
        for artifact in artifacts:
            banner = "=" * 29
            print(f"{banner} {artifact.name} {banner}", file=stream)
            print(artifact.content.decode("utf-8").strip(), file=stream)


class DirectoryWriter:
    """Writes each artifact as a file in the output directory."""

    def __init__(self, output_dir: str):
        self.output_dir = output_dir

    def ensure_output_dir(self) -> bool:
        """
        Makes sure the output directory exists and is writable.

        Returns:
            Whether the directory already existed.

        Raises:
            OSError: If the path is not a directory or is not writable.
        """
        if not os.path.exists(self.output_dir):
            os.makedirs(self.output_dir)
            return False
        if not os.path.isdir(self.output_dir):
            raise NotADirectoryError(f"Expected {self.output_dir} to be a directory.")
        if not os.access(self.output_dir, os.W_OK):
            raise PermissionError(f"{self.output_dir} is not a writable directory.")
        return True

    def write(self, artifacts: Sequence[Artifact]):
        self.ensure_output_dir()
        for artifact in artifacts:
            output_path = os.path.join(self.output_dir, artifact.name)
            with open(output_path, "wb") as f:
                f.write(artifact.content)
            logger.info("Wrote %s", output_path)
