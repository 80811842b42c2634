"""File checksum calculation."""

import hashlib
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

logger = logging.getLogger(__name__)

MD5 = "md5"
SHA1 = "sha1"
DEFAULT_ALGORITHMS = (MD5, SHA1)


class ChecksumComputer:
    """Computes hex digests of a file for one or more algorithms in one pass."""

    def __init__(self, chunk_size: int = 8192) -> None:
        """Initialize checksum computer.

        Args:
            chunk_size: Read block size in bytes
        """
        self.chunk_size = chunk_size

    def calculate(
        self, file_path: Path, algorithms: Iterable[str] = DEFAULT_ALGORITHMS
    ) -> Dict[str, str]:
        """Calculate checksums of a file.

        Args:
            file_path: File to hash
            algorithms: hashlib algorithm names (case-insensitive)

        Returns:
            Mapping of lower-case algorithm name to hex digest

        Raises:
            OSError: If the file cannot be read
            ValueError: If an algorithm is not supported
        """
        hashers = {name.lower(): hashlib.new(name.lower()) for name in algorithms}
        with open(file_path, "rb") as f:
            for block in iter(lambda: f.read(self.chunk_size), b""):
                for hasher in hashers.values():
                    hasher.update(block)
        return {name: hasher.hexdigest() for name, hasher in hashers.items()}

    def try_calculate(
        self, file_path: Optional[Path], algorithms: Iterable[str] = DEFAULT_ALGORITHMS
    ) -> Dict[str, str]:
        """Calculate checksums, returning an empty mapping on failure."""
        if file_path is None or not Path(file_path).is_file():
            logger.warning("Cannot calculate checksums, file not found: %s", file_path)
            return {}
        try:
            return self.calculate(file_path, algorithms)
        except (OSError, ValueError) as e:
            logger.warning("Failed to compute checksums for %s: %s", file_path, e)
            return {}
