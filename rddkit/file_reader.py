"""Reading files from the local file system into balanced partitions."""

from __future__ import annotations

import logging
import math
import os
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)


def _extension(path: Path) -> str | None:
    suffix = path.suffix
    return suffix[1:] if suffix else None


class LocalFsReaderConfig:
    """Settings for reading every file of a directory, or a single file."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.dir_path = Path(path)
        self.filter_ext: str | None = None
        self.expect_dir = True
        self.executor_partitions: int | None = None

    def filter_extension(self, extension: str) -> None:
        """Only read files whose extension (without the dot) is ``extension``."""
        self.filter_ext = str(extension)

    def expect_directory(self, should_exist: bool) -> None:
        """Whether the directory is expected to exist on every node."""
        self.expect_dir = should_exist

    def num_partitions_per_executor(self, num: int) -> None:
        """Number of partitions each executor uses for the load tasks."""
        self.executor_partitions = num

    def make_reader(self) -> LocalFsReader:
        return LocalFsReader(self)


class LocalFsReader:
    """Spreads the files of a local path over a number of partitions."""

    def __init__(self, config: LocalFsReaderConfig) -> None:
        self.path = config.dir_path
        self.is_single_file = self.path.is_file()
        self.filter_ext = config.filter_ext
        self.expect_dir = config.expect_dir
        self.files: list[list[Path]] = []
        if config.executor_partitions is not None:
            self.executor_partitions = config.executor_partitions
        else:
            self.executor_partitions = os.cpu_count() or 1
        self._rng = random.Random()

    def load_local_files(self) -> list[list[Path]]:
        """List the files on this host and group them into partitions.

        Raises ``OSError`` if the path cannot be read and ``ValueError`` if
        the directory holds no matching files.
        """
        if self.is_single_file:
            self.path.stat()
            self.files.append([self.path])
            return self.files

        files: list[tuple[int, Path]] = []
        total_size = 0
        total_files = 0
        # Running sums for an incremental standard deviation of file sizes.
        reference = 0
        ex = 0.0
        ex2 = 0.0

        for index, path in enumerate(sorted(self.path.iterdir())):
            if not path.is_file():
                continue
            if self.filter_ext is not None and _extension(path) != self.filter_ext:
                continue
            size = path.stat().st_size
            if index == 0:
                reference = size
            delta = float(size - reference)
            ex += delta
            ex2 += delta * delta
            total_size += size
            total_files += 1
            files.append((size, path))

        if total_files == 0:
            raise ValueError(f"no files to read in {self.path}")

        file_size_mean = total_size // total_files
        variance = (ex2 - (ex * ex) / total_files) / total_files
        std_dev = math.sqrt(max(variance, 0.0))

        if total_files < self.executor_partitions:
            self.executor_partitions = total_files

        avg_partition_size = total_size // self.executor_partitions
        return self.assign_files_to_partitions(files, file_size_mean, avg_partition_size, std_dev)

    def assign_files_to_partitions(
        self,
        files: list[tuple[int, Path]],
        file_size_mean: int,
        avg_partition_size: int,
        std_dev: float,
    ) -> list[list[Path]]:
        """Assign ``(size, path)`` pairs to partitions of roughly equal total size."""
        num_partitions = self.executor_partitions
        # Accept about a quarter of a standard deviation above the average.
        high_part_size_bound = avg_partition_size + int(std_dev * 0.25)
        logger.debug(
            "the average part size is %s with a high bound of %s",
            avg_partition_size,
            high_part_size_bound,
        )
        logger.debug(
            "assigning files from local fs to partitions, file size mean: %s; std_dev: %s",
            file_size_mean,
            std_dev,
        )

        partitions: list[list[Path]] = []
        partition: list[Path] = []
        current_size = 0

        for size, file in files:
            if len(partitions) == num_partitions - 1:
                partition.append(file)
                continue
            new_size = current_size + size
            larger_than_mean = self._rng.random() < 0.5
            if (larger_than_mean and new_size < high_part_size_bound) or (
                not larger_than_mean and new_size <= avg_partition_size
            ):
                partition.append(file)
                current_size = new_size
            elif size > avg_partition_size:
                partitions.append(partition)
                partitions.append([file])
                partition = []
                current_size = 0
            else:
                partitions.append(partition)
                partition = [file]
                current_size = size
        partitions.append(partition)

        # Skew can leave fewer partitions than requested; split the tail ones.
        current_pos = len(partitions) - 1
        while len(partitions) < self.executor_partitions:
            if len(partitions[current_pos]) > 1:
                partitions.append([partitions[current_pos].pop()])
            elif current_pos > 0:
                current_pos -= 1
            else:
                break
        return partitions

    def slice_with_set_parts(self, parts: int) -> list[list[DistributedLocalReader]]:
        """Return one reader per partition of local files.

        The partition count comes from the configuration; ``parts`` is not used.
        """
        return [[DistributedLocalReader(tuple(chunk))] for chunk in self.load_local_files()]


@dataclass(frozen=True)
class DistributedLocalReader:
    """The files of one partition; iterating yields their contents."""

    files: tuple[Path, ...]

    def __iter__(self) -> Iterator[bytes]:
        for path in reversed(self.files):
            yield Path(path).read_bytes()