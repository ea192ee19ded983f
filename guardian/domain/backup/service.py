"""
Workspace backup and restore as a gzip-compressed tar archive
"""
import os
import shutil
import tarfile
from pathlib import Path, PurePosixPath
from typing import List, Optional, Tuple

from ...core.exceptions import BackupError
from ...core.logging import get_logger
from ...core.paths import WorkspacePaths

logger = get_logger(__name__)

ARCHIVE_MODE = 0o600


class BackupService:
    """
    Exports the whole workspace home (hosts, host data, keys, known hosts,
    settings) and restores it into another home.

    File modes travel with the archive, so the private key comes back as 0600.
    Only regular files and directories are archived or restored.
    """

    def __init__(self, paths: WorkspacePaths):
        self.paths = paths

    def export_archive(self, output: Path) -> int:
        """
        Write the workspace into `output` (created with mode 0600).

        Returns:
            Number of archive members written

        Raises:
            BackupError: Workspace missing or archive not writable
        """
        home = self.paths.home
        if not home.is_dir():
            raise BackupError(f"Nothing to export: {home} does not exist")

        skip = self._relative_to_home(output)
        count = 0

        def keep(info: tarfile.TarInfo) -> Optional[tarfile.TarInfo]:
            nonlocal count
            if skip is not None and info.name == skip:
                return None
            if not (info.isreg() or info.isdir()):
                logger.warning("Skipping %s: not a regular file or directory", info.name)
                return None
            count += 1
            return info

        try:
            fd = os.open(output, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, ARCHIVE_MODE)
            os.fchmod(fd, ARCHIVE_MODE)
            with os.fdopen(fd, "wb") as fh:
                with tarfile.open(fileobj=fh, mode="w:gz") as tar:
                    for path in sorted(home.iterdir()):
                        tar.add(path, arcname=path.name, filter=keep)
        except (OSError, tarfile.TarError) as e:
            Path(output).unlink(missing_ok=True)
            raise BackupError(f"Export to {output} failed: {e}") from e

        logger.info("Exported %d entries from %s to %s", count, home, output)
        return count

    def import_archive(self, archive: Path) -> int:
        """
        Restore an exported archive into the workspace home.

        Every member is checked before anything is written; existing files
        with the same name are replaced.

        Returns:
            Number of archive members restored

        Raises:
            BackupError: Unreadable archive or a member that would land outside
                the workspace
        """
        home = self.paths.home
        try:
            with tarfile.open(archive, "r:gz") as tar:
                members = tar.getmembers()
                for member in members:
                    check_member(member)

                home.mkdir(parents=True, exist_ok=True)
                directories: List[Tuple[Path, int]] = []
                for member in members:
                    target = home.joinpath(*PurePosixPath(member.name).parts)
                    mode = member.mode & 0o777
                    if member.isdir():
                        target.mkdir(parents=True, exist_ok=True)
                        directories.append((target, mode))
                        continue
                    target.parent.mkdir(parents=True, exist_ok=True)
                    self._restore_file(tar, member, target, mode)

                # directory modes last, a read-only directory would block its own files
                for directory, mode in directories:
                    os.chmod(directory, mode)
        except (OSError, tarfile.TarError) as e:
            raise BackupError(f"Import from {archive} failed: {e}") from e

        logger.info("Imported %d entries from %s into %s", len(members), archive, home)
        return len(members)

    @staticmethod
    def _restore_file(tar: tarfile.TarFile, member: tarfile.TarInfo, target: Path, mode: int) -> None:
        source = tar.extractfile(member)
        if source is None:
            raise BackupError(f"Archive member {member.name} has no content")
        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        # an existing file keeps its old mode through os.open
        os.fchmod(fd, mode)
        with source, os.fdopen(fd, "wb") as dst:
            shutil.copyfileobj(source, dst)

    def _relative_to_home(self, path: Path) -> Optional[str]:
        try:
            return Path(path).resolve().relative_to(self.paths.home.resolve()).as_posix()
        except ValueError:
            return None


def check_member(member: tarfile.TarInfo) -> None:
    """Reject members that are not plain files/directories or escape the target"""
    name = PurePosixPath(member.name)
    if name.is_absolute() or member.name.startswith("\\"):
        raise BackupError(f"Refusing archive member with absolute path: {member.name}")
    if ".." in name.parts:
        raise BackupError(f"Refusing archive member outside the workspace: {member.name}")
    if not name.parts:
        raise BackupError("Refusing archive member with an empty name")
    if not (member.isreg() or member.isdir()):
        raise BackupError(f"Refusing archive member {member.name}: not a regular file or directory")
