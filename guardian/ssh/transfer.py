"""
File and directory upload over SFTP
"""
import os
import posixpath
import shutil
import stat
from pathlib import Path
from typing import List, Union

from ..core.exceptions import TransferError
from ..core.logging import get_logger
from .models import TransferEntry

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]


def walk_tree(src: PathLike) -> List[TransferEntry]:
    """
    Expand a local directory into entries, parents always before children.
    
    The root itself is the first entry (relative path "."). Symlinks and special
    files are left out.
    """
    root = Path(src)
    entries = [TransferEntry(".", True)]
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        dirnames.sort()
        base = Path(dirpath)
        rel_base = base.relative_to(root)
        
        for name in list(dirnames):
            if (base / name).is_symlink():
                logger.warning("Skipping symlinked directory %s", base / name)
                dirnames.remove(name)
                continue
            entries.append(TransferEntry((rel_base / name).as_posix(), True))
        
        for name in sorted(filenames):
            path = base / name
            mode = path.lstat().st_mode
            if not stat.S_ISREG(mode):
                logger.warning("Skipping %s: not a regular file", path)
                continue
            entries.append(TransferEntry((rel_base / name).as_posix(), False))
    return entries


class FileTransfer:
    """Uploads files and directory trees through a session's SFTP channel"""
    
    def __init__(self, session):
        self.session = session
    
    def put(self, src: PathLike, dst: str) -> None:
        """Upload a file or a directory, depending on what src is"""
        if Path(src).is_dir():
            self.put_dir(src, dst)
        else:
            self.put_file(src, dst)
    
    def put_file(self, src: PathLike, dst: str) -> None:
        """
        Copy one file, creating or truncating the destination.
        
        Raises:
            TransferError: If the upload fails
        """
        sftp = self.session.open_sftp()
        try:
            self._put_file(sftp, Path(src), dst)
        finally:
            sftp.close()
    
    def put_dir(self, src: PathLike, dst: str) -> None:
        """
        Recreate a local directory tree under dst.
        
        Directories are created before the files inside them; an existing remote
        directory is fine. Nothing is rolled back on failure.
        
        Raises:
            TransferError: Naming the entry that failed
        """
        root = Path(src)
        try:
            entries = walk_tree(root)
        except OSError as e:
            raise TransferError(str(root), e) from e
        
        sftp = self.session.open_sftp()
        try:
            for entry in entries:
                remote = dst if entry.relative_path == "." else posixpath.join(dst, entry.relative_path)
                if entry.is_dir:
                    self._makedirs(sftp, remote)
                else:
                    self._put_file(sftp, root / entry.relative_path, remote)
        finally:
            sftp.close()
        logger.info("Uploaded %d entries from %s to %s:%s", len(entries), root, self.session.host.name, dst)
    
    def _put_file(self, sftp, src: Path, dst: str) -> None:
        logger.debug("Uploading %s -> %s", src, dst)
        try:
            with open(src, "rb") as local_file:
                with sftp.open(dst, "wb") as remote_file:
                    shutil.copyfileobj(local_file, remote_file)
        except (OSError, EOFError) as e:
            raise TransferError(str(src), e) from e
    
    def _makedirs(self, sftp, path: str) -> None:
        """mkdir -p"""
        parts = []
        current = path.rstrip("/") or "/"
        while current not in ("", "/", "."):
            parts.append(current)
            current = posixpath.dirname(current)
        
        for directory in reversed(parts):
            try:
                sftp.mkdir(directory)
            except OSError as e:
                if not self._is_dir(sftp, directory):
                    raise TransferError(directory, e) from e
    
    @staticmethod
    def _is_dir(sftp, path: str) -> bool:
        try:
            return stat.S_ISDIR(sftp.stat(path).st_mode)
        except OSError:
            return False
