"""
Deployment package construction for the workshop Lambda function.
"""
import base64
import hashlib
import io
import os
import shutil
import zipfile
from pathlib import Path
from typing import Iterable, Iterator, Tuple, Union
from logger_config import get_logger
from utils.exceptions import ValidationError

logger = get_logger(__name__)

# Everything handler.py needs at runtime.
DEFAULT_SOURCES = ("handler.py", "logger_config.py", "utils")

# Zip timestamps cannot predate 1980; pinning them keeps rebuilds byte-identical.
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)
FILE_MODE = 0o644 << 16

PathLike = Union[str, Path]


def _is_packaged(path: Path) -> bool:
    return "__pycache__" not in path.parts and path.suffix != ".pyc"


def iter_package_files(
    sources: Iterable[str],
    base_dir: PathLike
) -> Iterator[Tuple[Path, str]]:
    """
    Yield (file path, archive name) for every file to package.

    Directories are walked recursively in sorted order.

    Raises:
        ValidationError: If a source does not exist under base_dir
    """
    base = Path(base_dir)
    for source in sources:
        path = base / source
        if not path.exists():
            raise ValidationError(
                f"Package source not found: {path}", field="sources", value=source
            )
        if path.is_dir():
            files = sorted(p for p in path.rglob("*") if p.is_file())
        else:
            files = [path]
        for file_path in files:
            if _is_packaged(file_path.relative_to(base)):
                yield file_path, file_path.relative_to(base).as_posix()


def build_deployment_package(
    sources: Iterable[str] = DEFAULT_SOURCES,
    base_dir: PathLike = "."
) -> bytes:
    """
    Build the function's zip package in memory.

    Args:
        sources: Files and directories relative to base_dir
        base_dir: Directory that archive names are relative to

    Returns:
        The zip archive bytes
    """
    buffer = io.BytesIO()
    count = 0
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for file_path, arcname in iter_package_files(sources, base_dir):
            info = zipfile.ZipInfo(arcname, date_time=FIXED_DATE_TIME)
            info.external_attr = FILE_MODE
            info.compress_type = zipfile.ZIP_DEFLATED
            archive.writestr(info, file_path.read_bytes())
            count += 1

    package = buffer.getvalue()
    logger.info(f"Built deployment package: {count} files, {len(package)} bytes")
    return package


def code_sha256(package: bytes) -> str:
    """Base64-encoded SHA-256 digest, the format Lambda reports as CodeSha256."""
    return base64.b64encode(hashlib.sha256(package).digest()).decode("ascii")


def write_package(package: bytes, path: PathLike) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(package)
    logger.info(f"Wrote deployment package to {target}")
    return target


def stage_sources(
    sources: Iterable[str],
    base_dir: PathLike,
    target_dir: PathLike
) -> Path:
    """
    Copy the package sources into a directory, replacing its contents.

    Used when a pre-built deploy action zips a directory itself.

    Raises:
        ValidationError: If a source is missing, or if the target is
            base_dir, one of its parents, or holds any source
    """
    files = list(iter_package_files(sources, base_dir))

    target = Path(target_dir)
    resolved_target = target.resolve()
    resolved_base = Path(base_dir).resolve()
    overlaps = (
        resolved_target == resolved_base
        or resolved_target in resolved_base.parents
        or any(resolved_target in path.resolve().parents for path, _ in files)
    )
    if overlaps:
        raise ValidationError(
            f"Stage directory {target} overlaps the package sources",
            field="stage_dir",
            value=str(target_dir),
        )

    if target.exists():
        shutil.rmtree(target)
    for file_path, arcname in files:
        destination = target / arcname
        os.makedirs(destination.parent, exist_ok=True)
        shutil.copy2(file_path, destination)
    logger.info(f"Staged package sources in {target}")
    return target
