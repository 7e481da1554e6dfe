"""
Package Export - ZIP archives and on-disk packages
"""

import io
import logging
import zipfile
from pathlib import Path
from typing import Iterable, List

from aios_forge.catalog import package_slug
from aios_forge.models import GeneratedFile

logger = logging.getLogger(__name__)

# Fixed entry timestamp so the same files always produce the same bytes
ZIP_DATE_TIME = (1980, 1, 1, 0, 0, 0)

EXECUTABLE_PATHS = frozenset({'scripts/setup.sh'})

_FILE_MODE = 0o644
_EXEC_MODE = 0o755


def archive_name(project_name: str) -> str:
    return f"{package_slug(project_name or 'meu-aios')}.zip"


def build_zip(files: Iterable[GeneratedFile]) -> bytes:
    """Build a deflated ZIP of the generated files, in generation order."""
    buffer = io.BytesIO()
    count = 0
    with zipfile.ZipFile(buffer, 'w', compression=zipfile.ZIP_DEFLATED) as archive:
        for f in files:
            info = zipfile.ZipInfo(f.path, date_time=ZIP_DATE_TIME)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.create_system = 3
            mode = _EXEC_MODE if f.path in EXECUTABLE_PATHS else _FILE_MODE
            info.external_attr = (0o100000 | mode) << 16
            archive.writestr(info, f.content.encode('utf-8'))
            count += 1
    logger.debug(f"Built archive with {count} entries")
    return buffer.getvalue()


def write_files(files: Iterable[GeneratedFile], directory) -> List[Path]:
    """Write the generated files below a directory and return their paths."""
    root = Path(directory).resolve()
    written = []
    for f in files:
        target = (root / f.path).resolve()
        if root not in target.parents:
            raise ValueError(f"Refusing to write outside {root}: {f.path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w', encoding='utf-8', newline='') as out:
            out.write(f.content)
        if f.path in EXECUTABLE_PATHS:
            target.chmod(_EXEC_MODE)
        written.append(target)
    logger.info(f"Wrote {len(written)} files to {root}")
    return written
