"""Property-list file implementation of the local mirror."""

import logging
import os
import plistlib
import shutil
import tempfile
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from xml.parsers.expat import ExpatError

from grumble.domain.errors import GrubDecodeError
from grumble.domain.grubs import Grub
from grumble.services.sync import LocalMirror

logger = logging.getLogger(__name__)

FOOD_LIST_KEY = "foodList"
DEFAULT_TEMPLATE = Path(__file__).resolve().parents[1] / "resources" / "data.plist"


@dataclass
class PlistMirrorStore(LocalMirror):
    """Keeps the user's Grubs in a plist file under ``foodList``.

    Every mutation reads the whole file, changes one key and writes the whole
    file back through a temporary file and ``os.replace``. The lock keeps
    those cycles from interleaving.
    """

    path: Path
    template_path: Path = DEFAULT_TEMPLATE
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def load(self) -> dict[str, Grub]:
        """Return the stored Grubs, skipping entries that fail to decode."""
        with self._lock:
            root = self._read_root()
        if root is None:
            return {}
        food_list = root.get(FOOD_LIST_KEY)
        if not isinstance(food_list, dict):
            return {}
        grubs: dict[str, Grub] = {}
        for fid, payload in food_list.items():
            try:
                grubs[fid] = Grub.from_payload(payload, fid=fid)
            except GrubDecodeError as exc:
                logger.warning("Skipping mirrored grub %s: %s", fid, exc)
        return grubs

    def clear(self) -> None:
        self._update(dict.clear)

    def put(self, fid: str, grub: Grub) -> None:
        payload = grub.to_payload()

        def store(food_list: dict[str, object]) -> None:
            food_list[fid] = payload

        self._update(store)

    def delete(self, fid: str) -> None:
        self._update(lambda food_list: food_list.pop(fid, None))

    def _update(self, change: Callable[[dict[str, object]], object]) -> None:
        """Apply ``change`` to ``foodList`` and write the file back.

        An unreadable file is left untouched, so a failed read never
        overwrites entries that are still on disk.
        """
        with self._lock:
            root = self._read_root()
            if root is None:
                logger.error("Skipping update of unreadable mirror %s", self.path)
                return
            food_list = root.get(FOOD_LIST_KEY)
            if not isinstance(food_list, dict):
                food_list = {}
            root[FOOD_LIST_KEY] = food_list
            change(food_list)
            self._write_root(root)

    def _ensure_file(self) -> None:
        if self.path.exists():
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.template_path.exists():
                shutil.copyfile(self.template_path, self.path)
            else:
                logger.error("Mirror template %s is missing", self.template_path)
                self._write_root({FOOD_LIST_KEY: {}})
        except OSError:
            logger.exception("Failed to seed local mirror at %s", self.path)

    def _read_root(self) -> dict[str, object] | None:
        """Return the decoded file, or None when it cannot be read."""
        self._ensure_file()
        try:
            with self.path.open("rb") as handle:
                root = plistlib.load(handle)
        except (OSError, ValueError, ExpatError):
            logger.exception("Failed to read local mirror at %s", self.path)
            return None
        if not isinstance(root, dict):
            logger.error("Local mirror root at %s is not a dictionary", self.path)
            return None
        return root

    def _write_root(self, root: dict[str, object]) -> None:
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "wb", dir=self.path.parent, prefix=".data-", delete=False
            ) as handle:
                tmp_name = handle.name
                plistlib.dump(root, handle)
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, OverflowError):
            logger.exception("Failed to write local mirror at %s", self.path)
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
