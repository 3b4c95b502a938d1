import os
import re
import abc
import sqlite3
import tempfile
from idlestop import log, MarkerUnavailable

_DIGITS = re.compile(r"[0-9]+")


def _parse(raw):
    """
    Marker values are positive integer timestamps; anything else reads as absent.
    """
    if raw is None: return None
    if isinstance(raw, bytes):
        raw = raw.decode("ascii", errors="replace")
    text = str(raw).strip()
    if not _DIGITS.fullmatch(text):
        log.debug(f"ignoring unreadable idle marker {raw!r}")
        return None
    value = int(text)
    if value <= 0:
        log.debug(f"ignoring non-positive idle marker {value}")
        return None
    return value


class _abstractstate(metaclass=abc.ABCMeta):
    """
    Methods that must be provided on marker store implementations.
    """
    def _read(self): pass
    def _write(self, value: int) -> None: pass
    def _delete(self) -> None: pass

class _state:
    """
    Shared logic for marker stores: holds the start of the current idle interval.
    """
    def get(self) -> int | None:
        return _parse(self._read())
    def set(self, value: int) -> None:
        assert int(value) > 0, f"invalid idle marker {value}"
        self._write(int(value))
    def clear(self) -> None:
        self._delete()
    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.get()})"

class basestate(_state, _abstractstate): pass


class filestate(basestate):
    """
    Marker kept as a single integer in a text file; a missing file means no timer.
    """
    def __init__(self, filename):
        self.filename = filename
    def _read(self):
        try:
            with open(self.filename, "rb") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise MarkerUnavailable(f"cannot read idle marker {self.filename}: {e}") from e
    def _write(self, value):
        dirname = os.path.dirname(os.path.abspath(self.filename))
        try:
            os.makedirs(dirname, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=dirname, prefix=".idlestop-")
        except OSError as e:
            raise MarkerUnavailable(f"cannot write idle marker {self.filename}: {e}") from e
        try:
            with os.fdopen(fd, 'w') as f:
                f.write(f"{value}\n")
            os.replace(tmp, self.filename)
        except OSError as e:
            os.unlink(tmp)
            raise MarkerUnavailable(f"cannot write idle marker {self.filename}: {e}") from e
    def _delete(self):
        try:
            os.remove(self.filename)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise MarkerUnavailable(f"cannot remove idle marker {self.filename}: {e}") from e

class dbstate(basestate):
    """
    Marker kept as a key/value row in a sqlite database.
    """
    _schema = """
    CREATE TABLE IF NOT EXISTS idle_marker (
        name text primary key,
        value text
    );"""
    _name = 'idle_since'
    def __init__(self, filename):
        self.db = sqlite3.connect(filename, isolation_level=None)
        self.db.executescript(self._schema)
    def _read(self):
        row = self.db.execute("""
        SELECT value FROM idle_marker WHERE name=?
        """, (self._name, )).fetchone()
        return row[0] if row else None
    def _write(self, value):
        self.db.execute("""
        INSERT INTO idle_marker (name, value)
        VALUES (?, ?)
        ON CONFLICT (name) DO UPDATE SET value=excluded.value
        """, (self._name, str(value)))
    def _delete(self):
        self.db.execute("DELETE FROM idle_marker WHERE name=?", (self._name, ))

class memstate(basestate):
    def __init__(self, value=None):
        self.value = value
    def _read(self): return self.value
    def _write(self, value): self.value = value
    def _delete(self): self.value = None


STORES = {
    'file': filestate,
    'sqlite': dbstate,
}

def get_state(kind, filename) -> basestate:
    assert kind in STORES, f"invalid STORE {kind}; expected one of {', '.join(STORES)}"
    return STORES[kind](filename)
