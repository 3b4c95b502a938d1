import abc
import shutil
from invoke import run
from idlestop import log, QueryUnavailable


def _local_port_matches(address, port):
    return address.rsplit(':', 1)[-1] == str(port)

class _abstractprobe(metaclass=abc.ABCMeta):
    """
    Methods that must be provided on probe implementations.
    """
    name = property()
    def _established(self, port) -> list | None: pass

class _probe:
    """
    Shared logic for probes. A probe answers with the (local, peer) address
    pairs of ESTABLISHED connections on a local port, or None when it could
    not get an answer.
    """
    binary = None
    def available(self) -> bool:
        return shutil.which(self.binary) is not None
    def _run(self, cmd):
        r = run(cmd, hide=True, warn=True, in_stream=False)
        if r.failed:
            log.debug(f"{cmd!r} exited {r.exited}: {r.stderr.strip()}")
            return None
        return r.stdout
    def established(self, port) -> list | None:
        conns = self._established(port)
        if conns is not None:
            log.debug(f"{self.name}: {len(conns)} established on :{port}")
        return conns
    def __repr__(self) -> str:
        return f"<probe {self.name}>"

class baseprobe(_probe, _abstractprobe): pass


def get_probes(names) -> list[baseprobe]:
    from idlestop.probe import ps, ss, netstat
    probes = {'psutil': ps.probe, 'ss': ss.probe, 'netstat': netstat.probe}
    for name in names:
        assert name in probes, f"invalid probe {name}; expected one of {', '.join(probes)}"
    return [probes[name]() for name in names]

def established(port, probes) -> list:
    """
    Ask each probe in turn; the first one that answers wins. Running out of
    probes is an error, never an empty answer.
    """
    for p in probes:
        if not p.available():
            log.debug(f"{p.name} unavailable")
            continue
        conns = p.established(port)
        if conns is None:
            log.warning(f"{p.name} failed; trying next probe")
            continue
        return conns
    names = ', '.join(p.name for p in probes) or 'none configured'
    raise QueryUnavailable(f"cannot check connections on port {port}; no usable probe ({names})")
