import os
import abc
import shutil
from invoke import run
from idlestop import log, PowerOffFailure


class _abstractpower(metaclass=abc.ABCMeta):
    """
    Methods that must be provided on power control implementations.
    """
    name = property()
    def command(self) -> str | None: pass

class _power:
    """
    Shared logic for power controls. `command()` is None when the control
    isn't usable on this host.
    """
    def __init__(self, sudo=False):
        self.sudo = sudo
    def available(self) -> bool:
        return self.command() is not None
    def poweroff(self) -> bool:
        cmd = self.command()
        if self.sudo: cmd = f"sudo -n {cmd}"
        log.info(f"running {cmd!r}")
        r = run(cmd, hide=True, warn=True, in_stream=False)
        if r.failed:
            log.warning(f"{self.name} exited {r.exited}: {r.stderr.strip()}")
        return r.ok
    def __repr__(self) -> str:
        return f"<power {self.name}>"

class basepower(_power, _abstractpower): pass


class shutdown(basepower):
    name = 'shutdown'
    fallback_paths = ('/sbin/shutdown', '/usr/sbin/shutdown')
    def command(self):
        binary = shutil.which('shutdown') or next(
            (p for p in self.fallback_paths if os.access(p, os.X_OK)), None)
        return f"{binary} -h now" if binary else None

class systemctl(basepower):
    name = 'systemctl'
    def command(self):
        binary = shutil.which('systemctl')
        return f"{binary} poweroff" if binary else None


CONTROLS = {
    'shutdown': shutdown,
    'systemctl': systemctl,
}

def get_power(names, sudo=False) -> list[basepower]:
    for name in names:
        assert name in CONTROLS, f"invalid power control {name}; expected one of {', '.join(CONTROLS)}"
    return [CONTROLS[name](sudo=sudo) for name in names]

def poweroff(controls) -> str:
    """
    Power the host off with the first control that succeeds and return its
    name. Doesn't wait for the host to actually go down.
    """
    tried = []
    for c in controls:
        if not c.available():
            log.debug(f"{c.name} unavailable")
            continue
        tried.append(c.name)
        if c.poweroff():
            return c.name
    if not tried:
        raise PowerOffFailure("no power control available")
    raise PowerOffFailure(f"power off failed ({', '.join(tried)})")
