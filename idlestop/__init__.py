import os, sys
import logging
import yaml

def flag(name):
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")

DEBUG = flag("DEBUG")
DRY_RUN = flag("DRY_RUN")
CONF_PATH = os.environ.get('IDLESTOP_CONF', 'idlestop.yaml')
MARKER_PATH = os.environ.get('IDLESTOP_MARKER', '.idlestop.marker')
LOG_PATH = os.environ.get('IDLESTOP_LOG', '.idlestop.log')
CONF_DEFAULTS = {
    # port whose established connections count as activity
    'PORT': 22,
    # seconds without connections before the host is powered off
    'IDLE_TIMEOUT': 1800,
    # where the idle-start timestamp lives: `file` or `sqlite`
    'STORE': 'file',
    # connection probes, tried in order until one answers
    'PROBES': ('psutil', 'ss', 'netstat'),
    # power controls, tried in order until one succeeds
    'POWER': ('shutdown', 'systemctl'),
    # prefix power commands with `sudo -n`
    'SUDO': False,
}
ANSI = dict([
    (v, "\033[%sm" % i) for v, i in \
        list(zip(['RST', 'BLD', 'DIM', 'ITL', 'UDL', 'SBL', 'FBL', 'REV'], range(8))) + \
        list(zip(['BLK', 'RED', 'GRN', 'YEL', 'BLU', 'PNK', 'CYN', 'WHT'], range(30, 38)))
])

class conf(dict):
    @classmethod
    def load(cls, filename):
        if not os.path.exists(filename): return cls()
        with open(filename) as f:
            return yaml.load(f, Loader=yaml.Loader) or cls()
    def __str__(self):
        return yaml.dump(self, default_flow_style=False, Dumper=yaml.SafeDumper)
    def __getitem__(self, key):
        assert key in self, f'"{key}" not found'
        return super().__getitem__(key)
yaml.Loader.add_constructor('tag:yaml.org,2002:map', lambda l, n: conf(l.construct_mapping(n)))
yaml.SafeDumper.add_representer(conf, lambda d, x: d.represent_dict(x))
yaml.SafeDumper.add_representer(tuple, lambda d, x: d.represent_list(x))
CONF = conf({**CONF_DEFAULTS, **conf.load(CONF_PATH)})

log = logging.getLogger(__name__)
log.setLevel(logging.DEBUG if DEBUG else logging.INFO)
log.addHandler(logging.StreamHandler(sys.stdout))
if LOG_PATH:
    _file_handler = logging.FileHandler(LOG_PATH)
    _file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    log.addHandler(_file_handler)


class IdleStopError(Exception):
    """Base for failures that end an invocation with a non-zero status."""

class QueryUnavailable(IdleStopError):
    """No connection probe could enumerate established connections."""

class PowerOffFailure(IdleStopError):
    """Every configured power control failed to power the host off."""

class MarkerUnavailable(IdleStopError):
    """The idle marker exists but can't be read, written or removed."""
