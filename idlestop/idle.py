import time
from collections import namedtuple
from idlestop import log
from idlestop.probe import established
from idlestop.power import poweroff

ACTIVE = 'active'
STARTED = 'started'
IDLE = 'idle'
SHUTDOWN = 'shutdown'

report = namedtuple('report', ['outcome', 'connections', 'idle_since', 'elapsed', 'remaining'])


class watchdog:
    """
    Powers the host off once no connection to `port` has been seen for
    `timeout` seconds. Each `check()` is a single observation; the start of
    the current idle interval is the only thing remembered between checks
    and lives in `state`.
    """
    @classmethod
    def from_conf(cls, conf, marker_path, dry_run=False):
        from idlestop.state import get_state
        from idlestop.probe import get_probes
        from idlestop.power import get_power
        port, timeout = conf['PORT'], conf['IDLE_TIMEOUT']
        assert isinstance(port, int) and 0 < port < 65536, f"invalid PORT {port}"
        assert isinstance(timeout, int) and timeout > 0, f"invalid IDLE_TIMEOUT {timeout}"
        return cls(
            state=get_state(conf['STORE'], marker_path),
            probes=get_probes(conf['PROBES']),
            power=get_power(conf['POWER'], sudo=bool(conf['SUDO'])),
            port=port,
            timeout=timeout,
            dry_run=dry_run)
    def __init__(self, state, probes, power, port=22, timeout=1800, clock=time.time, dry_run=False):
        self.state = state
        self.probes = probes
        self.power = power
        self.port = port
        self.timeout = timeout
        self.clock = clock
        self.dry_run = dry_run
    def now(self) -> int:
        return int(self.clock())
    def check(self) -> report:
        # raises QueryUnavailable before the marker is touched
        conns = established(self.port, self.probes)
        if conns:
            log.info(f"Active connections on port {self.port} ({len(conns)}). Resetting idle timer.")
            self.state.clear()
            return report(ACTIVE, conns, None, None, None)
        now, since = self.now(), self.state.get()
        if since is None:
            self.state.set(now)
            log.info(f"No active connections. Starting idle timer at {now}.")
            return report(STARTED, conns, now, 0, self.timeout)
        elapsed = now - since
        if elapsed >= self.timeout:
            log.warning(f"No active connections for {elapsed} seconds (>= {self.timeout}). Initiating shutdown.")
            if self.dry_run:
                log.warning("dry run; not powering off")
            else:
                log.info(f"power off requested via {poweroff(self.power)}")
            return report(SHUTDOWN, conns, since, elapsed, 0)
        remaining = self.timeout - elapsed
        log.info(f"No active connections. {elapsed}s elapsed; {remaining}s until shutdown.")
        return report(IDLE, conns, since, elapsed, remaining)
    def status(self) -> report:
        """
        What `check()` would see right now, without touching the marker or
        the power.
        """
        conns = established(self.port, self.probes)
        since = self.state.get()
        if conns:
            return report(ACTIVE, conns, since, None, None)
        if since is None:
            return report(STARTED, conns, None, 0, self.timeout)
        elapsed = self.now() - since
        outcome = SHUTDOWN if elapsed >= self.timeout else IDLE
        return report(outcome, conns, since, elapsed, max(self.timeout - elapsed, 0))
    def reset(self) -> None:
        self.state.clear()
        log.info("Idle timer cleared.")
