import sys
import traceback
from idlestop import CONF, ANSI, DEBUG, DRY_RUN, MARKER_PATH, QueryUnavailable, MarkerUnavailable
from idlestop.idle import watchdog, ACTIVE, SHUTDOWN
from idlestop import cron


def status(dog):
    r = dog.status()
    color = "GRN" if r.outcome == ACTIVE else "RED" if r.outcome == SHUTDOWN else "YEL"
    print(("{%s}{BLD}{outcome}{RST} port {port}, {n} connection(s)" % color).format(
        outcome=r.outcome, port=dog.port, n=len(r.connections), **ANSI))
    for local, peer in r.connections:
        print("  {DIM}{local}{RST} <- {UDL}{peer}{RST}".format(local=local, peer=peer, **ANSI))
    if r.idle_since is not None and r.outcome != ACTIVE:
        print(f"  idle since {r.idle_since}; {r.elapsed}s elapsed, {r.remaining}s remaining")
    elif r.idle_since is not None:
        print(f"  stale idle marker {r.idle_since} (cleared on next check)")

def main(argv=None) -> int:
    def dog():
        return watchdog.from_conf(CONF, MARKER_PATH, dry_run=DRY_RUN)
    match sys.argv[1:] if argv is None else argv:
        case [] | ['check']: return cron.main()
        case ['status']: status(dog())
        case ['reset']: dog().reset()
        case ['conf']: print(CONF, end='')
        case _: print("usage: idlestop [check|status|reset|conf]"); return 64
    return 0

def cli():
    try: return main()
    except AssertionError as e:
        print(traceback.format_exc()) if DEBUG else print(f"invalid config: {e}")
        return cron.EXIT_INVALID_CONF
    except QueryUnavailable as e:
        print(e)
        return cron.EXIT_QUERY_UNAVAILABLE
    except MarkerUnavailable as e:
        print(e)
        return cron.EXIT_MARKER_UNAVAILABLE

if __name__ == '__main__':
    sys.exit(cli())
