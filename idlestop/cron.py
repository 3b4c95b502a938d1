import sys
from idlestop import CONF, DRY_RUN, MARKER_PATH, log, QueryUnavailable, PowerOffFailure, MarkerUnavailable
from idlestop.idle import watchdog

EXIT_OK = 0
EXIT_QUERY_UNAVAILABLE = 1
EXIT_POWEROFF_FAILED = 2
EXIT_INVALID_CONF = 3
EXIT_MARKER_UNAVAILABLE = 4


def main(dog=None) -> int:
    """
    One idle check, meant to be run every few minutes by cron:

        */5 * * * * /usr/bin/env python3 -m idlestop.cron
    """
    log.debug('[idlestop.cron] - checking for idle connections')
    try:
        dog = dog or watchdog.from_conf(CONF, MARKER_PATH, dry_run=DRY_RUN)
    except AssertionError as e:
        log.error(f"invalid config: {e}")
        return EXIT_INVALID_CONF
    try:
        dog.check()
    except QueryUnavailable as e:
        log.error(str(e))
        return EXIT_QUERY_UNAVAILABLE
    except MarkerUnavailable as e:
        log.error(str(e))
        return EXIT_MARKER_UNAVAILABLE
    except PowerOffFailure as e:
        log.critical(f"{e}; host is still running")
        return EXIT_POWEROFF_FAILED
    return EXIT_OK

if __name__ == '__main__':
    sys.exit(main())
