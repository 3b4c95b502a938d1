import psutil
from idlestop import log
from idlestop.probe import baseprobe


def _address(addr):
    ip, port = addr
    return f"[{ip}]:{port}" if ':' in ip else f"{ip}:{port}"

def parse(conns, port):
    return [
        (_address(c.laddr), _address(c.raddr))
        for c in conns
        if c.status == psutil.CONN_ESTABLISHED and c.laddr and c.raddr and c.laddr.port == int(port)]

class probe(baseprobe):
    name = 'psutil'
    def available(self):
        return hasattr(psutil, 'net_connections')
    def _established(self, port):
        try:
            conns = psutil.net_connections(kind='tcp')
        except (psutil.AccessDenied, OSError) as e:
            log.debug(f"psutil.net_connections: {e!r}")
            return None
        return parse(conns, port)
