from idlestop.probe import baseprobe, _local_port_matches


def parse(output, port):
    conns = []
    for line in output.splitlines():
        fields = line.split()
        # Proto Recv-Q Send-Q Local Foreign State
        if len(fields) < 6 or not fields[0].startswith('tcp'): continue
        local, peer, state = fields[3], fields[4], fields[5]
        if state == 'ESTABLISHED' and _local_port_matches(local, port):
            conns.append((local, peer))
    return conns

class probe(baseprobe):
    name = 'netstat'
    binary = 'netstat'
    def _established(self, port):
        out = self._run("netstat -tan")
        return None if out is None else parse(out, port)
