from idlestop.probe import baseprobe, _local_port_matches


def parse(output, port):
    conns = []
    for line in output.splitlines():
        fields = line.split()
        if len(fields) < 4: continue
        # the State column is dropped when a single state is filtered for
        if not fields[0].isdigit(): fields = fields[1:]
        if len(fields) < 4: continue
        local, peer = fields[2], fields[3]
        if _local_port_matches(local, port):
            conns.append((local, peer))
    return conns

class probe(baseprobe):
    name = 'ss'
    binary = 'ss'
    def _established(self, port):
        out = self._run(f"ss -Htan state established '( sport = :{port} )'")
        return None if out is None else parse(out, port)
