"""
Raw sockets need privileges.
Use `sudo setcap cap_net_raw+ep $(realpath $(which python))`
"""

from rich import print

from pingx import Pinger, ProbeSession


def main():
    session = ProbeSession("8.8.8.8", payload_size=32)
    pinger = Pinger(session, count=3, on_result=print)
    pinger.run()
    print(session.statistics.snapshot())


if __name__ == "__main__":
    main()
