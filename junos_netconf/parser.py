import time

from junos_netconf.log import logger
from junos_netconf.error import ResponseTimeout, SessionClosedException, TransportError
from junos_netconf.constants import (
    DELIMITER,
    POLL_INTERVAL,
    RECV_SIZE,
    RESPONSE_TIMEOUT,
)


class ResponseCollector:
    """Collects one ``]]>]]>`` delimited message at a time from a channel

    The channel is polled rather than read blockingly: while no bytes
    are ready the collector sleeps for `poll_interval` seconds. A
    message that is not complete after `timeout` seconds raises
    :class:`ResponseTimeout` and whatever was received so far is
    dropped.

    Bytes that arrive after a delimiter are kept and become the start
    of the next message.

    :ivar sock: Object providing ``recv_ready()`` and ``recv(n)``
    :ivar float timeout: Seconds to wait for a complete message
    :ivar float poll_interval: Seconds to sleep when no bytes are ready
    """

    def __init__(
        self,
        sock,
        timeout=RESPONSE_TIMEOUT,
        poll_interval=POLL_INTERVAL,
        delimiter=DELIMITER.encode("ascii"),
    ):
        self.sock = sock
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.delimiter = delimiter
        self.buf = b""

    def collect(self):
        """Block until a full message is received and return it

        :rtype: bytes
        """
        start = time.monotonic()
        pos = 0

        while True:
            (msg, pos) = self._take_message(pos)
            if msg is not None:
                logger.debug("Received message: %s", msg)
                return msg

            if time.monotonic() - start > self.timeout:
                logger.warning(
                    "Response timeout exceeded (%s seconds), dropping %d bytes",
                    self.timeout,
                    len(self.buf),
                )
                self.buf = b""
                raise ResponseTimeout(
                    "No reply within {} seconds".format(self.timeout)
                )

            try:
                ready = self.sock.recv_ready()
                r = self.sock.recv(RECV_SIZE) if ready else None
            except OSError as e:
                raise TransportError(str(e)) from e

            if r is None:
                time.sleep(self.poll_interval)
            elif not r:
                raise SessionClosedException("Channel closed by the server")
            else:
                self.buf += r

    def _take_message(self, pos):
        # `pos` trick: do not again search the part of memory that has already been searched
        index = self.buf.find(self.delimiter, pos)
        if index == -1:
            return (None, max(0, len(self.buf) - len(self.delimiter) + 1))

        msg = self.buf[:index]
        self.buf = self.buf[index + len(self.delimiter) :]
        return (msg, 0)
