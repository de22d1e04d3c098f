import re
from threading import Lock

from junos_netconf.parser import ResponseCollector
from junos_netconf.log import logger
from junos_netconf.constants import (
    DEFAULT_HELLO,
    DELIMITER,
    DELIMITER_LEN,
    POLL_INTERVAL,
    RESPONSE_TIMEOUT,
)
from junos_netconf.error import SessionBusyError, TransportError
from junos_netconf.reply import RpcReply, to_ele

SESSION_ID_R = re.compile(r"<session-id>(.*?)</session-id>", re.DOTALL)


class Session:
    """A session with a Junos NETCONF server

    The ``<hello>`` exchange happens in the constructor; if it fails the
    exception propagates and no session object is handed out.

    Requests are strictly one at a time: a request made while another
    one is still waiting for its reply raises
    :class:`~junos_netconf.error.SessionBusyError`.

    This class is a context manager, and should always be either used
    with a ``with`` statement or the :meth:`close` method should be
    called manually when the object is no longer required.

    :ivar server_hello: The server's ``<hello>`` exactly as received

    :ivar client_hello: The ``<hello>`` sent to the server

    """

    def __init__(
        self,
        sock,
        hello=DEFAULT_HELLO,
        timeout=RESPONSE_TIMEOUT,
        poll_interval=POLL_INTERVAL,
    ):
        self.sock = sock
        self.closed = False
        self.collector = ResponseCollector(sock, timeout, poll_interval)
        self._in_flight = Lock()

        self.client_hello = hello.strip()
        if self.client_hello.endswith(DELIMITER):
            self.client_hello = self.client_hello[:-DELIMITER_LEN]

        # First message will be the server hello
        self.server_hello = self.send_rpc(self.client_hello + DELIMITER).raw

    def __enter__(self):
        return self

    def __exit__(self, _, __, ___):
        self.close()

    @property
    def timeout(self):
        return self.collector.timeout

    @property
    def session_id(self):
        """The ``<session-id>`` given in the server's ``<hello>``, or ``None``"""
        m = SESSION_ID_R.search(self.server_hello)
        if not m:
            return None
        return m.group(1)

    @property
    def server_capabilities(self):
        """The list of capabilities parsed from the server's ``<hello>``"""
        return capabilities_from_hello(to_ele(self.server_hello))

    @property
    def client_capabilities(self):
        """The list of capabilities parsed from the client's ``<hello>``"""
        return capabilities_from_hello(to_ele(self.client_hello))

    def close(self):
        """Closes the underlying channel"""
        if self.closed:
            return
        self.closed = True
        try:
            self.sock.close()
        except Exception as e:
            logger.info("Ignoring error while closing session: %s", str(e))

    def send_msg(self, msg):
        """Sends a raw, already delimited message to the server

        :param str msg: The message to send
        """
        logger.debug("Sending message on session %s", msg)
        try:
            self.sock.sendall(msg.encode("utf-8"))
        except OSError as e:
            raise TransportError(str(e)) from e

    def send_rpc(self, rpc):
        """Sends a delimited RPC envelope and waits for its reply

        :param str rpc: The envelope to send, as built by
                        :func:`junos_netconf.rpc.make_rpc`

        :rtype: :class:`junos_netconf.reply.RpcReply`
        """
        if not self._in_flight.acquire(blocking=False):
            raise SessionBusyError("Another RPC is already waiting for its reply")
        try:
            self.send_msg(rpc)
            msg = self.collector.collect()
        finally:
            self._in_flight.release()
        return RpcReply(msg.decode("utf-8", errors="replace"))

    def send_rpc_running(self, rpc):
        """Sends a delimited RPC envelope and returns a line reader for
        the output instead of waiting for the reply

        No delimiter detection and no timeout apply to the returned
        reader; the caller consumes it until it has seen enough.

        :rtype: file-like object yielding text lines
        """
        if not self._in_flight.acquire(blocking=False):
            raise SessionBusyError("Another RPC is already waiting for its reply")
        try:
            self.send_msg(rpc)
        finally:
            self._in_flight.release()
        return self.sock.makefile("r")


def capabilities_from_hello(hello):
    return [x.text.strip() for x in hello.iter("{*}capability") if x.text]
