import io

from junos_netconf.constants import DELIMITER

SERVER_HELLO = """<!-- No zombies were killed during the creation of this user interface -->
<!-- user netconf, class super-user -->
<hello xmlns="urn:ietf:params:xml:ns:netconf:base:1.0">
  <capabilities>
    <capability>urn:ietf:params:netconf:base:1.0</capability>
    <capability>urn:ietf:params:netconf:capability:candidate:1.0</capability>
    <capability>http://xml.juniper.net/netconf/junos/1.0</capability>
  </capabilities>
  <session-id>42</session-id>
</hello>
"""

RPC_REPLY_OK = """
<rpc-reply xmlns="urn:ietf:params:xml:ns:netconf:base:1.0"
  xmlns:junos="http://xml.juniper.net/junos/18.4R1/junos">
  <ok/>
</rpc-reply>
"""

RPC_REPLY_LOAD_OK = """
<rpc-reply xmlns="urn:ietf:params:xml:ns:netconf:base:1.0"
  xmlns:junos="http://xml.juniper.net/junos/18.4R1/junos">
  <load-configuration-results>
    <ok/>
  </load-configuration-results>
</rpc-reply>
"""

RPC_ERROR_WITH_MSG = """
<rpc-reply xmlns="urn:ietf:params:xml:ns:netconf:base:1.0"
  xmlns:junos="http://xml.juniper.net/junos/18.4R1/junos">
  <rpc-error>
    <error-type>protocol</error-type>
    <error-tag>lock-denied</error-tag>
    <error-severity>error</error-severity>
    <error-message>configuration database locked by another user</error-message>
  </rpc-error>
</rpc-reply>
"""

RPC_ERROR_WITHOUT_MSG = """
<rpc-reply xmlns="urn:ietf:params:xml:ns:netconf:base:1.0">
  <rpc-error>
    <error-type>application</error-type>
    <error-tag>invalid-value</error-tag>
    <error-severity>error</error-severity>
  </rpc-error>
</rpc-reply>
"""

# <rpc-error> is never closed
RPC_ERROR_MALFORMED = (
    "<rpc-reply><rpc-error><error-severity>error</error-severity></rpc-reply>"
)

RPC_WARNING_OK = """
<rpc-reply xmlns="urn:ietf:params:xml:ns:netconf:base:1.0">
  <rpc-error>
    <error-type>protocol</error-type>
    <error-severity>warning</error-severity>
    <error-message>statement not found</error-message>
  </rpc-error>
  <ok/>
</rpc-reply>
"""

RPC_REPLY_OUTPUT = """
<rpc-reply xmlns="urn:ietf:params:xml:ns:netconf:base:1.0"
  xmlns:junos="http://xml.juniper.net/junos/18.4R1/junos">
  <output>
Hostname: vsrx1
Model: vsrx
  </output>
</rpc-reply>
"""

RPC_REPLY_CONFIG = """<?xml version="1.0" encoding="UTF-8"?>
<rpc-reply xmlns="urn:ietf:params:xml:ns:netconf:base:1.0"
  xmlns:junos="http://xml.juniper.net/junos/18.4R1/junos">
  <data>
    <configuration>
      <system>
        <host-name>vsrx1</host-name>
      </system>
    </configuration>
  </data>
</rpc-reply>
"""


class MockSock:
    """Stands in for an SSH channel

    Every ``sendall`` makes the next queued reply readable, terminated
    by the NETCONF delimiter, the way a half-duplex server behaves.
    """

    def __init__(self, replies, delimit=True):
        self.replies = list(replies)
        self.delimit = delimit
        self.readable = b""
        self.sent = []
        self.closed = False

    def sendall(self, b):
        self.sent.append(b.decode("utf-8"))
        if self.replies:
            reply = self.replies.pop(0)
            if self.delimit:
                reply += DELIMITER
            self.readable += reply.encode("utf-8")

    def recv_ready(self):
        return bool(self.readable)

    def recv(self, n):
        r = self.readable[:n]
        self.readable = self.readable[n:]
        return r

    def makefile(self, mode="r"):
        data = self.readable
        self.readable = b""
        return io.StringIO(data.decode("utf-8"))

    def close(self):
        self.closed = True


class ChunkedSock:
    """Hands out pre-defined chunks, one per ``recv``"""

    def __init__(self, chunks):
        self.chunks = list(chunks)

    def recv_ready(self):
        return bool(self.chunks)

    def recv(self, _=-1):
        return self.chunks.pop(0)
