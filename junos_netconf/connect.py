import socket
from base64 import b64decode

import paramiko

from junos_netconf.constants import (
    DEFAULT_HELLO,
    NETCONF_PORT,
    POLL_INTERVAL,
    RESPONSE_TIMEOUT,
)
from junos_netconf.error import InvalidSSHHostkey
from junos_netconf.session import Session
from junos_netconf.log import logger


def connect_ssh(
    host=None,
    port=NETCONF_PORT,
    username="netconf",
    password=None,
    key_filename=None,
    sock=None,
    hostkey_b64=None,
    initial_timeout=None,
    general_timeout=None,
    hello=DEFAULT_HELLO,
    timeout=RESPONSE_TIMEOUT,
    poll_interval=POLL_INTERVAL,
):
    """Connect to a Junos NETCONF server over SSH.

    :param str host: Hostname or IP address; unused if an already-open
                     socket is provided

    :param int port: TCP port to initiate the connection; unused if an
                     already-open socket is provided

    :param str username: Username to login with; always required

    :param str password: Password to login with; not required if a
                         private key is provided instead

    :param str key_filename: Path to an SSH private key; not required
                             if a password is provided instead

    :param sock: An already-open TCP socket; SSH will be setup on top
                 of it

    :param str hostkey_b64: base64 encoded hostkey; when given, the
                            server must present exactly this key

    :param int initial_timeout: Seconds to wait when first connecting the socket.

    :param int general_timeout: Seconds to wait for a response from the server after connecting.

    :param str hello: The ``<hello>`` to send to the server

    :param float timeout: Seconds to wait for each complete RPC reply

    :param float poll_interval: Seconds to sleep while no reply bytes are ready

    :return: :class:`Session` object

    :rtype: :class:`junos_netconf.session.Session`

    """
    if not sock:
        sock = socket.socket()
        sock.settimeout(initial_timeout)
        sock.connect((host, port))
        sock.settimeout(general_timeout)
    transport = paramiko.transport.Transport(sock)
    pkey = _try_load_pkey(key_filename) if key_filename else None
    hostkey = _try_load_hostkey_b64(hostkey_b64) if hostkey_b64 else None
    try:
        transport.connect(
            hostkey=hostkey, username=username, password=password, pkey=pkey
        )
    except Exception:
        transport.close()
        raise
    try:
        channel = transport.open_session(timeout=initial_timeout)
        channel.settimeout(general_timeout)
    except Exception:
        transport.close()
        raise
    try:
        channel.invoke_subsystem("netconf")
    except Exception:
        channel.close()
        transport.close()
        raise
    bundle = SshSessionSock(sock, transport, channel)
    try:
        session = Session(
            bundle, hello=hello, timeout=timeout, poll_interval=poll_interval
        )
    except Exception:
        bundle.close()
        raise
    logger.info("NETCONF session %s established with %s", session.session_id, host)
    return session


def _try_load_hostkey_b64(data):
    for cls in (
        paramiko.RSAKey,
        paramiko.ECDSAKey,
        paramiko.Ed25519Key,
    ):
        try:
            return cls(data=b64decode(data))
        except paramiko.SSHException:
            pass
    raise InvalidSSHHostkey()


def _try_load_pkey(path):
    for cls in (
        paramiko.RSAKey,
        paramiko.ECDSAKey,
        paramiko.Ed25519Key,
    ):
        try:
            return cls.from_private_key_file(path)
        except Exception:
            pass
    return None


class SshSessionSock:
    """Adapts a paramiko channel to what :class:`Session` expects"""

    def __init__(self, sock, transport, channel):
        self.sock = sock
        self.transport = transport
        self.channel = channel

    def recv_ready(self):
        return self.channel.recv_ready()

    def recv(self, n):
        return self.channel.recv(n)

    def sendall(self, b):
        self.channel.sendall(b)

    def makefile(self, mode="r"):
        return self.channel.makefile(mode)

    def close(self):
        self.channel.close()
        self.transport.close()
        self.sock.close()
