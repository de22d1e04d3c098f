from mock import MagicMock, patch
import pytest

from junos_netconf.connect import SshSessionSock, connect_ssh, _try_load_hostkey_b64
from junos_netconf.error import InvalidSSHHostkey, ResponseTimeout

from common import MockSock, SERVER_HELLO


def test_ssh_session_sock():
    sock, transport, channel = MagicMock(), MagicMock(), MagicMock()
    channel.recv_ready.return_value = True
    channel.recv.return_value = b"abc"

    bundle = SshSessionSock(sock, transport, channel)
    assert bundle.recv_ready()
    assert bundle.recv(1024) == b"abc"
    channel.recv.assert_called_once_with(1024)

    bundle.sendall(b"<rpc/>]]>]]>")
    channel.sendall.assert_called_once_with(b"<rpc/>]]>]]>")

    bundle.makefile("r")
    channel.makefile.assert_called_once_with("r")

    bundle.close()
    assert channel.close.called
    assert transport.close.called
    assert sock.close.called


def test_invalid_hostkey():
    with pytest.raises(InvalidSSHHostkey):
        _try_load_hostkey_b64("bm90IGEga2V5")


def _fake_channel(replies):
    mock_sock = MockSock(replies)
    channel = MagicMock()
    channel.recv_ready.side_effect = mock_sock.recv_ready
    channel.recv.side_effect = mock_sock.recv
    channel.sendall.side_effect = mock_sock.sendall
    return channel, mock_sock


def test_connect_ssh():
    channel, mock_sock = _fake_channel([SERVER_HELLO])
    sock = MagicMock()
    with patch("paramiko.transport.Transport") as Transport:
        Transport.return_value.open_session.return_value = channel
        session = connect_ssh(sock=sock, username="admin", password="secret")

    Transport.assert_called_once_with(sock)
    Transport.return_value.connect.assert_called_once_with(
        hostkey=None, username="admin", password="secret", pkey=None
    )
    channel.invoke_subsystem.assert_called_once_with("netconf")
    assert session.session_id == "42"
    assert len(mock_sock.sent) == 1


def test_connect_ssh_hello_failure_closes_everything():
    channel, _ = _fake_channel([])
    sock = MagicMock()
    with patch("paramiko.transport.Transport") as Transport:
        Transport.return_value.open_session.return_value = channel
        with pytest.raises(ResponseTimeout):
            connect_ssh(sock=sock, password="secret", timeout=0.05, poll_interval=0.01)

    assert channel.close.called
    assert Transport.return_value.close.called
    assert sock.close.called


def test_connect_ssh_subsystem_failure():
    channel = MagicMock()
    channel.invoke_subsystem.side_effect = Exception("subsystem request failed")
    with patch("paramiko.transport.Transport") as Transport:
        Transport.return_value.open_session.return_value = channel
        with pytest.raises(Exception):
            connect_ssh(sock=MagicMock(), password="secret")

    assert channel.close.called
    assert Transport.return_value.close.called
