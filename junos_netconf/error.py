from junos_netconf.reply import RpcReply


class NetconfException(Exception):
    """Base class for all ``junos_netconf`` exceptions"""

    pass


class InvalidArgument(NetconfException, ValueError):
    """This exception is raised when a caller supplies a missing or
    malformed argument; it is always raised before anything is sent"""

    pass


class ResponseTimeout(NetconfException, TimeoutError):
    """This exception is raised when no complete reply arrives within the
    response timeout"""

    pass


class TransportError(NetconfException, IOError):
    """This exception is raised when reading from or writing to the
    underlying channel fails"""

    pass


class SessionClosedException(TransportError):
    """This exception is raised when the server closes the channel"""

    pass


class SessionBusyError(NetconfException):
    """This exception is raised when a request is issued while another
    request on the same session is still waiting for its reply"""

    pass


class NetconfProtocolError(NetconfException):
    """This exception is raised on any NETCONF protocol error"""

    pass


class RpcError(NetconfProtocolError):
    """This exception is raised when a reply carries an ``<rpc-error>`` or
    lacks the ``<ok/>`` an operation requires

    :ivar reply_raw: The raw text that was returned by the server
    :ivar message: If present, the contents of the ``<error-message>`` tag
    :ivar severity: If present, the contents of the ``<error-severity>`` tag

    """

    label = "RPC operation returned error"

    def __init__(self, raw, label=None):
        self.reply_raw = raw
        self.message = None
        self.severity = None

        if label is not None:
            self.label = label

        if raw and "<rpc-error>" in raw:
            reply = RpcReply(raw)
            self.message = reply.error_message()
            self.severity = reply.find_value(["rpc-error", "error-severity"])

        if self.message:
            msg = "{}: {}".format(self.label, self.message.strip())
        else:
            msg = self.label

        super(RpcError, self).__init__(msg)


class LoadError(RpcError):
    """Raised when loading configuration into a datastore fails"""

    label = "Load operation returned error"


class CommitError(RpcError):
    """Raised when a ``<commit>`` fails"""

    label = "Commit operation returned error"


class LockError(RpcError, IOError):
    """Raised when the configuration could not be locked before a load

    Also an :class:`IOError`, as the configuration could not be written.
    """

    label = "Unclean lock operation. Cannot proceed further"


class ConfigFileNotFound(NetconfException, FileNotFoundError):
    """This exception is raised when a configuration file to load is missing"""

    pass


class InvalidSSHHostkey(NetconfException):
    """This exception is raised if the SSH hostkey isn't valid"""

    pass
