from datetime import datetime
from socket import error as socket_error
import logging
import inspect

from lxml import etree

from junos_netconf.constants import DELIMITER, DELIMITER_LEN, LOAD_TYPES
from junos_netconf.error import (
    CommitError,
    ConfigFileNotFound,
    InvalidArgument,
    LoadError,
    LockError,
    NetconfException,
    NetconfProtocolError,
    ResponseTimeout,
)
from junos_netconf.reply import RpcReply
from junos_netconf.rpc import (
    close_configuration,
    close_session,
    command,
    commit,
    edit_config,
    edit_config_text,
    get_config,
    load_configuration_set,
    lock,
    make_rpc,
    open_configuration,
    request_reboot,
    unlock,
    validate,
)

# Defines the scope for netconf traces
_logger = logging.getLogger("junos_netconf.manager")

DEFAULT_CONFIG_TREE = "<configuration></configuration>"


def _pretty_xml(xml):
    """Reformats a given string containing an XML document (for human readable output)"""

    if xml.endswith(DELIMITER):
        xml = xml[:-DELIMITER_LEN]

    pretty = ""
    try:
        parser = etree.XMLParser(remove_blank_text=True)
        tree = etree.fromstring(xml.strip().encode("utf-8"), parser)
        pretty = etree.tostring(tree, pretty_print=True).decode()
    except etree.Error as e:
        pretty = "Error: Cannot format XML message: {}\nPlain message is:\n{}".format(
            str(e), xml
        )

    return pretty


def _reply_ele(reply):
    try:
        return reply.to_ele()
    except etree.XMLSyntaxError as e:
        raise NetconfProtocolError("Reply is not well-formed XML: {}".format(e)) from e


def read_file(path):
    """Read a configuration file from the local filesystem

    :raises ConfigFileNotFound: if `path` does not exist
    """
    try:
        with open(path) as f:
            return f.read()
    except FileNotFoundError:
        raise ConfigFileNotFound(
            "The system cannot find the configuration file specified: {}".format(path)
        )


def _check_load_type(load_type):
    if load_type not in LOAD_TYPES:
        raise InvalidArgument("'load_type' argument must be merge|replace")


class Manager:
    """Configuration and operational commands on a Junos NETCONF session

    This class is also a context manager and can be used with `with`
    statements to send ``<close-session>`` and close the underlying
    session.

    Operations come in two families. :meth:`lock_config`,
    :meth:`unlock_config` and :meth:`validate` report the outcome as a
    ``bool``. The load and commit operations raise
    :class:`~junos_netconf.error.LoadError` or
    :class:`~junos_netconf.error.CommitError` instead.

    NETCONF requests and responses are logged using the ``junos_netconf.manager`` scope.
    The log level is logger.DEBUG.

    Each log entry shows a log ID (the peers' IP addresses as default).
    Additionally, the round-trip delay between request and its response is
    computed and displayed.

    The Python logger receives a dictionary via `extra` parameter, whose
    key is ``junos_netconf.Manager.funcname`` and which contains the name of
    the API function being logged.
    This information can be used for user-specific filtering.

    :ivar session: The underlying
                   :class:`junos_netconf.session.Session` connected
                   to the server
    :ivar str log_id: application-specific log ID (None as default)
    :ivar last_rpc_reply: The :class:`~junos_netconf.reply.RpcReply`
                          of the most recent exchange

    """

    def __init__(self, session, log_id=None):
        """Construct a new Manager object

        :param session: The low-level NETCONF session to use for requests
        :type session: :class:`junos_netconf.session.Session`

        :param string log_id: log ID string additionally printed with
               each log entry
        """
        self.session = session
        self.log_id = log_id
        self.last_rpc_reply = RpcReply(session.server_hello)
        self._start_time = self._get_timestamp()
        self._local_ip = None
        self._peer_ip = None
        self._funcname = None

    def __enter__(self):
        return self

    def __exit__(self, a, b, c):
        self.close()

    @staticmethod
    def logger():
        """Returns the internally used logger instance (same for all sessions)"""
        return _logger

    def set_logger_level(self, level):
        _logger.setLevel(level)

    def _get_timestamp(self):
        return datetime.now()

    def _is_logger_enabled(self):
        return Manager.logger().isEnabledFor(logging.DEBUG)

    def _fetch_connection_ip(self):
        """Retrieves and stores the connection's local and remote IP"""

        self._local_ip = None
        self._peer_ip = None
        try:
            (self._local_ip, _) = self.session.sock.sock.getsockname()[:2]
            (self._peer_ip, _) = self.session.sock.sock.getpeername()[:2]
        except (AttributeError, TypeError, socket_error):
            pass

    def _get_connection_info(self, direction):
        """Returns detailed connection info for logging"""

        result = ""
        if self.log_id:
            if self._local_ip and self._peer_ip:
                result = " ({}) {} {} ({})".format(
                    self._local_ip, direction, self.log_id, self._peer_ip
                )
            else:
                result = " {} {}".format(direction, self.log_id)
        else:
            if self._local_ip and self._peer_ip:
                result = " {} {} {}".format(self._local_ip, direction, self._peer_ip)
        return result

    def _fetch_funcname(self):
        """Retrieves and stores the name of the API function being called"""
        self._funcname = inspect.stack()[3][3]

    def _log_rpc_request(self, rpc_xml):
        if self._is_logger_enabled():
            self._fetch_funcname()
            self._fetch_connection_ip()
            conn_id = self._get_connection_info("=>")
            self._start_time = self._get_timestamp()
            pretty = _pretty_xml(rpc_xml)

            Manager.logger().debug(
                "NC Request%s:\n%s",
                conn_id,
                pretty,
                extra={"junos_netconf.Manager.funcname": self._funcname},
            )

    def _log_rpc_response(self, rpc_xml):
        if self._is_logger_enabled():
            end_time = self._get_timestamp()
            conn_id = self._get_connection_info("<=")

            taken = end_time - self._start_time
            taken_formatted = "%d.%03d" % (taken.seconds, taken.microseconds / 1000)
            pretty = _pretty_xml(rpc_xml) if rpc_xml else "(None)"

            Manager.logger().debug(
                "NC Response%s (%s sec):\n%s",
                conn_id,
                taken_formatted,
                pretty,
                extra={"junos_netconf.Manager.funcname": self._funcname},
            )

    def _log_rpc_failure(self, message):
        if self._is_logger_enabled():
            end_time = self._get_timestamp()
            conn_id = self._get_connection_info("<=")

            taken = end_time - self._start_time
            taken_formatted = "%d.%03d" % (taken.seconds, taken.microseconds / 1000)
            message = "Cause: {}\n".format(message)

            Manager.logger().debug(
                "NC Failure%s (%s sec)\n%s",
                conn_id,
                taken_formatted,
                message,
                extra={"junos_netconf.Manager.funcname": self._funcname},
            )

    def _send_rpc(self, rpc_xml):
        """Send given NC request message and collect the NC response

        Both, the NC request and response messages are logged with timestamp.
        In case of failure or exceptions, the error cause is logged, if known.
        Exceptions raised by the session are re-raised after they have
        been logged.

        :param str rpc_xml: Delimited XML RPC message to send to the NC server

        :rtype: :class:`junos_netconf.reply.RpcReply`
        """
        self._log_rpc_request(rpc_xml)

        try:
            reply = self.session.send_rpc(rpc_xml)
        except ResponseTimeout:
            self._log_rpc_failure(
                "RPC timeout (max. {} seconds)".format(self.session.timeout)
            )
            raise
        except Exception as e:
            self._log_rpc_failure("RPC exception: {}".format(str(e)))
            raise

        self._log_rpc_response(reply.raw)
        self.last_rpc_reply = reply
        return reply

    def _send_rpc_running(self, rpc_xml):
        self._log_rpc_request(rpc_xml)
        return self.session.send_rpc_running(rpc_xml)

    @property
    def session_id(self):
        """The session ID given in the ``<hello>`` from the server"""
        return self.session.session_id

    @property
    def server_capability(self):
        """The server's ``<hello>`` as received"""
        return self.session.server_hello

    def has_error(self):
        """Whether the most recent reply carries an error-severity ``<rpc-error>``"""
        return self.last_rpc_reply.has_error()

    def has_warning(self):
        """Whether the most recent reply carries a warning-severity ``<rpc-error>``"""
        return self.last_rpc_reply.has_warning()

    def is_ok(self):
        """Whether the most recent reply contains ``<ok/>``"""
        return self.last_rpc_reply.is_ok()

    def execute_rpc(self, rpc):
        """Send an ``<rpc>`` request and return the parsed reply

        :param rpc: A bare operation name (``get-software-information``),
                    an XML element as a string or lxml element, or a
                    complete ``<rpc>`` envelope

        :rtype: :class:`lxml.etree._Element`

        :raises NetconfProtocolError: if the reply is not well-formed XML
        """
        return _reply_ele(self._send_rpc(make_rpc(rpc)))

    def execute_rpc_running(self, rpc):
        """Send an ``<rpc>`` request and return a line reader over its output

        Intended for long-running commands whose output should be
        consumed as it arrives. See :meth:`execute_rpc` for `rpc`.
        """
        return self._send_rpc_running(make_rpc(rpc))

    def lock_config(self, target="candidate"):
        """Send a ``<lock>`` request

        :param str target: The datastore to be locked

        :rtype: bool
        """
        return self._send_rpc(lock(target)).succeeded()

    def unlock_config(self, target="candidate"):
        """Send an ``<unlock>`` request

        :param str target: The datastore to be unlocked

        :rtype: bool
        """
        return self._send_rpc(unlock(target)).succeeded()

    def load_xml_configuration(self, configuration, load_type, target="candidate"):
        """Load XML configuration with an ``<edit-config>`` request

        :param str configuration: The configuration; a missing
                                  ``<configuration>`` root is added

        :param str load_type: 'merge' or 'replace'

        :param str target: The datastore to edit
        """
        _check_load_type(load_type)
        reply = self._send_rpc(edit_config(configuration, target, load_type))
        if not reply.succeeded():
            raise LoadError(reply.raw)

    def load_text_configuration(self, configuration, load_type, target="candidate"):
        """Load configuration in Junos text (curly brace) format

        The text is XML-escaped before it is sent, so pass it as it
        would be typed on the device; ``&lt;`` is sent as ``&amp;lt;``.

        :param str configuration: The configuration text

        :param str load_type: 'merge' or 'replace'

        :param str target: The datastore to edit
        """
        _check_load_type(load_type)
        reply = self._send_rpc(edit_config_text(configuration, target, load_type))
        if not reply.succeeded():
            raise LoadError(reply.raw)

    def load_set_configuration(self, configuration):
        """Load configuration given as ``set`` commands

        The commands are XML-escaped before they are sent, so text that
        is already escaped gets escaped twice.

        :param str configuration: Newline separated ``set`` commands
        """
        reply = self._send_rpc(load_configuration_set(configuration))
        if not reply.succeeded():
            raise LoadError(reply.raw)

    def edit_config(
        self, configuration, load_type="merge", format="xml", target="candidate"
    ):
        """Load configuration in any of the supported formats

        :param str format: 'xml', 'text' or 'set'; `load_type` and
                           `target` do not apply to 'set'
        """
        if format == "xml":
            self.load_xml_configuration(configuration, load_type, target)
        elif format == "text":
            self.load_text_configuration(configuration, load_type, target)
        elif format == "set":
            self.load_set_configuration(configuration)
        else:
            raise InvalidArgument("Unsupported configuration format {}".format(format))

    def load_xml_file(self, config_file, load_type):
        self.load_xml_configuration(read_file(config_file), load_type)

    def load_text_file(self, config_file, load_type):
        self.load_text_configuration(read_file(config_file), load_type)

    def load_set_file(self, config_file):
        self.load_set_configuration(read_file(config_file))

    def commit(self):
        """Send a ``<commit>`` request"""
        reply = self._send_rpc(commit())
        if not reply.succeeded():
            raise CommitError(reply.raw)

    def commit_confirm(self, seconds):
        """Send a confirmed ``<commit>``

        The device rolls the commit back by itself unless another commit
        follows within `seconds`.

        :param int seconds: The confirm timeout
        """
        reply = self._send_rpc(commit(confirmed=True, confirm_timeout=seconds))
        if not reply.succeeded():
            raise CommitError(reply.raw)

    def commit_this_configuration(self, config_file, load_type):
        """Lock the candidate, load `config_file`, commit, and unlock

        The file format is taken from its first characters: ``<`` means
        XML, ``set`` means set commands, anything else is text format.

        Nothing is loaded when the lock cannot be taken. Once the lock
        is held it is released again even when the load or commit
        fails; the load or commit error is what propagates, and a
        failing unlock is only logged.

        :raises LockError: if the candidate could not be locked
        """
        configuration = read_file(config_file).strip()
        if configuration.startswith("<"):
            _check_load_type(load_type)
            load = self.load_xml_configuration
        elif configuration.startswith("set"):
            load = None
        else:
            _check_load_type(load_type)
            load = self.load_text_configuration

        if not self.lock_config():
            raise LockError(self.last_rpc_reply.raw)

        try:
            if load is None:
                self.load_set_configuration(configuration)
            else:
                load(configuration, load_type)
            self.commit()
        finally:
            try:
                if not self.unlock_config():
                    _logger.warning("Could not unlock the candidate configuration")
            except NetconfException as e:
                _logger.warning("Could not unlock the candidate configuration: %s", e)

    def get_config(self, target="running", config_tree=DEFAULT_CONFIG_TREE):
        """Send a ``<get-config>`` request with a subtree filter

        :param str target: The datastore to retrieve the configuration from

        :param str config_tree: The subtree filter contents

        :rtype: :class:`junos_netconf.reply.RpcReply`
        """
        return self._send_rpc(get_config(target, config_tree))

    def get_candidate_config(self, config_tree=DEFAULT_CONFIG_TREE):
        """Retrieve (part of) the candidate configuration

        :rtype: :class:`lxml.etree._Element`
        """
        return _reply_ele(self._send_rpc(get_config("candidate", config_tree)))

    def get_running_config(self, config_tree=DEFAULT_CONFIG_TREE):
        """Retrieve (part of) the running configuration

        :rtype: :class:`lxml.etree._Element`
        """
        return _reply_ele(self._send_rpc(get_config("running", config_tree)))

    def validate(self):
        """Validate the candidate configuration

        :rtype: bool
        """
        return self._send_rpc(validate("candidate")).succeeded()

    def reboot(self):
        """Request a reboot of the device and return the raw reply"""
        return self._send_rpc(request_reboot()).raw

    def run_cli_command(self, cmd):
        """Run an operational CLI command

        The command is XML-escaped before it is sent; pass it as typed
        on the device CLI.

        :param str cmd: The command, e.g. ``show version``

        :return: The text of the ``<output>`` element, or the whole raw
                 reply when there is none
        """
        reply = self._send_rpc(command(cmd))
        output = reply.find_value(["output"])
        if output is not None:
            return output
        return reply.raw

    def run_cli_command_running(self, cmd):
        """Run an operational CLI command and return a line reader over its output"""
        return self._send_rpc_running(command(cmd))

    def open_configuration(self, mode):
        """Open a configuration database

        :param str mode: e.g. 'private' or 'exclusive', or an XML element
        """
        self._send_rpc(open_configuration(mode))

    def close_configuration(self):
        self._send_rpc(close_configuration())

    def close(self):
        """Send ``<close-session>`` and close the underlying session"""
        if self.session.closed:
            return
        try:
            self._send_rpc(close_session())
        finally:
            self.session.close()
