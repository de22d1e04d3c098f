DELIMITER = "]]>]]>"
DELIMITER_LEN = len(DELIMITER)

DEFAULT_HELLO = (
    '<hello xmlns="urn:ietf:params:xml:ns:netconf:base:1.0">'
    "<capabilities>"
    "<capability>urn:ietf:params:netconf:base:1.0</capability>"
    "<capability>urn:ietf:params:netconf:base:1.0#candidate</capability>"
    "<capability>urn:ietf:params:netconf:base:1.0#confirmed-commit</capability>"
    "<capability>urn:ietf:params:netconf:base:1.0#validate</capability>"
    "<capability>urn:ietf:params:netconf:base:1.0#url?protocol=http,ftp,file</capability>"
    "</capabilities>"
    "</hello>"
)

NETCONF_PORT = 830

# Seconds
RESPONSE_TIMEOUT = 200.0
POLL_INTERVAL = 0.3

RECV_SIZE = 1024

RPC_OPEN = "<rpc>"
RPC_CLOSE = "</rpc>"
RPC_EMPTY = "<rpc/>"

LOAD_TYPES = ("merge", "replace")
