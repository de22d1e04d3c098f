from xml.sax.saxutils import escape

from junos_netconf.constants import (
    DELIMITER,
    DELIMITER_LEN,
    RPC_CLOSE,
    RPC_EMPTY,
    RPC_OPEN,
)
from junos_netconf.error import InvalidArgument
from junos_netconf.reply import from_ele


def make_rpc(content):
    """Build a complete, delimited ``<rpc>`` envelope

    `content` may be a bare operation name (``get-chassis-inventory``),
    an XML element (``<get-chassis-inventory/>``), or an already
    complete ``<rpc>`` envelope, which is left as it is. A trailing
    delimiter on the input is dropped, so building from a built
    envelope returns it unchanged. lxml elements and element trees are
    accepted as well.

    :rtype: str
    """
    if content is None:
        raise InvalidArgument("RPC content can't be None")

    content = from_ele(content).strip()
    if content.endswith(DELIMITER):
        content = content[:-DELIMITER_LEN].rstrip()
    if not content:
        raise InvalidArgument("RPC content can't be empty")

    if not (
        content.startswith(RPC_OPEN)
        or content.startswith("<rpc ")
        or content == RPC_EMPTY
    ):
        if content.startswith("<"):
            content = RPC_OPEN + content + RPC_CLOSE
        else:
            content = "{}<{}/>{}".format(RPC_OPEN, content, RPC_CLOSE)

    return content + DELIMITER


def edit_config(config, target="candidate", default_operation="merge"):
    config = config.strip()
    if not config.startswith("<configuration"):
        config = "<configuration>{}</configuration>".format(config)

    pieces = []
    pieces.append("<edit-config>")
    pieces.append("<target><{}/></target>".format(target))
    pieces.append("<default-operation>{}</default-operation>".format(default_operation))
    pieces.append("<config>{}</config>".format(config))
    pieces.append("</edit-config>")
    return make_rpc("".join(pieces))


def edit_config_text(config, target="candidate", default_operation="merge"):
    pieces = []
    pieces.append("<edit-config>")
    pieces.append("<target><{}/></target>".format(target))
    pieces.append("<default-operation>{}</default-operation>".format(default_operation))
    pieces.append("<config-text>")
    pieces.append("<configuration-text>{}</configuration-text>".format(escape(config)))
    pieces.append("</config-text>")
    pieces.append("</edit-config>")
    return make_rpc("".join(pieces))


def load_configuration_set(config):
    pieces = []
    pieces.append('<load-configuration action="set">')
    pieces.append("<configuration-set>{}</configuration-set>".format(escape(config)))
    pieces.append("</load-configuration>")
    return make_rpc("".join(pieces))


def get_config(source="running", filter="<configuration></configuration>"):
    pieces = []
    pieces.append("<get-config>")
    pieces.append("<source><{}/></source>".format(source))
    pieces.append('<filter type="subtree">{}</filter>'.format(filter))
    pieces.append("</get-config>")
    return make_rpc("".join(pieces))


def lock(target="candidate"):
    return make_rpc("<lock><target><{}/></target></lock>".format(target))


def unlock(target="candidate"):
    return make_rpc("<unlock><target><{}/></target></unlock>".format(target))


def commit(confirmed=False, confirm_timeout=None):
    if not confirmed:
        return make_rpc("<commit/>")

    pieces = []
    pieces.append("<commit>")
    pieces.append("<confirmed/>")
    if confirm_timeout is not None:
        pieces.append("<confirm-timeout>{}</confirm-timeout>".format(confirm_timeout))
    pieces.append("</commit>")
    return make_rpc("".join(pieces))


def validate(source="candidate"):
    return make_rpc("<validate><source><{}/></source></validate>".format(source))


def close_session():
    return make_rpc("<close-session/>")


def request_reboot():
    return make_rpc("<request-reboot/>")


def command(cmd, format="text"):
    return make_rpc('<command format="{}">{}</command>'.format(format, escape(cmd)))


def open_configuration(mode):
    mode = mode.strip()
    if not mode.startswith("<"):
        mode = "<{}/>".format(mode)
    return make_rpc("<open-configuration>{}</open-configuration>".format(mode))


def close_configuration():
    return make_rpc("<close-configuration/>")
