from lxml import etree


def to_ele(maybe_ele):
    """Convert the given reply text to an lxml element

    :param maybe_ele: If this is a string, it will be parsed by
                      lxml. If it is already an lxml element the
                      parameter is returned unchanged
    """
    if etree.iselement(maybe_ele):
        return maybe_ele
    if isinstance(maybe_ele, str):
        # lxml refuses str input carrying an encoding declaration
        maybe_ele = maybe_ele.encode("utf-8")
    return etree.fromstring(maybe_ele.strip())


def from_ele(maybe_ele):
    if isinstance(maybe_ele, etree._ElementTree):
        maybe_ele = maybe_ele.getroot()
    if etree.iselement(maybe_ele):
        return etree.tostring(maybe_ele).decode("utf-8")
    else:
        return maybe_ele


def _local_name(ele):
    return etree.QName(ele).localname


def find_value(ele, path):
    """Return the text found by walking ``path`` down from ``ele``

    Each step of the path picks the first descendant element with a
    matching tag name, ignoring namespaces. ``None`` is returned when
    any step finds nothing.

    :param ele: The lxml element to start from
    :param list path: Ordered tag names, e.g. ``["rpc-error", "error-severity"]``
    """
    current = ele
    for tag in path:
        found = None
        for child in current.iter(etree.Element):
            if child is not current and _local_name(child) == tag:
                found = child
                break
        if found is None:
            return None
        current = found
    return current.text


class RpcReply:
    """The raw reply to a single RPC exchange

    Only the first ``<rpc-error>`` in a reply is looked at; further
    errors or warnings in the same reply are not reported separately.

    :ivar str raw: The reply text as received, without the terminator
    """

    def __init__(self, raw):
        self.raw = raw

    def __str__(self):
        return self.raw

    def __repr__(self):
        return "RpcReply({!r})".format(self.raw)

    def _parsed(self):
        try:
            return self.to_ele()
        except etree.XMLSyntaxError:
            return None

    def _error_severity(self):
        if "<rpc-error>" not in self.raw:
            return None
        ele = self._parsed()
        if ele is None:
            # An error reply that isn't well-formed still counts as an error
            return "error"
        return find_value(ele, ["rpc-error", "error-severity"])

    def has_error(self):
        """``True`` if the first ``<rpc-error>`` has severity ``error``

        A reply mentioning ``<rpc-error>`` that cannot be parsed is
        treated as an error as well.
        """
        return self._error_severity() == "error"

    def has_warning(self):
        """``True`` if the first ``<rpc-error>`` has severity ``warning``"""
        return self._error_severity() == "warning"

    def is_ok(self):
        return "<ok/>" in self.raw

    def succeeded(self):
        return not self.has_error() and self.is_ok()

    def error_message(self):
        if "<rpc-error>" not in self.raw:
            return None
        return self.find_value(["rpc-error", "error-message"])

    def to_ele(self):
        """Parse the reply into an lxml element

        :raises lxml.etree.XMLSyntaxError: if the reply is not well-formed
        """
        return to_ele(self.raw)

    def find_value(self, path):
        """Like :func:`find_value`, but ``None`` when the reply is not well-formed"""
        ele = self._parsed()
        if ele is None:
            return None
        return find_value(ele, path)
